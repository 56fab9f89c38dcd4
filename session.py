"""
session.py – the one object the presentation layer talks to.

AmbientSession builds the whole core (queue, slots, transition controller,
boredom engine, stats store) around a clip source and a scheduler, and
exposes two things: `snapshot()` for drawing, and a handful of action entry
points for input and window lifecycle.  Nothing in here is global; build it
at start-up, `teardown()` it on the way out.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import config
from boredom import BoredomEngine, PlaybackEphemeral
from scheduler import Scheduler, TimerToken, cancel
from shuffle_queue import ShuffleQueue
from slot_manager import PreparedSlotManager
from stats_store import BoredomRecord, StatsStore
from transitions import TransitionController, TransitionState
from visibility import VisibilitySignal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlobalDerivedStats:
    total_video_plays: int
    total_elapsed_bored_time: float
    total_boredom_instances: int
    real_playback_time_total: float
    bored_acknowledgements: int


@dataclass(frozen=True)
class SessionSnapshot:
    transition_state: TransitionState
    progress: float
    current_clip_id: Optional[str]
    next_clip_id: Optional[str]
    loading: bool
    no_content: bool
    ephemeral: PlaybackEphemeral
    countdown_fraction: float
    current_record: BoredomRecord
    stats: GlobalDerivedStats
    overlay_open: bool


class AmbientSession:
    def __init__(self, source,
                 scheduler: Scheduler | None = None,
                 stats: StatsStore | None = None,
                 visibility: VisibilitySignal | None = None,
                 loader=None,
                 audio: bool = config.AUDIO_ENABLED):
        self.source     = source
        self.scheduler  = scheduler or Scheduler()
        self.visibility = visibility or VisibilitySignal()
        self.stats      = stats or StatsStore(config.STATS_PATH, self.scheduler)

        self.queue = ShuffleQueue(source.list_clip_ids())
        self.slots = PreparedSlotManager(self.queue, source, loader)
        self.boredom = BoredomEngine(self.stats, self.scheduler,
                                     self.visibility, on_skip=self._on_skip)
        self.transitions = TransitionController(
            self.slots, self.scheduler, self.visibility,
            on_playback_started=self.boredom.on_new_playback_started,
            on_exhausted=self._on_exhausted,
            audio=audio,
        )

        self.loading    = False
        self.no_content = False
        self._ready_timer: Optional[TimerToken] = None
        self._ready_deadline = 0.0
        self._torn_down = False

    # ── start-up ──────────────────────────────────────────────────────────
    def start(self) -> bool:
        self.no_content = False
        self.loading = True
        self.queue.reset()
        if not self.transitions.start():
            logger.warning("no playable clips found")
            self.no_content = True
            self.loading = False
            return False
        self._start_ready_gate()
        return True

    def _start_ready_gate(self) -> None:
        cancel(self._ready_timer)
        self._ready_deadline = self.scheduler.now() + config.READY_DEADLINE_SEC
        self._ready_timer = self.scheduler.schedule_periodic(
            config.READY_POLL_INTERVAL, self._check_ready)

    def _check_ready(self) -> None:
        if self._torn_down:
            return
        cur = self.transitions.current
        ready = cur is not None and cur.is_ready()
        if ready or self.scheduler.now() >= self._ready_deadline:
            if not ready:
                logger.info("clip not ready after %.1fs, showing anyway",
                            config.READY_DEADLINE_SEC)
            self.loading = False
            self._ready_timer = cancel(self._ready_timer)

    def _on_exhausted(self) -> None:
        if self._torn_down:
            return
        logger.warning("ran out of playable clips")
        self._ready_timer = cancel(self._ready_timer)
        self.boredom.on_playback_stopped()
        self.stats.flush_now()
        self.loading = False
        self.no_content = True

    def rescan(self) -> bool:
        """Re-read the clip folder; the way out of the no-content state."""
        ids = self.source.rescan()
        self.queue.replace_catalog(ids)
        self.slots.exhausted = False
        if self.transitions.current is None:
            return self.start()
        self.slots.ensure_next_prepared()
        return True

    # ── read side ─────────────────────────────────────────────────────────
    def record_for(self, clip_id: str) -> BoredomRecord:
        return self.stats.peek_record(clip_id)

    def global_stats(self) -> GlobalDerivedStats:
        s = self.stats
        return GlobalDerivedStats(
            total_video_plays=s.total_video_plays,
            total_elapsed_bored_time=s.total_elapsed_bored_time,
            total_boredom_instances=s.total_boredom_instances,
            real_playback_time_total=s.real_playback_time_total,
            bored_acknowledgements=len(s.globals.bored_acknowledgement_times),
        )

    def snapshot(self) -> SessionSnapshot:
        t = self.transitions
        cur = t.current_clip_id
        return SessionSnapshot(
            transition_state=t.state,
            progress=t.progress,
            current_clip_id=cur,
            next_clip_id=t.next_clip_id,
            loading=self.loading,
            no_content=self.no_content,
            ephemeral=PlaybackEphemeral(**vars(self.boredom.ephemeral)),
            countdown_fraction=self.boredom.countdown_fraction,
            current_record=self.record_for(cur) if cur else BoredomRecord(),
            stats=self.global_stats(),
            overlay_open=self.visibility.overlay_fraction > 0,
        )

    # ── actions ───────────────────────────────────────────────────────────
    def request_bored_press(self) -> bool:
        if self._torn_down or self.no_content:
            return False
        if self.transitions.busy or self.visibility.overlay_fraction > 0:
            return False
        return self.boredom.on_bored_pressed()

    def force_advance(self) -> bool:
        return self.transitions.force_advance()

    def _on_skip(self) -> None:
        self.transitions.force_advance()

    def on_app_background(self) -> None:
        if not self.visibility.foreground:
            return
        logger.info("background")
        self.boredom.suspend()
        self.visibility.foreground = False
        self.transitions.suspend()
        self.stats.flush_now()

    def on_app_foreground(self) -> None:
        if self.visibility.foreground or self._torn_down:
            return
        logger.info("foreground")
        self.visibility.foreground = True
        self.transitions.resume()
        self.boredom.resume()

    def on_overlay_shown(self, fraction: float = config.STATS_PANEL_FRACTION) -> None:
        was_watching = self.visibility.watching
        if was_watching and fraction > self.visibility.threshold:
            self.boredom.suspend()
        self.visibility.overlay_fraction = fraction
        if was_watching and self.visibility.suppressed:
            self.stats.flush_now()

    def on_overlay_hidden(self) -> None:
        self.visibility.overlay_fraction = 0.0
        self.boredom.resume()

    # ── teardown ──────────────────────────────────────────────────────────
    def teardown(self) -> None:
        if self._torn_down:
            return
        self._torn_down = True
        self._ready_timer = cancel(self._ready_timer)
        self.boredom.teardown()
        self.transitions.teardown()
        self.slots.close()
        self.stats.close()
