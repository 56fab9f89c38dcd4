"""
boredom.py – the "I'm bored" bookkeeping.

Per playback there is a little bit of throw-away state (PlaybackEphemeral):
is the skip countdown running, how much of it is left, has it already been
used on this clip, and is the bored panel open.  Per clip there is the
persisted BoredomRecord kept by StatsStore.

Two clocks run off the scheduler:

* the skip countdown (20 Hz) – started by the first bored press of a
  playback, forces an advance when it reaches zero;
* the accumulation ticker (4 Hz) – credits wall-clock time to the current
  clip once it has been declared boring, and to the real playback total.

The arithmetic of both lives in `countdown_step` / `accumulation_step`,
which are plain functions of (state, delta, guards).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional, Tuple

import config
from scheduler import Scheduler, TimerToken, cancel
from stats_store import StatsStore
from visibility import VisibilitySignal

logger = logging.getLogger(__name__)

_EPSILON = 1e-6


@dataclass
class PlaybackEphemeral:
    skip_active: bool = False
    skip_remaining: float = config.SKIP_COUNTDOWN_SEC
    skip_triggered_this_play: bool = False
    expanded: bool = False


@dataclass(frozen=True)
class TickGuards:
    foreground: bool = True
    visible: bool = True
    declared: bool = False


# ── pure steps ──────────────────────────────────────────────────────────────
def countdown_step(state: PlaybackEphemeral, delta: float,
                   guards: TickGuards) -> Tuple[PlaybackEphemeral, bool]:
    """
    Advance the skip countdown by *delta* seconds.

    Returns the new state and True when this step reached zero (the caller
    should force an advance).  Paused unless foreground and visible.
    """
    if not state.skip_active or delta <= 0:
        return state, False
    if not (guards.foreground and guards.visible):
        return state, False

    remaining = max(0.0, state.skip_remaining - delta)
    if remaining <= _EPSILON:
        return replace(state, skip_remaining=0.0, skip_active=False,
                       expanded=False), True
    return replace(state, skip_remaining=remaining), False


def accumulation_step(accumulated: float, delta: float,
                      guards: TickGuards) -> float:
    """Seconds of boredom after *delta* more seconds of playback."""
    if delta <= 0:
        return accumulated
    if not (guards.declared and guards.foreground and guards.visible):
        return accumulated
    return accumulated + delta


# ── engine ──────────────────────────────────────────────────────────────────
class BoredomEngine:
    def __init__(self,
                 stats: StatsStore,
                 scheduler: Scheduler,
                 visibility: VisibilitySignal,
                 on_skip: Callable[[], object],
                 countdown_sec: float = config.SKIP_COUNTDOWN_SEC):
        self._stats      = stats
        self._scheduler  = scheduler
        self._visibility = visibility
        self._on_skip    = on_skip
        self.countdown_sec = countdown_sec

        self.clip_id: Optional[str] = None
        self.ephemeral = PlaybackEphemeral(skip_remaining=countdown_sec)
        self._generation = 0

        self._countdown_timer: Optional[TimerToken] = None
        self._accum_timer:     Optional[TimerToken] = None
        self._collapse_timer:  Optional[TimerToken] = None
        self._last_countdown = 0.0
        self._last_accum     = 0.0
        self._torn_down = False

    # ── guards ────────────────────────────────────────────────────────────
    def _guards(self, clip_id: Optional[str] = None) -> TickGuards:
        declared = False
        if clip_id is not None:
            declared = self._stats.peek_record(clip_id).declared
        return TickGuards(foreground=self._visibility.active,
                          visible=not self._visibility.suppressed,
                          declared=declared)

    @property
    def countdown_fraction(self) -> float:
        """0 → just started, 1 → about to skip."""
        if self.countdown_sec <= 0:
            return 1.0
        done = (self.countdown_sec - self.ephemeral.skip_remaining) / self.countdown_sec
        return max(0.0, min(1.0, done))

    # ── events ────────────────────────────────────────────────────────────
    def on_new_playback_started(self, clip_id: str) -> None:
        if self._torn_down:
            return
        # charge the outgoing clip up to the swap before switching
        if self._accum_timer is not None:
            self._accumulation_tick()

        self.clip_id = clip_id
        self._generation += 1
        self._countdown_timer = cancel(self._countdown_timer)
        self._collapse_timer = cancel(self._collapse_timer)
        self.ephemeral = PlaybackEphemeral(skip_remaining=self.countdown_sec)

        self._stats.increment_plays()
        logger.debug("playback #%d: %s", self._stats.total_video_plays, clip_id)

        self._accum_timer = cancel(self._accum_timer)
        self._start_accumulation()

    def on_bored_pressed(self) -> bool:
        """Returns True when the press was counted."""
        if self._torn_down or self.clip_id is None:
            return False
        if self.ephemeral.expanded or not self._visibility.active:
            return False

        clip_id = self.clip_id
        count = self._stats.record_boredom_instance(clip_id)
        if self._stats.declare_boredom(clip_id):
            logger.info("%s declared boring", clip_id)
        self._stats.acknowledge_boredom()
        logger.debug("%s bored x%d", clip_id, count)

        self.ephemeral.expanded = True
        gen = self._generation
        cancel(self._collapse_timer)
        self._collapse_timer = self._scheduler.schedule_once(
            config.EXPANDED_DISPLAY_SEC, lambda: self._collapse(gen))

        if not self.ephemeral.skip_triggered_this_play:
            self.ephemeral.skip_triggered_this_play = True
            self.ephemeral.skip_active = True
            self._start_countdown()
        return True

    def _collapse(self, generation: int) -> None:
        self._collapse_timer = None
        if generation == self._generation:
            self.ephemeral.expanded = False

    # ── countdown ─────────────────────────────────────────────────────────
    def _start_countdown(self) -> None:
        if self._torn_down or self._countdown_timer is not None:
            return
        if not self.ephemeral.skip_active or not self._visibility.watching:
            return
        self._last_countdown = self._scheduler.now()
        self._countdown_timer = self._scheduler.schedule_periodic(
            config.COUNTDOWN_TICK, self._countdown_tick)

    def _countdown_tick(self) -> None:
        if self._torn_down or self._countdown_timer is None:
            return
        now = self._scheduler.now()
        delta, self._last_countdown = now - self._last_countdown, now
        self.ephemeral, fired = countdown_step(self.ephemeral, delta,
                                               self._guards())
        if fired:
            self._countdown_timer = cancel(self._countdown_timer)
            logger.info("countdown finished on %s, skipping", self.clip_id)
            self._on_skip()

    # ── accumulation ──────────────────────────────────────────────────────
    def _start_accumulation(self) -> None:
        if self._torn_down or self._accum_timer is not None:
            return
        if self.clip_id is None or not self._visibility.watching:
            return
        self._last_accum = self._scheduler.now()
        self._accum_timer = self._scheduler.schedule_periodic(
            config.ACCUMULATION_TICK, self._accumulation_tick)

    def _accumulation_tick(self) -> None:
        if self._torn_down or self._accum_timer is None or self.clip_id is None:
            return
        now = self._scheduler.now()
        delta, self._last_accum = now - self._last_accum, now
        if delta <= 0:
            return

        guards = self._guards(self.clip_id)
        if guards.foreground and guards.visible:
            self._stats.tick_foreground(delta)

        before = self._stats.peek_record(self.clip_id).time_accumulated
        after = accumulation_step(before, delta, guards)
        if after > before:
            self._stats.accumulate_time(self.clip_id, after - before)

    # ── visibility ────────────────────────────────────────────────────────
    def suspend(self) -> None:
        """Stop both clocks; remaining countdown time is kept."""
        if self._accum_timer is not None:
            self._accumulation_tick()
        self._countdown_timer = cancel(self._countdown_timer)
        self._accum_timer = cancel(self._accum_timer)

    def resume(self) -> None:
        if self._torn_down or not self._visibility.watching:
            return
        if self.ephemeral.skip_active and self.ephemeral.skip_remaining > 0:
            self._start_countdown()
        self._start_accumulation()

    def on_playback_stopped(self) -> None:
        """Nothing is on screen any more: settle the clip and forget it."""
        self.suspend()
        self._collapse_timer = cancel(self._collapse_timer)
        self._generation += 1
        self.clip_id = None
        self.ephemeral = PlaybackEphemeral(skip_remaining=self.countdown_sec)

    def teardown(self) -> None:
        self.suspend()
        self._collapse_timer = cancel(self._collapse_timer)
        self._torn_down = True
