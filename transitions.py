# transitions.py
"""
Cutover between clips: the current clip slides up and out while the
prepared one slides in, both driven by one shared `progress` value.

    IDLE ──trigger──► SLIDING ──progress hits 1──► SWAPPING ──► IDLE

Triggers: the clip ended, it is within TRANSITION_LEAD_TIME of its end
(so the last frame never freezes on screen), the bored countdown ran out,
or somebody called `force_advance()`.  Triggers while a slide is already
running, or while the app is in the background, are ignored.
"""
from __future__ import annotations

import enum
import logging
from typing import Callable, Optional

import config
from scheduler import Scheduler, TimerToken, cancel
from slot_manager import PreparedSlotManager
from visibility import VisibilitySignal

logger = logging.getLogger(__name__)

_EPSILON = 1e-6


class TransitionState(enum.Enum):
    IDLE     = "idle"
    SLIDING  = "sliding"
    SWAPPING = "swapping"


def ease_in_out(t: float) -> float:
    """Smoothstep; monotonic on 0..1."""
    t = max(0.0, min(1.0, t))
    return t * t * (3.0 - 2.0 * t)


class TransitionController:
    def __init__(self,
                 slots: PreparedSlotManager,
                 scheduler: Scheduler,
                 visibility: VisibilitySignal,
                 on_playback_started: Callable[[str], None],
                 on_exhausted: Optional[Callable[[], None]] = None,
                 duration: float = config.TRANSITION_DURATION,
                 lead_time: float = config.TRANSITION_LEAD_TIME,
                 audio: bool = config.AUDIO_ENABLED):
        self._slots      = slots
        self._scheduler  = scheduler
        self._visibility = visibility
        self._on_started = on_playback_started
        self._on_exhausted = on_exhausted
        self.duration    = duration
        self.lead_time   = lead_time
        self.audio       = audio

        self.state    = TransitionState.IDLE
        self.progress = 0.0
        self.next     = None           # the layer below/incoming on screen
        self._incoming = None
        self._slide_start = 0.0
        self._slide_timer: Optional[TimerToken] = None
        self._poll_timer:  Optional[TimerToken] = None
        self._torn_down = False

        slots.add_prepared_listener(self._on_prepared)

    # ── read side ─────────────────────────────────────────────────────────
    @property
    def current(self):
        return self._slots.current

    @property
    def current_clip_id(self) -> Optional[str]:
        return self.current.clip_id if self.current is not None else None

    @property
    def next_clip_id(self) -> Optional[str]:
        return self.next.clip_id if self.next is not None else None

    @property
    def busy(self) -> bool:
        return self.state is not TransitionState.IDLE

    # ── initial playback ──────────────────────────────────────────────────
    def start(self) -> bool:
        """Put the first clip on screen.  False when nothing is playable."""
        first = self._slots.dequeue_next()
        if first is None:
            return False
        self._slots.promote(first)
        first.set_volume(1.0 if self.audio else 0.0)
        if self._visibility.active:
            first.play()
        self._on_started(first.clip_id)
        self.next = self._slots.peek_next()
        self._start_polling()
        return True

    # ── triggers ──────────────────────────────────────────────────────────
    def force_advance(self) -> bool:
        return self.request_advance("forced")

    def request_advance(self, reason: str = "forced") -> bool:
        if self._torn_down or self.busy or not self._visibility.active:
            return False
        if self.current is None:
            return False

        had_preloaded = self.next is not None
        # once exhausted, only a rescan brings clips back
        incoming = None if self._slots.exhausted else self._slots.dequeue_next()
        if incoming is None:
            logger.warning("advance (%s): nothing left to play", reason)
            self.halt()
            if self._on_exhausted is not None:
                self._on_exhausted()
            return False

        if not had_preloaded or incoming is not self.next:
            incoming.seek_to(0.0)
        self.next = incoming
        self._incoming = incoming

        incoming.set_volume(0.0)
        incoming.play()
        self._slots.ensure_next_prepared()

        logger.debug("advance (%s): %s → %s", reason,
                     self.current_clip_id, incoming.clip_id)
        self.state = TransitionState.SLIDING
        self.progress = 0.0
        self._slide_start = self._scheduler.now()
        cancel(self._slide_timer)
        self._slide_timer = self._scheduler.schedule_periodic(
            config.TRANSITION_TICK, self._slide_tick)
        return True

    def check_playback(self) -> None:
        """Natural-end and pre-end trigger; polled at END_POLL_INTERVAL."""
        if self._torn_down or self.busy or not self._visibility.active:
            return
        cur = self.current
        if cur is None:
            return
        if cur.at_end:
            self.request_advance("ended")
            return
        dur = cur.duration
        if dur and dur > 0:
            remaining = dur - cur.get_position_sec()
            if remaining <= self.lead_time:
                self.request_advance("pre-end")

    # ── slide ─────────────────────────────────────────────────────────────
    def _slide_tick(self) -> None:
        if self._torn_down or self.state is not TransitionState.SLIDING:
            return
        elapsed = self._scheduler.now() - self._slide_start
        frac = min(1.0, elapsed / self.duration) if self.duration > 0 else 1.0
        self.progress = ease_in_out(frac)

        if self.audio:
            if self.current is not None:
                self.current.set_volume(1.0 - self.progress)
            self._incoming.set_volume(self.progress)

        if frac >= 1.0 - _EPSILON:
            self._commit_swap()

    def _commit_swap(self) -> None:
        self.state = TransitionState.SWAPPING
        self._slide_timer = cancel(self._slide_timer)

        incoming, self._incoming = self._incoming, None
        outgoing = self.current
        if outgoing is not None:
            outgoing.pause()
            outgoing.set_volume(0.0)
        self._slots.promote(incoming)
        self.next = None
        if outgoing is not None:
            outgoing.close()

        incoming.set_volume(1.0 if self.audio else 0.0)
        self.progress = 0.0
        self._on_started(incoming.clip_id)

        self.next = self._slots.peek_next()
        self.state = TransitionState.IDLE

    def _on_prepared(self, handle) -> None:
        if self.state is TransitionState.IDLE and self.next is None:
            self.next = handle

    # ── lifecycle ─────────────────────────────────────────────────────────
    def _start_polling(self) -> None:
        if self._poll_timer is None and not self._torn_down:
            self._poll_timer = self._scheduler.schedule_periodic(
                config.END_POLL_INTERVAL, self.check_playback)

    def suspend(self) -> None:
        """App went to the background: finish any slide, stop the clip."""
        if self.state is TransitionState.SLIDING:
            self._commit_swap()
        self._poll_timer = cancel(self._poll_timer)
        if self.current is not None:
            self.current.pause()

    def halt(self) -> None:
        """Out of clips: stop the triggers and let go of the current one."""
        self._slide_timer = cancel(self._slide_timer)
        self._poll_timer = cancel(self._poll_timer)
        self.state = TransitionState.IDLE
        self.progress = 0.0
        self.next = self._incoming = None
        outgoing = self._slots.promote(None)
        if outgoing is not None:
            outgoing.pause()
            outgoing.close()

    def resume(self) -> None:
        if self._torn_down or self.current is None:
            return
        self.current.play()
        self._start_polling()

    def teardown(self) -> None:
        self._torn_down = True
        self._slide_timer = cancel(self._slide_timer)
        self._poll_timer = cancel(self._poll_timer)
