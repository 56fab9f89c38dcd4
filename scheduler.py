"""
scheduler.py – cooperative timers for the main loop

All core state lives on one thread (the pygame loop).  Periodic and one-shot
callbacks are kept here and fired from `run_pending()` once per frame, so no
timer ever runs concurrently with another.  Worker threads hand results back
with `post()`, which goes through the same thread-safe FIFO idea as
events.EventManager.
"""
from __future__ import annotations

import logging
import queue
import time
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class TimerToken:
    """Handle returned by the schedule_* calls.  `cancel()` is idempotent."""

    __slots__ = ("interval", "callback", "due", "cancelled")

    def __init__(self, callback: Callback, due: float,
                 interval: Optional[float] = None):
        self.callback  = callback
        self.due       = due
        self.interval  = interval
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not self.cancelled


class Scheduler:
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._timers: List[TimerToken] = []
        self._posted: "queue.Queue[Callback]" = queue.Queue()

    # ── clock ─────────────────────────────────────────────────────────────
    def now(self) -> float:
        return self._clock()

    # ── scheduling ────────────────────────────────────────────────────────
    def schedule_periodic(self, interval: float, callback: Callback) -> TimerToken:
        if interval <= 0:
            raise ValueError("interval must be positive")
        tok = TimerToken(callback, self.now() + interval, interval)
        self._timers.append(tok)
        return tok

    def schedule_once(self, delay: float, callback: Callback) -> TimerToken:
        tok = TimerToken(callback, self.now() + max(0.0, delay))
        self._timers.append(tok)
        return tok

    def post(self, callback: Callback) -> None:
        """Any thread may call this; the callback runs on the loop thread."""
        self._posted.put(callback)

    # ── main-loop consumer ────────────────────────────────────────────────
    def run_pending(self) -> int:
        """Fire posted callbacks, then every due timer.  Returns the count."""
        fired = 0
        while True:
            try:
                cb = self._posted.get_nowait()
            except queue.Empty:
                break
            cb()
            fired += 1

        now = self.now()
        # timers added by callbacks wait for the next pass
        due = sorted((t for t in self._timers if t.active and t.due <= now),
                     key=lambda t: t.due)
        for tok in due:
            if tok.cancelled:
                continue
            if tok.interval is None:
                tok.cancelled = True
            else:
                tok.due += tok.interval
                if tok.due <= now:          # fell behind; don't burst
                    tok.due = now + tok.interval
            tok.callback()
            fired += 1

        self._timers = [t for t in self._timers if t.active]
        return fired

    def cancel_all(self) -> None:
        for tok in self._timers:
            tok.cancel()
        self._timers.clear()

    def pending(self) -> int:
        return sum(1 for t in self._timers if t.active)


def cancel(token: Optional[TimerToken]) -> None:
    """Cancel *token* if there is one; returns nothing so callers can null it."""
    if token is not None:
        token.cancel()
