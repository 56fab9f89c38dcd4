"""
slot_manager.py

Keeps the two playback slots – the clip on screen (`current`) and the one
waiting in the wings (`prepared`) – and does the prepare-ahead work.

Loading goes through a loader: `ThreadedLoader` resolves on a worker thread
and posts the result back onto the scheduler thread, `ImmediateLoader` does
it inline.  Clips that fail to resolve are skipped for the rest of the
current shuffle pass.  If a whole pass (plus one reshuffle) turns up nothing
playable, `exhausted` is raised; prepare-ahead stays off until a rescan
clears it or a synchronous resolve succeeds.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from clip_catalog import ResolutionError
from scheduler import Scheduler
from shuffle_queue import ShuffleQueue

logger = logging.getLogger(__name__)

Done = Callable[[Optional[object], Optional[ResolutionError]], None]


# ── loaders ────────────────────────────────────────────────────────────────
class ImmediateLoader:
    """Resolve on the calling thread."""

    def submit(self, resolve, clip_id: str, done: Done) -> None:
        try:
            handle = resolve(clip_id)
        except ResolutionError as exc:
            done(None, exc)
        else:
            done(handle, None)


class ThreadedLoader:
    """Resolve on a daemon thread; completion runs on the scheduler thread."""

    def __init__(self, scheduler: Scheduler):
        self._scheduler = scheduler

    def submit(self, resolve, clip_id: str, done: Done) -> None:
        def _work():
            handle, err = None, None
            try:
                handle = resolve(clip_id)
            except ResolutionError as exc:
                err = exc
            self._scheduler.post(lambda: done(handle, err))

        threading.Thread(target=_work, name=f"load-{clip_id}", daemon=True).start()


# ── slot manager ───────────────────────────────────────────────────────────
class PreparedSlotManager:
    def __init__(self, queue: ShuffleQueue, source, loader=None):
        self._queue    = queue
        self._source   = source
        self._loader   = loader or ImmediateLoader()
        self.current   = None
        self._prepared = None
        self._pending  = False
        self._closed   = False
        self.exhausted = False
        self._listeners: List[Callable[[object], None]] = []

    @property
    def prepared(self):
        return self._prepared

    @property
    def loading(self) -> bool:
        return self._pending

    def add_prepared_listener(self, cb: Callable[[object], None]) -> None:
        self._listeners.append(cb)

    # ── async prepare-ahead ───────────────────────────────────────────────
    def ensure_next_prepared(self) -> None:
        if self._closed or self.exhausted:
            return
        if self._prepared is not None or self._pending:
            return
        self._pending = True
        self._attempt(reshuffled=False)

    def _attempt(self, reshuffled: bool) -> None:
        clip_id = self._queue.take(refill=False)
        if clip_id is None and not reshuffled and self._queue.catalog:
            self._queue.reset()
            reshuffled = True
            clip_id = self._queue.take(refill=False)
        if clip_id is None:
            self._pending  = False
            self.exhausted = True
            logger.warning("no resolvable clip in a full pass")
            return

        self._loader.submit(
            self._source.resolve,
            clip_id,
            lambda handle, err: self._on_loaded(handle, err, reshuffled),
        )

    def _on_loaded(self, handle, err, reshuffled: bool) -> None:
        if self._closed:
            if handle is not None:
                handle.close()
            return
        if err is not None:
            logger.warning("skipping %s", err)
            self._attempt(reshuffled)
            return

        self._pending = False
        self.exhausted = False
        if self._prepared is not None:
            # a synchronous pass got there first; this one is surplus
            handle.close()
            return
        self._store(handle)
        for cb in self._listeners:
            cb(handle)

    def _store(self, handle) -> None:
        handle.set_volume(0.0)
        handle.pause()
        self._prepared = handle

    # ── synchronous paths ─────────────────────────────────────────────────
    def _resolve_now(self):
        reshuffled = False
        while True:
            clip_id = self._queue.take(refill=False)
            if clip_id is None:
                if reshuffled or not self._queue.catalog:
                    return None
                self._queue.reset()
                reshuffled = True
                continue
            try:
                handle = self._source.resolve(clip_id)
            except ResolutionError as exc:
                logger.warning("skipping %s", exc)
                continue
            self.exhausted = False
            return handle

    def dequeue_next(self):
        """
        Hand over the prepared handle, resolving one on the spot if needed.
        The on-the-spot path is the rest of the current pass plus a single
        reshuffled pass; after that the manager is exhausted.
        """
        if self._prepared is not None:
            handle, self._prepared = self._prepared, None
            return handle

        handle = self._resolve_now()
        if handle is None:
            self.exhausted = True
            logger.warning("no resolvable clip in a full pass")
            return None
        handle.set_volume(0.0)
        return handle

    def peek_next(self):
        if self._prepared is None:
            self.ensure_next_prepared()
        return self._prepared

    # ── ownership ─────────────────────────────────────────────────────────
    def promote(self, handle):
        """Make *handle* current and return the one it replaces."""
        outgoing, self.current = self.current, handle
        return outgoing

    def close(self) -> None:
        self._closed = True
        for h in (self.current, self._prepared):
            if h is not None:
                h.close()
        self.current = self._prepared = None
