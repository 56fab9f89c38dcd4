"""
stats_store.py

Durable ledger for the boredom statistics.

Layout on disk (one JSON file):

    {
      "perVideo": {"<clip>": {"boredomDeclared": bool,
                              "boredomInstance": int,
                              "boredomTimeAccumulated": float}},
      "totalVideoPlays": int,
      "realPlaybackTimeTotal": float,
      "boredAcknowledgementTimes": [float, ...]
    }

Structural changes (plays, instances, declarations) are written at once.
Time accumulation and foreground ticking arrive several times a second, so
they are coalesced and written SAVE_DEBOUNCE_SEC after the last change; a
crash loses at most that window.  Every write goes to a temp file that is
then renamed over the real one.  Reading is forgiving: a missing or mangled
file just means starting from zero.
"""

from __future__ import annotations

import json
import logging
import os
import queue
import tempfile
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import config
from scheduler import Scheduler, TimerToken, cancel

logger = logging.getLogger(__name__)


# ── records ─────────────────────────────────────────────────────────────────
@dataclass
class BoredomRecord:
    declared: bool = False
    instance_count: int = 0
    time_accumulated: float = 0.0

    def to_json(self) -> dict:
        return {
            "boredomDeclared":        self.declared,
            "boredomInstance":        self.instance_count,
            "boredomTimeAccumulated": self.time_accumulated,
        }

    @classmethod
    def from_json(cls, d: dict) -> "BoredomRecord":
        return cls(
            declared=bool(d.get("boredomDeclared", False)),
            instance_count=max(0, int(d.get("boredomInstance", 0))),
            time_accumulated=max(0.0, float(d.get("boredomTimeAccumulated", 0.0))),
        )


@dataclass
class GlobalStats:
    total_video_plays: int = 0
    real_playback_time_total: float = 0.0
    bored_acknowledgement_times: List[float] = field(default_factory=list)


def load_payload(path: str) -> tuple[Dict[str, BoredomRecord], GlobalStats]:
    """Parse *path*; any failure yields empty defaults."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        per_video = {str(k): BoredomRecord.from_json(v)
                     for k, v in data.get("perVideo", {}).items()}
        stats = GlobalStats(
            total_video_plays=max(0, int(data.get("totalVideoPlays", 0))),
            real_playback_time_total=max(0.0, float(data.get("realPlaybackTimeTotal", 0.0))),
            bored_acknowledgement_times=[float(t) for t in
                                         data.get("boredAcknowledgementTimes", [])],
        )
        return per_video, stats
    except FileNotFoundError:
        return {}, GlobalStats()
    except (OSError, ValueError, TypeError, AttributeError) as exc:
        logger.warning("stats file %s unreadable (%s); starting fresh", path, exc)
        return {}, GlobalStats()


def write_atomic(path: str, payload: dict) -> bool:
    """Write *payload* as JSON via temp file + rename.  False on failure."""
    directory = os.path.dirname(path) or "."
    tmp = None
    try:
        os.makedirs(directory, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".stats-", suffix=".tmp", dir=directory)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
        return True
    except (OSError, TypeError, ValueError) as exc:
        logger.warning("could not save stats to %s: %s", path, exc)
        if tmp and os.path.exists(tmp):
            try:
                os.unlink(tmp)
            except OSError:
                pass
        return False


# ── background writer ──────────────────────────────────────────────────────
class _Writer:
    """Single daemon thread writing snapshots in the order they were taken."""

    def __init__(self, path: str):
        self._path = path
        self._q: "queue.Queue[Optional[dict]]" = queue.Queue()
        self._thread = threading.Thread(target=self._run, name="stats-writer",
                                        daemon=True)
        self._thread.start()

    def submit(self, payload: dict) -> None:
        self._q.put(payload)

    def _run(self) -> None:
        while True:
            payload = self._q.get()
            try:
                if payload is None:
                    return
                write_atomic(self._path, payload)
            finally:
                self._q.task_done()

    def drain(self) -> None:
        self._q.join()

    def stop(self) -> None:
        self._q.put(None)
        self._thread.join(timeout=2.0)


# ── store ───────────────────────────────────────────────────────────────────
class StatsStore:
    def __init__(self, path: str | None = None,
                 scheduler: Scheduler | None = None,
                 debounce: float = config.SAVE_DEBOUNCE_SEC,
                 background: bool = True):
        self.path = path or config.STATS_PATH
        self._scheduler = scheduler or Scheduler()
        self._debounce = debounce
        self._save_timer: Optional[TimerToken] = None
        self._writer = _Writer(self.path) if background else None

        self.per_video, self.globals = load_payload(self.path)
        logger.info("stats loaded: %d clip record(s), %d play(s)",
                    len(self.per_video), self.globals.total_video_plays)

    # ── reads ─────────────────────────────────────────────────────────────
    def record(self, clip_id: str) -> BoredomRecord:
        rec = self.per_video.get(clip_id)
        if rec is None:
            rec = self.per_video[clip_id] = BoredomRecord()
        return rec

    def peek_record(self, clip_id: str) -> BoredomRecord:
        """Like `record()` but never creates an entry."""
        return self.per_video.get(clip_id) or BoredomRecord()

    @property
    def total_video_plays(self) -> int:
        return self.globals.total_video_plays

    @property
    def real_playback_time_total(self) -> float:
        return self.globals.real_playback_time_total

    @property
    def bored_acknowledgement_times(self) -> List[float]:
        return list(self.globals.bored_acknowledgement_times)

    @property
    def total_elapsed_bored_time(self) -> float:
        return sum(r.time_accumulated for r in self.per_video.values())

    @property
    def total_boredom_instances(self) -> int:
        return sum(r.instance_count for r in self.per_video.values())

    def to_payload(self) -> dict:
        return {
            "perVideo": {k: r.to_json() for k, r in self.per_video.items()},
            "totalVideoPlays": self.globals.total_video_plays,
            "realPlaybackTimeTotal": self.globals.real_playback_time_total,
            "boredAcknowledgementTimes": list(self.globals.bored_acknowledgement_times),
        }

    # ── structural mutations (saved now) ──────────────────────────────────
    def increment_plays(self) -> None:
        self.globals.total_video_plays += 1
        self.save_now()

    def record_boredom_instance(self, clip_id: str) -> int:
        rec = self.record(clip_id)
        rec.instance_count += 1
        self.save_now()
        return rec.instance_count

    def declare_boredom(self, clip_id: str) -> bool:
        """Mark *clip_id* boring.  True only the first time."""
        rec = self.record(clip_id)
        if rec.declared:
            return False
        rec.declared = True
        self.save_now()
        return True

    def acknowledge_boredom(self) -> float:
        """Stamp the acknowledgement timeline with the real playback clock."""
        ts = self.globals.real_playback_time_total
        self.globals.bored_acknowledgement_times.append(ts)
        self.save_now()
        return ts

    # ── high-frequency mutations (debounced) ──────────────────────────────
    def accumulate_time(self, clip_id: str, delta: float) -> None:
        if delta <= 0:
            return
        self.record(clip_id).time_accumulated += delta
        self.schedule_save()

    def tick_foreground(self, seconds: float = 1.0) -> None:
        if seconds <= 0:
            return
        self.globals.real_playback_time_total += seconds
        self.schedule_save()

    # ── persistence ───────────────────────────────────────────────────────
    def schedule_save(self) -> None:
        cancel(self._save_timer)
        self._save_timer = self._scheduler.schedule_once(self._debounce,
                                                         self._flush)

    @property
    def save_pending(self) -> bool:
        return self._save_timer is not None and self._save_timer.active

    def _flush(self) -> None:
        self._save_timer = None
        payload = self.to_payload()        # snapshot on the loop thread
        if self._writer is not None:
            self._writer.submit(payload)
        else:
            write_atomic(self.path, payload)

    def save_now(self) -> None:
        self._save_timer = cancel(self._save_timer)
        self._flush()

    def flush_now(self) -> None:
        self.save_now()
        if self._writer is not None:
            self._writer.drain()

    def close(self) -> None:
        self.flush_now()
        if self._writer is not None:
            self._writer.stop()
            self._writer = None
