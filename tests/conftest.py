"""Shared fakes: a hand-cranked clock, scripted playback handles and a clip source."""

from __future__ import annotations

import random

import pytest

from clip_catalog import ResolutionError
from scheduler import Scheduler
from stats_store import StatsStore


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.t = start

    def __call__(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += dt


class FakeHandle:
    def __init__(self, clip_id: str, duration: float = 30.0):
        self.clip_id = clip_id
        self.duration = duration
        self.position = 0.0
        self.volume = 1.0
        self.playing = False
        self.closed = False
        self.at_end = False
        self.ready = True
        self.seeks: list[float] = []
        self.sar = 1.0

    def play(self):
        self.playing = True

    def pause(self):
        self.playing = False

    def set_volume(self, v):
        self.volume = v

    def seek_to(self, sec):
        self.seeks.append(sec)
        self.position = sec

    def get_position_sec(self):
        return self.position

    def is_ready(self):
        return self.ready

    def decode_frame(self):
        return None

    def close(self):
        self.closed = True
        self.playing = False


class FakeSource:
    def __init__(self, ids, failing=(), duration: float = 30.0):
        self.ids = list(ids)
        self.failing = set(failing)
        self.duration = duration
        self.resolved: list[str] = []
        self.handles: list[FakeHandle] = []

    def list_clip_ids(self):
        return list(self.ids)

    def rescan(self):
        return self.list_clip_ids()

    def resolve(self, clip_id):
        self.resolved.append(clip_id)
        if clip_id in self.failing:
            raise ResolutionError(clip_id, "missing")
        h = FakeHandle(clip_id, self.duration)
        self.handles.append(h)
        return h


class DeferredLoader:
    """Holds loads until the test releases them, like a slow worker thread."""

    def __init__(self):
        self.jobs = []

    def submit(self, resolve, clip_id, done):
        self.jobs.append((resolve, clip_id, done))

    def finish_all(self):
        while self.jobs:
            resolve, clip_id, done = self.jobs.pop(0)
            try:
                handle = resolve(clip_id)
            except ResolutionError as exc:
                done(None, exc)
            else:
                done(handle, None)


def run_for(scheduler: Scheduler, clock: FakeClock, seconds: float,
            step: float = 0.05) -> None:
    """Crank the clock forward in *step* increments, firing timers as we go."""
    steps = int(round(seconds / step))
    for _ in range(steps):
        clock.advance(step)
        scheduler.run_pending()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    return Scheduler(clock)


@pytest.fixture
def stats(tmp_path, scheduler):
    return StatsStore(str(tmp_path / "stats.json"), scheduler, background=False)


@pytest.fixture
def rng():
    return random.Random(1234)
