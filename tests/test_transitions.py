import pytest

from conftest import DeferredLoader, FakeSource, run_for
from shuffle_queue import ShuffleQueue
from slot_manager import PreparedSlotManager
from transitions import TransitionController, TransitionState, ease_in_out
from visibility import VisibilitySignal


@pytest.fixture
def rig(scheduler, clock, rng):
    def _make(ids=("a", "b", "c"), failing=(), audio=False, loader=None,
              duration=30.0):
        src = FakeSource(ids, failing, duration=duration)
        q = ShuffleQueue(src.list_clip_ids(), rng)
        q.reset()
        slots = PreparedSlotManager(q, src, loader)
        vis = VisibilitySignal()
        started = []
        tc = TransitionController(slots, scheduler, vis, started.append,
                                  duration=1.0, lead_time=1.0, audio=audio)
        return tc, slots, src, vis, started
    return _make


def test_ease_is_monotonic_and_pinned():
    xs = [i / 100 for i in range(101)]
    ys = [ease_in_out(x) for x in xs]
    assert ys[0] == 0.0 and ys[-1] == 1.0
    assert all(b >= a for a, b in zip(ys, ys[1:]))


def test_start_plays_first_and_prepares_next(rig):
    tc, slots, _, _, started = rig()
    assert tc.start()
    assert started == [tc.current_clip_id]
    assert tc.current.playing
    assert tc.next is not None and tc.next is slots.prepared
    assert tc.next_clip_id != tc.current_clip_id


def test_start_with_nothing_playable(rig):
    tc, slots, _, _, started = rig(ids=())
    assert not tc.start()
    assert started == []
    assert slots.exhausted


def test_full_transition_cycle(rig, scheduler, clock):
    tc, slots, _, _, started = rig()
    tc.start()
    old, incoming = tc.current, tc.next

    assert tc.force_advance()
    assert tc.state is TransitionState.SLIDING
    assert incoming.playing
    assert incoming.seeks == []                 # preloaded: no seek

    run_for(scheduler, clock, 0.5)
    assert 0.0 < tc.progress < 1.0
    assert tc.current is old                    # still authoritative

    run_for(scheduler, clock, 0.6)
    assert tc.state is TransitionState.IDLE
    assert tc.current is incoming
    assert tc.progress == 0.0
    assert old.closed and not old.playing and old.volume == 0.0
    assert started == [old.clip_id, incoming.clip_id]
    assert tc.next is not incoming


def test_second_trigger_while_sliding_is_ignored(rig, scheduler, clock):
    tc, _, _, _, started = rig()
    tc.start()
    assert tc.force_advance()
    assert not tc.force_advance()
    assert not tc.request_advance("ended")
    run_for(scheduler, clock, 1.2)
    assert len(started) == 2
    assert tc.state is TransitionState.IDLE
    assert tc.force_advance()


def test_trigger_ignored_in_background(rig):
    tc, _, _, vis, _ = rig()
    tc.start()
    vis.foreground = False
    assert not tc.force_advance()
    assert tc.state is TransitionState.IDLE


def test_play_count_exact_over_many_transitions(rig, scheduler, clock):
    tc, _, _, _, started = rig()
    tc.start()
    n = 7
    for _ in range(n):
        assert tc.force_advance()
        run_for(scheduler, clock, 1.2)
    assert len(started) == n + 1
    assert all(a != b for a, b in zip(started, started[1:]))


def test_natural_end_triggers(rig, scheduler, clock):
    tc, _, _, _, started = rig()
    tc.start()
    tc.current.at_end = True
    run_for(scheduler, clock, 0.15)
    assert tc.state is TransitionState.SLIDING


def test_pre_end_lead_time_triggers(rig, scheduler, clock):
    tc, _, _, _, _ = rig(duration=10.0)
    tc.start()
    tc.current.position = 8.5
    run_for(scheduler, clock, 0.15)
    assert tc.state is TransitionState.IDLE
    tc.current.position = 9.0
    run_for(scheduler, clock, 0.15)
    assert tc.state is TransitionState.SLIDING


def test_unprepared_incoming_is_rewound(rig, scheduler, clock):
    loader = DeferredLoader()
    tc, slots, _, _, _ = rig(loader=loader)
    tc.start()
    assert tc.next is None                      # still loading
    assert tc.force_advance()
    assert tc.next.seeks == [0.0]


def test_async_prepared_fills_visible_next(rig):
    loader = DeferredLoader()
    tc, _, _, _, _ = rig(loader=loader)
    tc.start()
    assert tc.next is None
    loader.finish_all()
    assert tc.next is not None


def test_no_next_available_keeps_current(rig, scheduler, clock):
    tc, _, _, _, started = rig(ids=("a", "b"), failing={"b"})
    tc.start()
    assert tc.current_clip_id == "a"
    # "a" is the only playable clip, so it comes round again
    assert tc.force_advance()
    run_for(scheduler, clock, 1.2)
    assert started == ["a", "a"]


def test_running_dry_mid_session_halts(scheduler, clock, rng):
    src = FakeSource(("a", "b"))
    q = ShuffleQueue(src.list_clip_ids(), rng)
    q.reset()
    slots = PreparedSlotManager(q, src)
    gone = []
    tc = TransitionController(slots, scheduler, VisibilitySignal(),
                              lambda clip_id: None,
                              on_exhausted=lambda: gone.append(True),
                              duration=1.0, lead_time=1.0)
    tc.start()
    cur = tc.current
    tc.next = None
    slots._prepared = None
    src.failing = {"a", "b"}
    before = len(src.resolved)

    assert not tc.force_advance()
    assert len(src.resolved) - before <= 2 * len(src.ids)
    assert gone == [True]
    assert slots.exhausted
    assert tc.current is None and cur.closed
    assert tc.state is TransitionState.IDLE

    before = len(src.resolved)
    run_for(scheduler, clock, 5.0)
    assert not tc.force_advance()
    assert len(src.resolved) == before
    assert scheduler.pending() == 0


def test_audio_crossfade(rig, scheduler, clock):
    tc, _, _, _, _ = rig(audio=True)
    tc.start()
    old, new = tc.current, tc.next
    assert old.volume == 1.0
    tc.force_advance()
    run_for(scheduler, clock, 0.5)
    assert old.volume == pytest.approx(1.0 - tc.progress)
    assert new.volume == pytest.approx(tc.progress)
    run_for(scheduler, clock, 0.7)
    assert new.volume == 1.0
    assert old.volume == 0.0


def test_muted_without_audio(rig, scheduler, clock):
    tc, _, _, _, _ = rig(audio=False)
    tc.start()
    tc.force_advance()
    run_for(scheduler, clock, 1.2)
    assert tc.current.volume == 0.0


def test_suspend_mid_slide_commits(rig, scheduler, clock):
    tc, _, _, _, started = rig()
    tc.start()
    incoming = tc.next
    tc.force_advance()
    run_for(scheduler, clock, 0.3)
    tc.suspend()
    assert tc.state is TransitionState.IDLE
    assert tc.current is incoming and not incoming.playing
    assert len(started) == 2
    tc.resume()
    assert incoming.playing


def test_teardown_silences_timers(rig, scheduler, clock):
    tc, _, _, _, started = rig()
    tc.start()
    tc.force_advance()
    tc.teardown()
    run_for(scheduler, clock, 2.0)
    assert len(started) == 1
    assert not tc.force_advance()
