import pytest

from boredom import (BoredomEngine, PlaybackEphemeral, TickGuards,
                     accumulation_step, countdown_step)
from conftest import run_for
from visibility import VisibilitySignal


# ── pure steps ──────────────────────────────────────────────────────────────
def test_countdown_step_decrements_and_fires():
    s = PlaybackEphemeral(skip_active=True, skip_remaining=0.1, expanded=True)
    s, fired = countdown_step(s, 0.05, TickGuards())
    assert not fired and s.skip_remaining == pytest.approx(0.05)
    s, fired = countdown_step(s, 0.2, TickGuards())
    assert fired
    assert s.skip_remaining == 0.0 and not s.skip_active and not s.expanded


def test_countdown_step_paused_when_hidden():
    s = PlaybackEphemeral(skip_active=True, skip_remaining=3.0)
    for guards in (TickGuards(foreground=False), TickGuards(visible=False)):
        out, fired = countdown_step(s, 1.0, guards)
        assert out.skip_remaining == 3.0 and not fired


def test_countdown_step_ignores_bad_delta_and_inactive():
    s = PlaybackEphemeral(skip_active=True, skip_remaining=3.0)
    assert countdown_step(s, -0.5, TickGuards())[0].skip_remaining == 3.0
    idle = PlaybackEphemeral(skip_active=False, skip_remaining=3.0)
    assert countdown_step(idle, 1.0, TickGuards())[0].skip_remaining == 3.0


def test_accumulation_step_gating():
    undeclared = TickGuards(declared=False)
    declared = TickGuards(declared=True)
    acc = 0.0
    for _ in range(10):
        acc = accumulation_step(acc, 0.25, undeclared)
    assert acc == 0.0
    for _ in range(10):
        acc = accumulation_step(acc, 0.25, declared)
    assert acc == pytest.approx(2.5)
    assert accumulation_step(acc, 0.0, declared) == acc
    assert accumulation_step(acc, -1.0, declared) == acc
    assert accumulation_step(acc, 1.0, TickGuards(declared=True, visible=False)) == acc
    assert accumulation_step(acc, 1.0, TickGuards(declared=True, foreground=False)) == acc


# ── engine ──────────────────────────────────────────────────────────────────
@pytest.fixture
def engine(stats, scheduler):
    vis = VisibilitySignal()
    skips = []
    eng = BoredomEngine(stats, scheduler, vis, on_skip=lambda: skips.append(eng.clip_id))
    eng.skips = skips
    eng.vis = vis
    return eng


def test_new_playback_resets_and_counts(engine, stats):
    engine.on_new_playback_started("a.mp4")
    engine.ephemeral.expanded = True
    engine.ephemeral.skip_remaining = 1.0
    engine.on_new_playback_started("b.mp4")
    assert engine.ephemeral == PlaybackEphemeral()
    assert stats.total_video_plays == 2


def test_bored_press_declares_once_counts_every_time(engine, stats, scheduler, clock):
    engine.on_new_playback_started("a.mp4")
    for _ in range(3):
        assert engine.on_bored_pressed()
        run_for(scheduler, clock, 2.05)        # let the panel collapse
    rec = stats.record("a.mp4")
    assert rec.declared
    assert rec.instance_count == 3
    assert len(stats.bored_acknowledgement_times) == 3


def test_press_while_expanded_is_ignored(engine, stats):
    engine.on_new_playback_started("a.mp4")
    assert engine.on_bored_pressed()
    assert not engine.on_bored_pressed()
    assert stats.record("a.mp4").instance_count == 1


def test_press_in_background_is_ignored(engine, stats):
    engine.on_new_playback_started("a.mp4")
    engine.vis.foreground = False
    assert not engine.on_bored_pressed()
    assert stats.peek_record("a.mp4").instance_count == 0


def test_expanded_collapses_after_window(engine, scheduler, clock):
    engine.on_new_playback_started("a.mp4")
    engine.on_bored_pressed()
    run_for(scheduler, clock, 1.9)
    assert engine.ephemeral.expanded
    run_for(scheduler, clock, 0.2)
    assert not engine.ephemeral.expanded


def test_second_press_does_not_restart_countdown(engine, scheduler, clock):
    engine.on_new_playback_started("a.mp4")
    engine.on_bored_pressed()
    assert engine.ephemeral.skip_triggered_this_play
    run_for(scheduler, clock, 3.0)
    assert engine.ephemeral.skip_remaining == pytest.approx(2.0, abs=0.06)
    before = engine.ephemeral.skip_remaining

    assert engine.on_bored_pressed()
    assert engine.ephemeral.skip_remaining == before
    assert engine.ephemeral.skip_active


def test_countdown_fires_skip_after_five_seconds(engine, scheduler, clock):
    engine.on_new_playback_started("a.mp4")
    engine.on_bored_pressed()
    run_for(scheduler, clock, 4.9)
    assert engine.skips == []
    run_for(scheduler, clock, 0.15)
    assert engine.skips == ["a.mp4"]
    assert not engine.ephemeral.skip_active
    assert not engine.ephemeral.expanded
    run_for(scheduler, clock, 2.0)
    assert engine.skips == ["a.mp4"]


def test_countdown_pauses_in_background_and_keeps_remaining(engine, scheduler, clock):
    engine.on_new_playback_started("a.mp4")
    engine.on_bored_pressed()
    run_for(scheduler, clock, 2.0)
    engine.suspend()
    engine.vis.foreground = False
    remaining = engine.ephemeral.skip_remaining

    run_for(scheduler, clock, 10.0)
    assert engine.ephemeral.skip_remaining == remaining
    assert engine.skips == []

    engine.vis.foreground = True
    engine.resume()
    run_for(scheduler, clock, remaining - 0.2)
    assert engine.skips == []
    run_for(scheduler, clock, 0.3)
    assert engine.skips == ["a.mp4"]


def test_accumulation_only_after_declaration(engine, stats, scheduler, clock):
    engine.on_new_playback_started("a.mp4")
    run_for(scheduler, clock, 2.0)
    assert stats.peek_record("a.mp4").time_accumulated == 0.0
    assert stats.real_playback_time_total == pytest.approx(2.0, abs=0.26)

    engine.on_bored_pressed()
    run_for(scheduler, clock, 10.0)            # well past the countdown
    acc = stats.record("a.mp4").time_accumulated
    assert acc == pytest.approx(10.0, abs=0.3)


def test_accumulation_suppressed_by_overlay(engine, stats, scheduler, clock):
    engine.on_new_playback_started("a.mp4")
    engine.on_bored_pressed()
    run_for(scheduler, clock, 1.0)
    engine.suspend()
    engine.vis.overlay_fraction = 0.9
    frozen = stats.record("a.mp4").time_accumulated
    real = stats.real_playback_time_total

    run_for(scheduler, clock, 5.0)
    engine.resume()                             # still suppressed: no-op
    run_for(scheduler, clock, 5.0)
    assert stats.record("a.mp4").time_accumulated == frozen
    assert stats.real_playback_time_total == real


def test_small_overlay_does_not_suppress(engine, stats, scheduler, clock):
    engine.vis.overlay_fraction = 0.3
    engine.on_new_playback_started("a.mp4")
    engine.on_bored_pressed()
    run_for(scheduler, clock, 1.0)
    assert stats.record("a.mp4").time_accumulated > 0


def test_time_is_charged_to_the_clip_that_was_playing(engine, stats, scheduler, clock):
    engine.on_new_playback_started("a.mp4")
    engine.on_bored_pressed()
    run_for(scheduler, clock, 1.0)
    engine.on_new_playback_started("b.mp4")
    run_for(scheduler, clock, 1.0)
    assert stats.record("a.mp4").time_accumulated == pytest.approx(1.0, abs=0.01)
    assert stats.peek_record("b.mp4").time_accumulated == 0.0


def test_teardown_stops_everything(engine, stats, scheduler, clock):
    engine.on_new_playback_started("a.mp4")
    engine.on_bored_pressed()
    engine.teardown()
    acc = stats.record("a.mp4").time_accumulated
    run_for(scheduler, clock, 6.0)
    assert engine.skips == []
    assert stats.record("a.mp4").time_accumulated == acc
    assert not engine.on_bored_pressed()
