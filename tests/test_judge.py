import pytest

import beat_scheduler
import judge
from gameplay_models import BeatEvent, Lane, Level, PlayerTarget


ON_PLATFORM = PlayerTarget(lane=Lane.LEFT, level=Level.HIGH)
OFF_PLATFORM = PlayerTarget(lane=Lane.CENTER, level=Level.LOW)


def _engine(*events):
    if not events:
        events = (BeatEvent(time_seconds=10.0, lane=Lane.LEFT, level=Level.HIGH),)
    return judge.JudgeEngine(beat_scheduler.BeatScheduler(events), judge.HitWindow())


def test_hit_window_bounds():
    window = judge.HitWindow()
    assert window.seconds == judge.HIT_WINDOW_SECONDS == 0.25
    assert window.opens_at(10.0) == pytest.approx(9.75)
    assert window.closes_at(10.0) == pytest.approx(10.25)


def test_hit_acceptance_counts_once():
    engine = _engine()
    first = engine.update_for_time(9.80, ON_PLATFORM)
    second = engine.update_for_time(10.0, ON_PLATFORM)

    assert [event.judgement for event in first] == ["hit"]
    assert second == []
    assert engine.score_state().score == 1
    assert engine.score_state().streak == 1

    event = first[0]
    assert event.is_hit and not event.is_miss
    assert event.beat_index == 0
    assert event.delta_seconds == pytest.approx(-0.2)
    assert (event.lane, event.level) == (Lane.LEFT, Level.HIGH)


def test_partial_presence_inside_window_still_hits():
    engine = _engine()
    assert engine.update_for_time(9.76, OFF_PLATFORM) == []
    assert engine.update_for_time(10.1, OFF_PLATFORM) == []
    hits = engine.update_for_time(10.25, ON_PLATFORM)
    assert [event.judgement for event in hits] == ["hit"]


def test_no_judging_before_window_opens():
    engine = _engine()
    assert engine.update_for_time(9.70, ON_PLATFORM) == []
    scheduled = engine.beat_scheduler().beats()[0]
    assert not scheduled.window_opened
    assert not scheduled.resolved


def test_miss_after_window_expires():
    engine = _engine()
    engine.score_state().streak = 4
    assert engine.update_for_time(9.75, OFF_PLATFORM) == []
    assert engine.update_for_time(10.25, OFF_PLATFORM) == []

    misses = engine.update_for_time(10.26, OFF_PLATFORM)
    assert [event.judgement for event in misses] == ["miss"]
    assert engine.score_state().streak == 0
    assert engine.score_state().miss_count == 1

    # Resolved beats never re-emit.
    assert engine.update_for_time(11.0, OFF_PLATFORM) == []


def test_miss_when_first_tick_is_already_late():
    engine = _engine()
    misses = engine.update_for_time(12.0, ON_PLATFORM)
    assert [event.judgement for event in misses] == ["miss"]
    scheduled = engine.beat_scheduler().beats()[0]
    assert scheduled.window_opened and scheduled.resolved


def test_every_expired_beat_resolves_in_one_tick():
    engine = _engine(
        BeatEvent(time_seconds=1.0, lane=Lane.LEFT, level=Level.LOW),
        BeatEvent(time_seconds=1.5, lane=Lane.RIGHT, level=Level.LOW),
        BeatEvent(time_seconds=5.0, lane=Lane.RIGHT, level=Level.LOW),
    )
    misses = engine.update_for_time(3.0, OFF_PLATFORM)
    assert [event.beat_index for event in misses] == [0, 1]
    assert not engine.beat_scheduler().beats()[2].window_opened


def test_window_monotonicity_over_a_schedule():
    engine = _engine(
        BeatEvent(time_seconds=1.0, lane=Lane.CENTER, level=Level.LOW),
        BeatEvent(time_seconds=1.5, lane=Lane.LEFT, level=Level.HIGH),
        BeatEvent(time_seconds=2.0, lane=Lane.CENTER, level=Level.LOW),
    )
    seen_resolved = set()
    t = 0.0
    while t < 3.0:
        engine.update_for_time(t, OFF_PLATFORM)
        for beat in engine.beat_scheduler().beats():
            if beat.resolved:
                assert beat.window_opened
                seen_resolved.add(beat.index)
            else:
                assert beat.index not in seen_resolved
        t += 0.05
    assert seen_resolved == {0, 1, 2}


def test_score_state_tracks_streaks():
    state = judge.ScoreState()
    for judgement in ("hit", "hit", "miss", "hit", "bogus"):
        state.apply_judgement(judgement)
    assert state.score == 3
    assert state.streak == 1
    assert state.max_streak == 2
    assert state.hit_count == 3
    assert state.miss_count == 1


def test_reset_clears_score_and_beats():
    engine = _engine()
    engine.update_for_time(10.0, ON_PLATFORM)
    assert engine.recent_judgements()

    engine.reset()
    assert engine.score_state() == judge.ScoreState()
    assert engine.recent_judgements() == []
    assert not engine.beat_scheduler().beats()[0].resolved
    assert engine.next_beat_index(0.0) == 0


def test_self_check_passes():
    judge._run_unit_tests()
