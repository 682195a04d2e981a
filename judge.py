# -*- coding: utf-8 -*-
########################
# judge.py
########################
# Purpose:
# - Hit judgement and scoring engine.
# - Opens and resolves per-beat hit windows against the live song time and the player's target.
# - Generates JudgementEvent for both hits and misses.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - Strict inputs: consume only song_time_seconds and the current PlayerTarget.
# - BeatScheduler owns the beat list and judge state; JudgeEngine mutates it via the scheduler boundary.
# - JudgeEngine is the only writer of ScoreState.
# - Being on the matching platform at any tick inside the window is a hit. First matching tick wins.
# - A window that closes unresolved is a miss. The caller decides what a miss does to the run.
#
########################
# Interfaces:
# Public dataclasses:
# - HitWindow(seconds: float)
#   - opens_at(beat_time_seconds: float) -> float
#   - closes_at(beat_time_seconds: float) -> float
# - ScoreState(score: int, streak: int, max_streak: int, hit_count: int, miss_count: int)
#   - apply_judgement(judgement: str) -> None
#
# Public classes:
# - class JudgeEngine
#   - __init__(beat_scheduler: BeatScheduler, hit_window: HitWindow)
#   - score_state() -> ScoreState
#   - hit_window() -> HitWindow
#   - beat_scheduler() -> BeatScheduler
#   - recent_judgements() -> list[JudgementEvent]
#   - clear_recent_judgements() -> None
#   - reset() -> None
#   - update_for_time(song_time_seconds: float, player_target: PlayerTarget) -> list[JudgementEvent]
#   - next_beat_index(song_time_seconds: float) -> Optional[int]
#
# Inputs:
# - song_time_seconds: float (from TimingModel)
# - PlayerTarget (read-only snapshot of the player's discrete intent)
#
# Outputs:
# - JudgementEvent objects for the state machine, UI and stats.
# - Mutates ScheduledBeat judge flags inside BeatScheduler.
#
########################

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import beat_scheduler
from gameplay_models import BeatEvent, JudgementEvent, Lane, Level, PlayerTarget


logger = logging.getLogger(__name__)

HIT_WINDOW_SECONDS = 0.25


@dataclass(frozen=True)
class HitWindow:
    seconds: float = HIT_WINDOW_SECONDS

    def opens_at(self, beat_time_seconds: float) -> float:
        return float(beat_time_seconds) - float(self.seconds)

    def closes_at(self, beat_time_seconds: float) -> float:
        return float(beat_time_seconds) + float(self.seconds)


@dataclass
class ScoreState:
    score: int = 0
    streak: int = 0
    max_streak: int = 0
    hit_count: int = 0
    miss_count: int = 0

    def apply_judgement(self, judgement: str) -> None:
        text = str(judgement).strip().lower()

        if text == "hit":
            self.score += 1
            self.streak += 1
            self.hit_count += 1
        elif text == "miss":
            self.streak = 0
            self.miss_count += 1
        else:
            # Unknown judgements do not mutate score state.
            return

        if self.streak > self.max_streak:
            self.max_streak = self.streak


class JudgeEngine:
    def __init__(self, beat_scheduler_obj: beat_scheduler.BeatScheduler, hit_window: HitWindow) -> None:
        self._beat_scheduler = beat_scheduler_obj
        self._hit_window = hit_window
        self._score_state = ScoreState()
        self._recent_judgements: List[JudgementEvent] = []

    def score_state(self) -> ScoreState:
        return self._score_state

    def hit_window(self) -> HitWindow:
        return self._hit_window

    def beat_scheduler(self) -> beat_scheduler.BeatScheduler:
        return self._beat_scheduler

    def clear_recent_judgements(self) -> None:
        self._recent_judgements.clear()

    def recent_judgements(self) -> List[JudgementEvent]:
        return list(self._recent_judgements)

    def reset(self) -> None:
        self._beat_scheduler.reset()
        self._score_state = ScoreState()
        self._recent_judgements.clear()

    def next_beat_index(self, song_time_seconds: float) -> Optional[int]:
        return self._beat_scheduler.next_beat_index(song_time_seconds)

    def update_for_time(self, song_time_seconds: float, player_target: PlayerTarget) -> List[JudgementEvent]:
        song_time = float(song_time_seconds)
        judgements: List[JudgementEvent] = []

        candidates = self._beat_scheduler.open_candidates(
            song_time_seconds=song_time,
            window_seconds=float(self._hit_window.seconds),
        )
        for scheduled_beat in candidates:
            beat_event = scheduled_beat.beat_event
            beat_time = float(beat_event.time_seconds)

            if not scheduled_beat.window_opened and song_time >= self._hit_window.opens_at(beat_time):
                self._beat_scheduler.mark_window_opened(scheduled_beat)

            if not scheduled_beat.window_opened or scheduled_beat.resolved:
                continue

            if song_time <= self._hit_window.closes_at(beat_time):
                if not player_target.matches(beat_event):
                    continue
                judgement = "hit"
            else:
                judgement = "miss"

            delta = song_time - beat_time
            self._beat_scheduler.mark_resolved(scheduled_beat, judgement=judgement, delta_seconds=delta)
            self._score_state.apply_judgement(judgement)

            event = JudgementEvent(
                time_seconds=song_time,
                beat_index=int(scheduled_beat.index),
                beat_time_seconds=beat_time,
                delta_seconds=delta,
                lane=beat_event.lane,
                level=beat_event.level,
                judgement=judgement,
            )
            if event.is_miss:
                logger.info(
                    "Missed beat %d at %.3fs (%s/%s), song time %.3fs",
                    event.beat_index,
                    beat_time,
                    beat_event.lane.value,
                    beat_event.level.value,
                    song_time,
                )
            self._recent_judgements.append(event)
            judgements.append(event)

        return judgements


def _run_unit_tests() -> None:
    beat = BeatEvent(time_seconds=10.0, lane=Lane.LEFT, level=Level.HIGH)
    scheduler = beat_scheduler.BeatScheduler([beat])
    engine = JudgeEngine(scheduler, HitWindow())

    on_platform = PlayerTarget(lane=Lane.LEFT, level=Level.HIGH)
    hits = engine.update_for_time(9.80, on_platform)
    assert [event.judgement for event in hits] == ["hit"]
    assert engine.update_for_time(10.0, on_platform) == []
    assert engine.score_state().score == 1
    assert engine.score_state().streak == 1

    engine.reset()
    off_platform = PlayerTarget(lane=Lane.CENTER, level=Level.LOW)
    assert engine.update_for_time(9.75, off_platform) == []
    assert engine.update_for_time(10.25, off_platform) == []
    misses = engine.update_for_time(10.26, off_platform)
    assert [event.judgement for event in misses] == ["miss"]
    assert engine.score_state().streak == 0
    assert engine.update_for_time(20.0, off_platform) == []


if __name__ == "__main__":
    _run_unit_tests()
    print("judge.py: ok")
