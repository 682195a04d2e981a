# -*- coding: utf-8 -*-
########################
# beat_scheduler.py
########################
# Purpose:
# - Own the ordered beat list and the per-beat judge state (window opened, resolved).
# - Provide queries for judging candidates, the next beat and platform placement for rendering.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - Schedule order is deterministic: stable sort by time_seconds, ties keep generation order.
# - Judge state is monotonic: resolved never reverts until reset(), and resolved implies window_opened.
# - This module owns the judge state; JudgeEngine mutates it only through mark_* methods.
#
########################
# Interfaces:
# Public dataclasses:
# - ScheduledBeat(index: int, beat_event: BeatEvent, window_opened: bool = False, resolved: bool = False,
#                 judgement: Optional[str] = None, judgement_delta_seconds: Optional[float] = None)
# - PlatformView(index, beat_event, visible, x, y, track_offset, window_opened, resolved, is_next)
#
# Public classes:
# - class BeatScheduler
#   - __init__(events: Iterable[BeatEvent])
#   - beats() -> list[ScheduledBeat]
#   - reset() -> None
#   - mark_window_opened(scheduled_beat) -> None
#   - mark_resolved(scheduled_beat, *, judgement: str, delta_seconds: float) -> None
#   - open_candidates(*, song_time_seconds: float, window_seconds: float) -> list[ScheduledBeat]
#   - next_beat_index(song_time_seconds: float) -> Optional[int]
#   - platform_views(*, song_time_seconds: float) -> list[PlatformView]
#   - all_resolved() -> bool
#
# Inputs:
# - BeatEvent sequence from beat_schedule and song time from TimingModel.
#
# Outputs:
# - ScheduledBeat views for JudgeEngine and PlatformView values for rendering.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from gameplay_models import LANE_POSITIONS, LEVEL_HEIGHTS, BeatEvent


TRACK_SPEED = 14.0
PLATFORM_VISIBLE_AHEAD = 40.0
PLATFORM_VISIBLE_BEHIND = -20.0
PLATFORM_DROP = 0.4


@dataclass
class ScheduledBeat:
    index: int
    beat_event: BeatEvent
    window_opened: bool = False
    resolved: bool = False
    judgement: Optional[str] = None
    judgement_delta_seconds: Optional[float] = None


@dataclass(frozen=True)
class PlatformView:
    index: int
    beat_event: BeatEvent
    visible: bool
    x: float
    y: float
    track_offset: float
    window_opened: bool
    resolved: bool
    is_next: bool


class BeatScheduler:
    def __init__(self, events: Iterable[BeatEvent]) -> None:
        sorted_events = sorted(events, key=lambda item: float(item.time_seconds))
        self._scheduled_beats = [
            ScheduledBeat(index=index, beat_event=event) for index, event in enumerate(sorted_events)
        ]
        # Index of the earliest beat that is not resolved yet.
        self._cursor = 0

    def beats(self) -> List[ScheduledBeat]:
        return list(self._scheduled_beats)

    def __len__(self) -> int:
        return len(self._scheduled_beats)

    def reset(self) -> None:
        for scheduled_beat in self._scheduled_beats:
            scheduled_beat.window_opened = False
            scheduled_beat.resolved = False
            scheduled_beat.judgement = None
            scheduled_beat.judgement_delta_seconds = None
        self._cursor = 0

    def mark_window_opened(self, scheduled_beat: ScheduledBeat) -> None:
        scheduled_beat.window_opened = True

    def mark_resolved(self, scheduled_beat: ScheduledBeat, *, judgement: str, delta_seconds: float) -> None:
        if scheduled_beat.resolved:
            return
        if not scheduled_beat.window_opened:
            raise ValueError(f"beat {scheduled_beat.index} cannot resolve before its window opens")
        scheduled_beat.resolved = True
        scheduled_beat.judgement = str(judgement)
        scheduled_beat.judgement_delta_seconds = float(delta_seconds)
        self._advance_cursor()

    def _advance_cursor(self) -> None:
        index = self._cursor
        while index < len(self._scheduled_beats) and self._scheduled_beats[index].resolved:
            index += 1
        self._cursor = index

    def open_candidates(self, *, song_time_seconds: float, window_seconds: float) -> List[ScheduledBeat]:
        """Unresolved beats whose window has started by song_time_seconds, in schedule order."""
        song_time = float(song_time_seconds)
        window = float(window_seconds)
        candidates: List[ScheduledBeat] = []
        for index in range(self._cursor, len(self._scheduled_beats)):
            scheduled_beat = self._scheduled_beats[index]
            if float(scheduled_beat.beat_event.time_seconds) - window > song_time:
                break
            if scheduled_beat.resolved:
                continue
            candidates.append(scheduled_beat)
        return candidates

    def next_beat_index(self, song_time_seconds: float) -> Optional[int]:
        target = float(song_time_seconds)
        for index in range(self._cursor, len(self._scheduled_beats)):
            scheduled_beat = self._scheduled_beats[index]
            if scheduled_beat.resolved:
                continue
            if float(scheduled_beat.beat_event.time_seconds) >= target:
                return index
        return None

    def all_resolved(self) -> bool:
        return self._cursor >= len(self._scheduled_beats)

    def platform_views(self, *, song_time_seconds: float) -> List[PlatformView]:
        song_time = float(song_time_seconds)
        next_index = self.next_beat_index(song_time)
        views: List[PlatformView] = []
        for scheduled_beat in self._scheduled_beats:
            event = scheduled_beat.beat_event
            track_offset = (float(event.time_seconds) - song_time) * TRACK_SPEED
            views.append(
                PlatformView(
                    index=scheduled_beat.index,
                    beat_event=event,
                    visible=PLATFORM_VISIBLE_BEHIND < track_offset < PLATFORM_VISIBLE_AHEAD,
                    x=LANE_POSITIONS[event.lane],
                    y=LEVEL_HEIGHTS[event.level] - PLATFORM_DROP,
                    track_offset=track_offset,
                    window_opened=scheduled_beat.window_opened,
                    resolved=scheduled_beat.resolved,
                    is_next=scheduled_beat.index == next_index,
                )
            )
        return views


def _run_unit_tests() -> None:
    from gameplay_models import Lane, Level

    events = [
        BeatEvent(time_seconds=1.0, lane=Lane.LEFT, level=Level.LOW),
        BeatEvent(time_seconds=0.5, lane=Lane.RIGHT, level=Level.HIGH),
        BeatEvent(time_seconds=1.0, lane=Lane.CENTER, level=Level.LOW),
    ]
    scheduler = BeatScheduler(events)

    ordered = [(b.beat_event.time_seconds, b.beat_event.lane) for b in scheduler.beats()]
    assert ordered == [(0.5, Lane.RIGHT), (1.0, Lane.LEFT), (1.0, Lane.CENTER)]

    candidates = scheduler.open_candidates(song_time_seconds=0.3, window_seconds=0.25)
    assert [c.index for c in candidates] == [0]

    first = scheduler.beats()[0]
    scheduler.mark_window_opened(first)
    scheduler.mark_resolved(first, judgement="hit", delta_seconds=0.0)
    assert scheduler.next_beat_index(0.5) == 1

    scheduler.reset()
    assert not any(b.resolved or b.window_opened for b in scheduler.beats())


if __name__ == "__main__":
    _run_unit_tests()
    print("beat_scheduler.py: ok")
