# -*- coding: utf-8 -*-
########################
# beat_schedule.py
########################
# Purpose:
# - Deterministic beat schedule generator.
# - Walks a fixed lane/level pattern on a beat grid and injects center accents.
#
# Design notes:
# - No randomness and no seed. Output is a pure function of (duration, interval).
# - The result is stably sorted by time so accents land between their neighbours.
# - No Qt usage.
#
########################
# Interfaces:
# Public dataclasses:
# - BeatSchedule(events: tuple[BeatEvent, ...], duration_seconds: float, interval_seconds: float,
#                generator_version: str)
#
# Public functions:
# - generate_beat_events(*, duration_seconds: float, interval_seconds: float) -> list[BeatEvent]
# - build_beat_schedule(*, duration_seconds: float = 60.0, interval_seconds: float = 0.5) -> BeatSchedule
#
# Inputs:
# - Track duration and primary beat interval in seconds.
#
# Outputs:
# - Ordered BeatEvent sequence consumed by BeatScheduler.
#
########################

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

from gameplay_models import BeatEvent, Lane, Level


GENERATOR_VERSION = "pattern_v1"

DEFAULT_DURATION_SECONDS = 60.0
DEFAULT_INTERVAL_SECONDS = 0.5
START_DELAY_SECONDS = 2.5
TAIL_BUFFER_SECONDS = 1.5

# Walked cyclically, one entry per primary beat.
_PATTERN: Tuple[Tuple[Lane, Level], ...] = (
    (Lane.CENTER, Level.LOW),
    (Lane.CENTER, Level.HIGH),
    (Lane.LEFT, Level.LOW),
    (Lane.RIGHT, Level.LOW),
    (Lane.LEFT, Level.HIGH),
    (Lane.RIGHT, Level.HIGH),
)


@dataclass(frozen=True)
class BeatSchedule:
    events: Tuple[BeatEvent, ...]
    duration_seconds: float
    interval_seconds: float
    generator_version: str = GENERATOR_VERSION

    def __len__(self) -> int:
        return len(self.events)


def _validate_parameters(duration_seconds: float, interval_seconds: float) -> Tuple[float, float]:
    duration = float(duration_seconds)
    interval = float(interval_seconds)
    if not math.isfinite(duration):
        raise ValueError(f"duration_seconds must be finite, got {duration_seconds!r}")
    if not math.isfinite(interval) or interval <= 0.0:
        raise ValueError(f"interval_seconds must be a positive finite number, got {interval_seconds!r}")
    return duration, interval


def generate_beat_events(*, duration_seconds: float, interval_seconds: float) -> List[BeatEvent]:
    duration, interval = _validate_parameters(duration_seconds, interval_seconds)

    events: List[BeatEvent] = []
    current_time_seconds = START_DELAY_SECONDS
    step_index = 0
    end_time_seconds = duration - TAIL_BUFFER_SECONDS

    while current_time_seconds < end_time_seconds:
        lane, level = _PATTERN[step_index % len(_PATTERN)]
        events.append(BeatEvent(time_seconds=current_time_seconds, lane=lane, level=level))

        # Center accent on the off-beat, alternating low/high every eight steps.
        if step_index % 4 == 1:
            accent_level = Level.LOW if step_index % 8 == 1 else Level.HIGH
            events.append(
                BeatEvent(
                    time_seconds=current_time_seconds + interval * 0.5,
                    lane=Lane.CENTER,
                    level=accent_level,
                )
            )

        current_time_seconds += interval
        step_index += 1

    # sorted() is stable, so ties keep generation order.
    return sorted(events, key=lambda event: float(event.time_seconds))


def build_beat_schedule(
    *,
    duration_seconds: float = DEFAULT_DURATION_SECONDS,
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
) -> BeatSchedule:
    events = generate_beat_events(duration_seconds=duration_seconds, interval_seconds=interval_seconds)
    return BeatSchedule(
        events=tuple(events),
        duration_seconds=float(duration_seconds),
        interval_seconds=float(interval_seconds),
    )


def _run_unit_tests() -> None:
    first = generate_beat_events(duration_seconds=60.0, interval_seconds=0.5)
    second = generate_beat_events(duration_seconds=60.0, interval_seconds=0.5)
    assert first == second

    times = [event.time_seconds for event in first]
    assert times == sorted(times)
    assert first[0] == BeatEvent(time_seconds=2.5, lane=Lane.CENTER, level=Level.LOW)

    # Step 1 carries the first accent (low), step 5 the second (high).
    accents = [event for event in first if abs((event.time_seconds - 2.5) / 0.5 % 1.0 - 0.5) < 1e-9]
    assert accents[0].level == Level.LOW
    assert accents[1].level == Level.HIGH

    assert generate_beat_events(duration_seconds=3.0, interval_seconds=0.5) == []


if __name__ == "__main__":
    _run_unit_tests()
    print("beat_schedule.py: ok")
