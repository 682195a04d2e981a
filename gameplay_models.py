# -*- coding: utf-8 -*-
########################
# gameplay_models.py
########################
# Purpose:
# - Core gameplay data models for the runtime gameplay pipeline.
# - Defines lanes, levels, beat events, player intent, sensor samples and judgement events.
#
# Design notes:
# - Keep these models stable. Prefer extending with new optional fields rather than breaking changes.
# - No Qt usage. These are plain dataclasses and string enums.
# - Frozen dataclasses are value objects. Mutable state lives in the component that owns it.
#
########################
# Interfaces:
# Public enums:
# - Lane: LEFT | CENTER | RIGHT
# - Level: LOW | HIGH
# - InputMode: FACE | KEYBOARD
# - KeyAction: LEFT | RIGHT | UP | DOWN | RECALIBRATE
# - GameState: INIT | CALIBRATING | READY | COUNTDOWN | RUNNING | PAUSED | GAME_OVER | VICTORY
#
# Public dataclasses:
# - BeatEvent(time_seconds: float, lane: Lane, level: Level)
# - PlayerTarget(lane: Lane, level: Level)
# - RawSample(x: float, y: float)
# - CalibrationFrame(center_x: float, center_y: float, spread_x: float, spread_y: float)
# - JudgementEvent(time_seconds: float, beat_index: int, beat_time_seconds: float, delta_seconds: float,
#                  lane: Lane, level: Level, judgement: str)
#
# Inputs/Outputs:
# - These types are exchanged between beat_schedule, BeatScheduler, JudgeEngine, Calibrator,
#   InputNormalizer, AvatarMotionModel and GameStateMachine.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Lane(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class Level(str, Enum):
    LOW = "low"
    HIGH = "high"


class InputMode(str, Enum):
    FACE = "face"
    KEYBOARD = "keyboard"


class KeyAction(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    RECALIBRATE = "recalibrate"


class GameState(str, Enum):
    INIT = "init"
    CALIBRATING = "calibrating"
    READY = "ready"
    COUNTDOWN = "countdown"
    RUNNING = "running"
    PAUSED = "paused"
    GAME_OVER = "gameOver"
    VICTORY = "victory"


# World coordinates used by the avatar and the platform renderer.
LANE_POSITIONS = {
    Lane.LEFT: -3.5,
    Lane.CENTER: 0.0,
    Lane.RIGHT: 3.5,
}

LEVEL_HEIGHTS = {
    Level.LOW: 1.0,
    Level.HIGH: 2.35,
}


@dataclass(frozen=True)
class BeatEvent:
    time_seconds: float
    lane: Lane
    level: Level


@dataclass(frozen=True)
class PlayerTarget:
    lane: Lane = Lane.CENTER
    level: Level = Level.LOW

    def matches(self, beat_event: BeatEvent) -> bool:
        return self.lane == beat_event.lane and self.level == beat_event.level


@dataclass(frozen=True)
class RawSample:
    x: float
    y: float


@dataclass(frozen=True)
class CalibrationFrame:
    center_x: float = 0.5
    center_y: float = 0.5
    spread_x: float = 0.12
    spread_y: float = 0.08


@dataclass(frozen=True)
class JudgementEvent:
    time_seconds: float
    beat_index: int
    beat_time_seconds: float
    delta_seconds: float
    lane: Lane
    level: Level
    judgement: str

    @property
    def is_hit(self) -> bool:
        return self.judgement == "hit"

    @property
    def is_miss(self) -> bool:
        return self.judgement == "miss"
