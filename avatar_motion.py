# -*- coding: utf-8 -*-
########################
# avatar_motion.py
########################
# Purpose:
# - Advance the avatar's continuous pose toward the discrete PlayerTarget each tick.
# - Apply a single parabolic hop when a beat is hit.
#
# Design notes:
# - No Qt usage. Frame rate independent: every integration step uses the tick's elapsed seconds.
# - AvatarMotionModel is the only writer of the pose. Readers get frozen AvatarPose snapshots.
# - Horizontal response is snappier than vertical (rate 8 vs 6 per second).
# - Bounce has no re-bounce: ground contact zeroes both offset and velocity.
#
########################
# Interfaces:
# Public dataclasses:
# - AvatarPose(current_x: float, current_y: float, bounce_offset: float, bounce_velocity: float)
#
# Public classes:
# - class AvatarMotionModel
#   - pose() -> AvatarPose
#   - advance(delta_seconds: float, target: PlayerTarget) -> AvatarPose
#   - trigger_bounce() -> None
#   - reset() -> None
#
# Inputs:
# - Tick delta seconds, PlayerTarget, hit notifications from the state machine.
#
# Outputs:
# - AvatarPose snapshots for rendering.
#
########################

from __future__ import annotations

from dataclasses import dataclass

from gameplay_models import LANE_POSITIONS, LEVEL_HEIGHTS, Lane, Level, PlayerTarget


HORIZONTAL_RATE = 8.0
VERTICAL_RATE = 6.0
BOUNCE_LAUNCH_VELOCITY = 2.4
BOUNCE_GRAVITY = 5.0


@dataclass(frozen=True)
class AvatarPose:
    current_x: float
    current_y: float
    bounce_offset: float = 0.0
    bounce_velocity: float = 0.0

    @property
    def render_y(self) -> float:
        return self.current_y + self.bounce_offset


class AvatarMotionModel:
    def __init__(
        self,
        *,
        horizontal_rate: float = HORIZONTAL_RATE,
        vertical_rate: float = VERTICAL_RATE,
        bounce_launch_velocity: float = BOUNCE_LAUNCH_VELOCITY,
        bounce_gravity: float = BOUNCE_GRAVITY,
    ) -> None:
        self._horizontal_rate = float(horizontal_rate)
        self._vertical_rate = float(vertical_rate)
        self._bounce_launch_velocity = float(bounce_launch_velocity)
        self._bounce_gravity = float(bounce_gravity)

        self._current_x = 0.0
        self._current_y = 0.0
        self._bounce_offset = 0.0
        self._bounce_velocity = 0.0
        self.reset()

    def pose(self) -> AvatarPose:
        return AvatarPose(
            current_x=self._current_x,
            current_y=self._current_y,
            bounce_offset=self._bounce_offset,
            bounce_velocity=self._bounce_velocity,
        )

    def reset(self) -> None:
        self._current_x = LANE_POSITIONS[Lane.CENTER]
        self._current_y = LEVEL_HEIGHTS[Level.LOW]
        self._bounce_offset = 0.0
        self._bounce_velocity = 0.0

    def trigger_bounce(self) -> None:
        self._bounce_velocity = self._bounce_launch_velocity

    def advance(self, delta_seconds: float, target: PlayerTarget) -> AvatarPose:
        delta = max(0.0, float(delta_seconds))

        lerp_x = min(1.0, delta * self._horizontal_rate)
        lerp_y = min(1.0, delta * self._vertical_rate)
        target_x = LANE_POSITIONS[target.lane]
        target_y = LEVEL_HEIGHTS[target.level]

        self._current_x += (target_x - self._current_x) * lerp_x
        self._current_y += (target_y - self._current_y) * lerp_y

        if self._bounce_velocity != 0.0 or self._bounce_offset != 0.0:
            self._bounce_offset += self._bounce_velocity * delta
            self._bounce_velocity -= self._bounce_gravity * delta
            if self._bounce_offset < 0.0:
                self._bounce_offset = 0.0
                self._bounce_velocity = 0.0

        return self.pose()


def _run_unit_tests() -> None:
    model = AvatarMotionModel()
    pose = model.advance(1.0, PlayerTarget(lane=Lane.RIGHT, level=Level.HIGH))
    assert pose.current_x == LANE_POSITIONS[Lane.RIGHT]
    assert pose.current_y == LEVEL_HEIGHTS[Level.HIGH]

    model.trigger_bounce()
    pose = model.advance(0.1, PlayerTarget(lane=Lane.RIGHT, level=Level.HIGH))
    assert abs(pose.bounce_offset - 0.24) < 1e-9
    assert abs(pose.bounce_velocity - 1.9) < 1e-9

    for _ in range(200):
        pose = model.advance(1.0 / 60.0, PlayerTarget(lane=Lane.RIGHT, level=Level.HIGH))
    assert pose.bounce_offset == 0.0
    assert pose.bounce_velocity == 0.0


if __name__ == "__main__":
    _run_unit_tests()
    print("avatar_motion.py: ok")
