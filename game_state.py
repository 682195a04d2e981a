# -*- coding: utf-8 -*-
########################
# game_state.py
########################
# Purpose:
# - Top-level game state machine and per-tick orchestrator.
# - Gates calibration, countdown, judging and avatar motion; handles start / stop / calibrate,
#   window blur, audio end and audio failures.
#
# Design notes:
# - No Qt usage. Everything here runs on the tick thread; remote and sensor inputs are delivered
#   to it by the host (gameplay_harness, control_api).
# - Tick order is fixed: state machine (countdown), then JudgeEngine, then AvatarMotionModel.
# - The countdown is a remaining-time counter advanced by tick(), not a timer.
# - Single-miss failure: the first miss while RUNNING ends the run with GAME_OVER.
# - Pausing is stop-and-rearm. PAUSED is passed through on blur and lands in READY.
# - Every owned component keeps a single writer:
#   - JudgeEngine: score state and beat judge state
#   - Calibrator: calibration frame
#   - face_input / keyboard handler: PlayerTargetHolder
#   - AvatarMotionModel: avatar pose
#
########################
# Interfaces:
# Public dataclasses:
# - GameSnapshot(...) with to_dict() for status surfaces
# - TickResult(state, song_time_seconds, judgements, avatar_pose)
#
# Public classes:
# - class GameStateMachine
#   - from_config(app_config, audio_clock, *, clock=time.monotonic) -> GameStateMachine
#   - state() -> GameState
#   - request_start() / request_stop() / request_calibration() -> None
#   - on_window_blur() -> None
#   - on_audio_ended() / on_audio_loaded() / on_audio_load_failed(message) -> None
#   - on_sensor_started() / on_sensor_failed(message) -> None
#   - on_face_landmarks(faces, now_seconds=None) -> FaceUpdate
#   - on_key_action(action: KeyAction) -> None
#   - tick(delta_seconds, now_seconds=None) -> TickResult
#   - snapshot() -> GameSnapshot
#   - platform_views() -> list[PlatformView]
#   - rebuild_schedule(duration_seconds: float) -> bool
#   - add_state_listener(listener) -> None
#
# Inputs:
# - Tick deltas from the host loop, AudioClock readings and notifications, face landmark results,
#   keyboard actions, remote control intents.
#
# Outputs:
# - GameSnapshot and TickResult for rendering, overlays and the web status surface.
#
########################

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

import audio_clock
import avatar_motion
import beat_schedule
import beat_scheduler
import calibration
import face_input
import input_mode
import input_normalizer
import judge
import timing_model
from gameplay_models import (
    BeatEvent,
    GameState,
    InputMode,
    JudgementEvent,
    KeyAction,
    Lane,
    Level,
    PlayerTarget,
)


logger = logging.getLogger(__name__)

COUNTDOWN_STEPS = 3
COUNTDOWN_STEP_SECONDS = 1.0

MESSAGE_WARMING_UP = "Hold tight… we're warming up the track."
MESSAGE_CALIBRATING = "Let's calibrate! Gently move your head left/right and up/down for a moment."
MESSAGE_CALIBRATED = "Calibration complete! When you are ready, start the track and follow the beat."
MESSAGE_CALIBRATION_NEEDS_CAMERA = "Calibration needs the camera. Use the arrow keys or WASD to play."
MESSAGE_KEYBOARD_ONLY = "Camera unavailable. Use the arrow keys or WASD, then press Start."
MESSAGE_AUDIO_MISSING = "Audio track missing. Add your song as track.mp3 next to the game."
MESSAGE_AUTOPLAY_BLOCKED = "Press Start again to unlock audio playback."
MESSAGE_STOPPED = "Playback stopped. Ready when you are!"
MESSAGE_PAUSED = "Paused."
MESSAGE_MISSED = "You missed a platform. Let's try that section again!"
MESSAGE_VICTORY = "You nailed it! Ready to spin the track again?"

_LANE_ORDER = (Lane.LEFT, Lane.CENTER, Lane.RIGHT)

StateListener = Callable[[GameState, GameState], None]


@dataclass(frozen=True)
class GameSnapshot:
    state: GameState
    score: int
    streak: int
    max_streak: int
    input_mode: InputMode
    player_target: PlayerTarget
    avatar_pose: avatar_motion.AvatarPose
    calibrated: bool
    calibration_progress: float
    song_time_seconds: float
    countdown_remaining_seconds: float
    message: str
    overlay_visible: bool
    show_start: bool
    show_calibrate: bool
    audio_available: bool
    face_available: bool
    beat_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "score": int(self.score),
            "streak": int(self.streak),
            "max_streak": int(self.max_streak),
            "input_mode": self.input_mode.value,
            "lane": self.player_target.lane.value,
            "level": self.player_target.level.value,
            "avatar": {
                "x": float(self.avatar_pose.current_x),
                "y": float(self.avatar_pose.current_y),
                "bounce_offset": float(self.avatar_pose.bounce_offset),
            },
            "calibrated": bool(self.calibrated),
            "calibration_progress": float(self.calibration_progress),
            "song_time_seconds": float(self.song_time_seconds),
            "countdown_remaining_seconds": float(self.countdown_remaining_seconds),
            "message": self.message,
            "overlay_visible": bool(self.overlay_visible),
            "show_start": bool(self.show_start),
            "show_calibrate": bool(self.show_calibrate),
            "audio_available": bool(self.audio_available),
            "face_available": bool(self.face_available),
            "beat_count": int(self.beat_count),
        }


@dataclass(frozen=True)
class TickResult:
    state: GameState
    song_time_seconds: Optional[float]
    avatar_pose: avatar_motion.AvatarPose
    judgements: List[JudgementEvent] = field(default_factory=list)


def _stepped_lane(lane: Lane, direction: int) -> Lane:
    index = _LANE_ORDER.index(lane) + int(direction)
    index = max(0, min(len(_LANE_ORDER) - 1, index))
    return _LANE_ORDER[index]


class GameStateMachine:
    def __init__(
        self,
        *,
        audio_clock_obj: audio_clock.AudioClock,
        beat_events: Optional[Sequence[BeatEvent]] = None,
        hit_window: Optional[judge.HitWindow] = None,
        calibrator: Optional[calibration.Calibrator] = None,
        normalizer: Optional[input_normalizer.InputNormalizer] = None,
        arbiter: Optional[input_mode.InputModeArbiter] = None,
        smoother: Optional[calibration.SampleSmoother] = None,
        avatar: Optional[avatar_motion.AvatarMotionModel] = None,
        timing: Optional[timing_model.TimingModel] = None,
        countdown_steps: int = COUNTDOWN_STEPS,
        countdown_step_seconds: float = COUNTDOWN_STEP_SECONDS,
        fit_schedule_to_track: bool = False,
        interval_seconds: float = beat_schedule.DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        self._audio_clock = audio_clock_obj
        self._interval_seconds = float(interval_seconds)
        if beat_events is None:
            beat_events = beat_schedule.generate_beat_events(
                duration_seconds=beat_schedule.DEFAULT_DURATION_SECONDS,
                interval_seconds=self._interval_seconds,
            )
        self._hit_window = hit_window if hit_window is not None else judge.HitWindow()
        self._judge = judge.JudgeEngine(beat_scheduler.BeatScheduler(beat_events), self._hit_window)

        self._calibrator = calibrator if calibrator is not None else calibration.Calibrator()
        self._normalizer = normalizer if normalizer is not None else input_normalizer.InputNormalizer()
        self._arbiter = arbiter if arbiter is not None else input_mode.InputModeArbiter()
        self._target_holder = input_mode.PlayerTargetHolder()
        self._face_pipeline = face_input.FaceInputPipeline(
            calibrator=self._calibrator,
            normalizer=self._normalizer,
            arbiter=self._arbiter,
            target_holder=self._target_holder,
            smoother=smoother,
        )
        self._avatar = avatar if avatar is not None else avatar_motion.AvatarMotionModel()
        self._timing = timing if timing is not None else timing_model.TimingModel()

        self._countdown_total_seconds = float(int(countdown_steps)) * float(countdown_step_seconds)
        self._countdown_step_seconds = float(countdown_step_seconds)
        self._countdown_remaining_seconds = 0.0
        self._fit_schedule_to_track = bool(fit_schedule_to_track)

        self._state = GameState.INIT
        self._message = MESSAGE_WARMING_UP
        self._show_start = False
        self._show_calibrate = False

        self._sensor_failed = False
        self._audio_error: Optional[str] = None
        self._state_listeners: List[StateListener] = []

        self._audio_clock.subscribe(
            on_ended=self.on_audio_ended,
            on_load_failed=self.on_audio_load_failed,
            on_loaded=self.on_audio_loaded,
        )

    @classmethod
    def from_config(
        cls,
        app_config: Any,
        audio_clock_obj: audio_clock.AudioClock,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> "GameStateMachine":
        gameplay = app_config.gameplay
        calibration_config = app_config.calibration
        input_config = app_config.input

        events = beat_schedule.generate_beat_events(
            duration_seconds=float(gameplay.schedule_duration_seconds),
            interval_seconds=float(gameplay.beat_interval_seconds),
        )
        return cls(
            audio_clock_obj=audio_clock_obj,
            beat_events=events,
            hit_window=judge.HitWindow(seconds=float(gameplay.hit_window_seconds)),
            calibrator=calibration.Calibrator(
                sample_count=int(calibration_config.sample_count),
                spread_scale=float(calibration_config.spread_scale),
                min_spread_x=float(calibration_config.min_spread_x),
                min_spread_y=float(calibration_config.min_spread_y),
            ),
            normalizer=input_normalizer.InputNormalizer(
                lane_threshold=float(input_config.lane_threshold),
                level_high_threshold=float(input_config.level_high_threshold),
                level_low_threshold=float(input_config.level_low_threshold),
            ),
            arbiter=input_mode.InputModeArbiter(
                face_recency_seconds=float(input_config.face_recency_ms) / 1000.0,
                clock=clock,
            ),
            smoother=calibration.SampleSmoother(float(calibration_config.smoothing_factor)),
            timing=timing_model.TimingModel(av_offset_seconds=float(app_config.audio.av_offset_seconds)),
            countdown_steps=int(gameplay.countdown_steps),
            countdown_step_seconds=float(gameplay.countdown_step_seconds),
            fit_schedule_to_track=bool(gameplay.fit_schedule_to_track),
            interval_seconds=float(gameplay.beat_interval_seconds),
        )

    # -----------------
    # Accessors
    # -----------------

    def state(self) -> GameState:
        return self._state

    def judge_engine(self) -> judge.JudgeEngine:
        return self._judge

    def calibrator(self) -> calibration.Calibrator:
        return self._calibrator

    def arbiter(self) -> input_mode.InputModeArbiter:
        return self._arbiter

    def player_target(self) -> PlayerTarget:
        return self._target_holder.get()

    def avatar_pose(self) -> avatar_motion.AvatarPose:
        return self._avatar.pose()

    def timing(self) -> timing_model.TimingModel:
        return self._timing

    def message(self) -> str:
        return self._message

    def add_state_listener(self, listener: StateListener) -> None:
        self._state_listeners.append(listener)

    def snapshot(self) -> GameSnapshot:
        score_state = self._judge.score_state()
        return GameSnapshot(
            state=self._state,
            score=score_state.score,
            streak=score_state.streak,
            max_streak=score_state.max_streak,
            input_mode=self._arbiter.mode(),
            player_target=self._target_holder.get(),
            avatar_pose=self._avatar.pose(),
            calibrated=self._calibrator.is_ready(),
            calibration_progress=self._calibrator.progress(),
            song_time_seconds=self._timing.song_time_seconds(),
            countdown_remaining_seconds=self._countdown_remaining_seconds,
            message=self._message,
            overlay_visible=self._state != GameState.RUNNING,
            show_start=self._show_start,
            show_calibrate=self._show_calibrate,
            audio_available=self._audio_clock.is_available(),
            face_available=self._arbiter.face_available(),
            beat_count=len(self._judge.beat_scheduler()),
        )

    def platform_views(self) -> List[beat_scheduler.PlatformView]:
        return self._judge.beat_scheduler().platform_views(song_time_seconds=self._timing.song_time_seconds())

    # -----------------
    # Transitions
    # -----------------

    def _set_overlay(self, message: str, *, show_start: bool, show_calibrate: bool) -> None:
        self._message = str(message)
        self._show_start = bool(show_start)
        self._show_calibrate = bool(show_calibrate)

    def _transition(self, new_state: GameState, message: str, *, show_start: bool, show_calibrate: bool) -> None:
        previous_state = self._state
        self._state = new_state
        self._set_overlay(message, show_start=show_start, show_calibrate=show_calibrate)
        if previous_state != new_state:
            logger.info("Game state %s -> %s", previous_state.value, new_state.value)
            for listener in list(self._state_listeners):
                listener(previous_state, new_state)

    def _halt_audio(self) -> None:
        self._audio_clock.pause()
        self._audio_clock.seek(0.0)

    def _reset_judging(self) -> None:
        self._judge.reset()
        self._timing.reset()

    def _reset_run(self) -> None:
        self._reset_judging()
        self._target_holder.reset()
        self._avatar.reset()

    def request_start(self) -> None:
        if self._state == GameState.COUNTDOWN:
            return
        if self._state == GameState.RUNNING:
            self.request_stop()
            return
        if not self._calibrator.is_ready() and not self._sensor_failed:
            self.request_calibration()
            return
        self._begin_countdown()

    def _begin_countdown(self) -> None:
        if not self._audio_clock.is_available():
            logger.warning("Start refused, audio track unavailable: %s", self._audio_error or "not loaded")
            self._set_overlay(MESSAGE_AUDIO_MISSING, show_start=False, show_calibrate=True)
            return
        self._countdown_remaining_seconds = self._countdown_total_seconds
        self._transition(
            GameState.COUNTDOWN,
            self._countdown_message(),
            show_start=False,
            show_calibrate=False,
        )

    def _countdown_message(self) -> str:
        steps_left = max(1, math.ceil(self._countdown_remaining_seconds / self._countdown_step_seconds - 1e-9))
        return f"Starting in {steps_left}…"

    def _advance_countdown(self, delta_seconds: float) -> None:
        self._countdown_remaining_seconds -= delta_seconds
        if self._countdown_remaining_seconds <= 1e-9:
            self._countdown_remaining_seconds = 0.0
            self._launch()
            return
        self._set_overlay(self._countdown_message(), show_start=False, show_calibrate=False)

    def _launch(self) -> None:
        self._reset_run()
        self._transition(GameState.RUNNING, "", show_start=False, show_calibrate=False)
        try:
            self._audio_clock.seek(0.0)
            self._audio_clock.play()
        except audio_clock.AutoplayBlockedError as exception:
            logger.warning("Unable to start audio automatically: %s", exception)
            self._transition(GameState.READY, MESSAGE_AUTOPLAY_BLOCKED, show_start=True, show_calibrate=True)
        except audio_clock.AudioUnavailableError as exception:
            logger.warning("Audio track unavailable at launch: %s", exception)
            self._audio_error = str(exception)
            self._transition(GameState.READY, MESSAGE_AUDIO_MISSING, show_start=False, show_calibrate=True)

    def request_stop(self) -> None:
        self._countdown_remaining_seconds = 0.0
        self._calibrator.cancel()
        self._halt_audio()
        self._reset_judging()
        self._transition(GameState.READY, MESSAGE_STOPPED, show_start=True, show_calibrate=True)

    def request_calibration(self) -> None:
        if self._sensor_failed:
            self._set_overlay(MESSAGE_CALIBRATION_NEEDS_CAMERA, show_start=True, show_calibrate=False)
            return
        if self._state == GameState.RUNNING:
            self.request_stop()
        self._countdown_remaining_seconds = 0.0
        self._calibrator.begin()
        self._arbiter.force_face()
        self._transition(GameState.CALIBRATING, MESSAGE_CALIBRATING, show_start=False, show_calibrate=False)

    def on_window_blur(self) -> None:
        if self._state != GameState.RUNNING:
            return
        self._transition(GameState.PAUSED, MESSAGE_PAUSED, show_start=False, show_calibrate=False)
        self.request_stop()

    def _game_over(self, message: str) -> None:
        if self._state != GameState.RUNNING:
            return
        self._halt_audio()
        score = self._judge.score_state().score
        self._transition(
            GameState.GAME_OVER,
            f"{message}\nScore: {score}",
            show_start=True,
            show_calibrate=True,
        )

    # -----------------
    # External notifications
    # -----------------

    def on_audio_ended(self) -> None:
        if self._state != GameState.RUNNING:
            return
        self._transition(GameState.VICTORY, MESSAGE_VICTORY, show_start=True, show_calibrate=True)

    def on_audio_loaded(self) -> None:
        had_error = self._audio_error is not None
        self._audio_error = None
        if self._fit_schedule_to_track:
            duration = self._audio_clock.duration_seconds()
            if duration is not None:
                self.rebuild_schedule(duration)
        if had_error and self._state == GameState.READY:
            self._set_overlay(MESSAGE_CALIBRATED, show_start=True, show_calibrate=True)

    def on_audio_load_failed(self, message: str) -> None:
        self._audio_error = str(message)
        logger.warning("Audio load failed: %s", message)
        if self._state in (GameState.RUNNING, GameState.COUNTDOWN):
            self.request_stop()
        self._set_overlay(MESSAGE_AUDIO_MISSING, show_start=False, show_calibrate=True)

    def on_sensor_started(self) -> None:
        self._sensor_failed = False
        if self._state == GameState.INIT and self._calibrator.phase() == calibration.CalibrationPhase.IDLE:
            self.request_calibration()

    def on_sensor_failed(self, message: str) -> None:
        logger.warning("Face tracking unavailable: %s", message)
        self._sensor_failed = True
        self._arbiter.on_face_lost()
        if self._state == GameState.CALIBRATING:
            self._calibrator.cancel()
        if self._state in (GameState.INIT, GameState.CALIBRATING):
            self._transition(GameState.READY, MESSAGE_KEYBOARD_ONLY, show_start=True, show_calibrate=False)

    def on_face_landmarks(self, faces: Optional[Sequence[Any]], now_seconds: Optional[float] = None) -> face_input.FaceUpdate:
        update = self._face_pipeline.process_landmarks(faces, now_seconds)
        if update.calibration_frame is not None and self._state == GameState.CALIBRATING:
            self._transition(GameState.READY, MESSAGE_CALIBRATED, show_start=True, show_calibrate=True)
        return update

    def on_key_action(self, action: KeyAction) -> None:
        if action == KeyAction.RECALIBRATE:
            self.request_calibration()
            return

        current = self._target_holder.get()
        if action == KeyAction.LEFT:
            self._target_holder.set(PlayerTarget(lane=_stepped_lane(current.lane, -1), level=current.level))
        elif action == KeyAction.RIGHT:
            self._target_holder.set(PlayerTarget(lane=_stepped_lane(current.lane, 1), level=current.level))
        elif action == KeyAction.UP:
            self._target_holder.set_level(Level.HIGH)
        elif action == KeyAction.DOWN:
            self._target_holder.set_level(Level.LOW)
        else:
            return
        self._arbiter.on_keyboard_input()

    def rebuild_schedule(self, duration_seconds: float) -> bool:
        if self._state in (GameState.RUNNING, GameState.COUNTDOWN):
            return False
        events = beat_schedule.generate_beat_events(
            duration_seconds=float(duration_seconds),
            interval_seconds=self._interval_seconds,
        )
        self._judge = judge.JudgeEngine(beat_scheduler.BeatScheduler(events), self._hit_window)
        logger.info("Beat schedule rebuilt for %.1fs track: %d beats", float(duration_seconds), len(events))
        return True

    # -----------------
    # Tick
    # -----------------

    def tick(self, delta_seconds: float, now_seconds: Optional[float] = None) -> TickResult:
        delta = max(0.0, float(delta_seconds))
        judgements: List[JudgementEvent] = []
        song_time: Optional[float] = None

        if self._state == GameState.COUNTDOWN:
            self._advance_countdown(delta)

        if self._state == GameState.RUNNING:
            song_time = self._timing.poll(self._audio_clock)
            judgements = self._judge.update_for_time(song_time, self._target_holder.get())
            if any(event.is_hit for event in judgements):
                self._avatar.trigger_bounce()
            if any(event.is_miss for event in judgements):
                self._game_over(MESSAGE_MISSED)
            else:
                self._arbiter.evaluate(now_seconds)
                self._face_pipeline.reapply()

        pose = self._avatar.advance(delta, self._target_holder.get())
        return TickResult(state=self._state, song_time_seconds=song_time, avatar_pose=pose, judgements=judgements)
