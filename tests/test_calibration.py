import statistics

import pytest

import calibration
from gameplay_models import CalibrationFrame, RawSample


def test_identical_samples_hit_spread_floors():
    calibrator = calibration.Calibrator()
    calibrator.begin()
    frame = None
    for _ in range(120):
        frame = calibrator.add_sample(RawSample(x=0.5, y=0.5))

    assert frame == CalibrationFrame(center_x=0.5, center_y=0.5, spread_x=0.06, spread_y=0.05)
    assert calibrator.is_ready()
    assert calibrator.frame() is frame
    assert calibrator.sample_count() == 0


def test_frame_is_not_produced_before_buffer_fills():
    calibrator = calibration.Calibrator()
    calibrator.begin()
    for _ in range(119):
        assert calibrator.add_sample(RawSample(x=0.4, y=0.6)) is None
    assert calibrator.is_collecting()
    assert calibrator.progress() == pytest.approx(119 / 120)


def test_spread_uses_population_deviation_times_scale():
    calibrator = calibration.Calibrator(sample_count=4)
    xs = [0.2, 0.4, 0.6, 0.8]
    ys = [0.5, 0.5, 0.5, 0.9]
    calibrator.begin()
    frame = None
    for x, y in zip(xs, ys):
        frame = calibrator.add_sample(RawSample(x=x, y=y))

    assert frame is not None
    assert frame.center_x == pytest.approx(0.5)
    assert frame.center_y == pytest.approx(0.6)
    assert frame.spread_x == pytest.approx(statistics.pstdev(xs) * 1.8)
    assert frame.spread_y == pytest.approx(statistics.pstdev(ys) * 1.8)


def test_finalize_without_samples_is_a_noop():
    calibrator = calibration.Calibrator()
    assert calibrator.finalize() is None
    calibrator.begin()
    assert calibrator.finalize() is None
    assert calibrator.is_collecting()
    assert calibrator.frame() == CalibrationFrame()


def test_samples_are_ignored_unless_collecting():
    calibrator = calibration.Calibrator(sample_count=1)
    assert calibrator.add_sample(RawSample(x=0.1, y=0.1)) is None
    assert calibrator.phase() == calibration.CalibrationPhase.IDLE


def test_cancel_falls_back_to_previous_frame():
    calibrator = calibration.Calibrator(sample_count=2)
    calibrator.begin()
    calibrator.cancel()
    assert calibrator.phase() == calibration.CalibrationPhase.IDLE

    calibrator.begin()
    calibrator.add_sample(RawSample(x=0.5, y=0.5))
    first = calibrator.add_sample(RawSample(x=0.5, y=0.5))
    assert first is not None

    calibrator.begin()
    calibrator.add_sample(RawSample(x=0.9, y=0.9))
    calibrator.cancel()
    assert calibrator.is_ready()
    assert calibrator.frame() == first


def test_sample_count_must_be_positive():
    with pytest.raises(ValueError):
        calibration.Calibrator(sample_count=0)


def test_smoother_is_seeded_by_first_sample():
    smoother = calibration.SampleSmoother()
    assert smoother.current() is None
    assert smoother.update(RawSample(x=0.2, y=0.8)) == RawSample(x=0.2, y=0.8)

    smoothed = smoother.update(RawSample(x=1.2, y=0.0))
    assert smoothed.x == pytest.approx(0.2 + 1.0 * 0.35)
    assert smoothed.y == pytest.approx(0.8 - 0.8 * 0.35)

    smoother.reset()
    assert smoother.current() is None


def test_self_check_passes():
    calibration._run_unit_tests()
