import threading

import numpy as np
import pytest

from mpvmc.kalman import KalmanFilter, KalmanFilter3D, LandmarkSmoother
from mpvmc.types import Landmark, Point3D


def test_first_update_returns_measurement() -> None:
    kf = KalmanFilter(0.5)
    assert not kf.initialized
    assert kf.update(3.25) == 3.25
    assert kf.state() == 3.25
    assert kf.initialized
    assert kf.uncertainty == 1.0


def test_measurement_noise_follows_smoothing_factor() -> None:
    assert KalmanFilter(1.0).r == pytest.approx(0.1)
    assert KalmanFilter(0.0).r == pytest.approx(1.0)
    assert KalmanFilter(0.5).r == pytest.approx(0.55)
    assert KalmanFilter(0.5).q == pytest.approx(0.1)


def test_second_update_matches_recursion() -> None:
    kf = KalmanFilter(0.5)
    kf.update(0.0)
    p_pred = 1.0 + 0.1
    gain = p_pred / (p_pred + 0.55)
    assert kf.update(1.0) == pytest.approx(gain)
    assert kf.uncertainty == pytest.approx((1.0 - gain) * p_pred)


@pytest.mark.parametrize("factor", [0.0, 0.3, 0.5, 0.9, 1.0])
def test_output_never_overshoots(factor: float) -> None:
    rng = np.random.default_rng(7)
    kf = KalmanFilter(factor)
    previous = kf.update(0.0)
    for measurement in rng.normal(0.0, 5.0, size=200):
        measurement = float(measurement)
        estimate = kf.update(measurement)
        low, high = sorted((previous, measurement))
        if low == high:
            assert estimate == low
        else:
            assert low < estimate < high
        previous = estimate


@pytest.mark.parametrize("factor", [0.0, 0.5, 0.9])
def test_output_variance_below_input_variance(factor: float) -> None:
    rng = np.random.default_rng(42)
    measurements = 10.0 + rng.normal(0.0, 1.0, size=500)
    kf = KalmanFilter(factor)
    outputs = [kf.update(float(m)) for m in measurements]
    assert np.var(outputs[50:]) < np.var(measurements[50:])


def test_state_does_not_mutate() -> None:
    kf = KalmanFilter(0.2)
    kf.update(1.0)
    kf.update(2.0)
    before = kf.state()
    assert kf.state() == before
    assert kf.state() == before


def test_reset_returns_to_fresh_behavior() -> None:
    kf = KalmanFilter(0.1)
    for value in (1.0, 2.0, 3.0):
        kf.update(value)
    kf.reset()
    assert not kf.initialized
    assert kf.state() == 0.0
    assert kf.update(-7.5) == -7.5


def test_concurrent_updates_are_serialized() -> None:
    kf = KalmanFilter(0.5)
    kf.update(1.0)

    def worker() -> None:
        for _ in range(500):
            kf.update(1.0)
            kf.state()

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert kf.state() == pytest.approx(1.0)


def test_3d_axes_are_independent() -> None:
    kf = KalmanFilter3D(0.5)
    assert kf.update(Point3D(1.0, 2.0, 3.0)) == Point3D(1.0, 2.0, 3.0)
    moved = kf.update(Point3D(2.0, 2.0, 3.0))
    assert 1.0 < moved.x < 2.0
    assert moved.y == pytest.approx(2.0)
    assert moved.z == pytest.approx(3.0)

    kf.reset()
    assert kf.update(Point3D(9.0, 8.0, 7.0)) == Point3D(9.0, 8.0, 7.0)


def _landmarks(values, visibility=0.5):
    return [Landmark(point=Point3D(v, v, v), visibility=visibility) for v in values]


def test_smoother_preserves_length_order_and_visibility() -> None:
    smoother = LandmarkSmoother(0.5)
    first = smoother.smooth(_landmarks([0.0, 1.0, 2.0], visibility=0.8))
    assert [lm.x for lm in first] == [0.0, 1.0, 2.0]
    assert len(smoother) == 3

    second = smoother.smooth([
        Landmark(point=Point3D(1.0, 1.0, 1.0), visibility=0.1),
        Landmark(point=Point3D(1.0, 1.0, 1.0), visibility=0.2),
        Landmark(point=Point3D(1.0, 1.0, 1.0), visibility=0.3),
    ])
    assert len(second) == 3
    assert [lm.visibility for lm in second] == [0.1, 0.2, 0.3]
    assert 0.0 < second[0].x < 1.0
    assert second[1].x == pytest.approx(1.0)
    assert 1.0 < second[2].x < 2.0


def test_smoother_empty_input_allocates_nothing() -> None:
    smoother = LandmarkSmoother(0.5)
    empty = []
    assert smoother.smooth(empty) is empty
    assert smoother.smooth(None) is None
    assert len(smoother) == 0


def test_smoother_allocates_lazily_per_index() -> None:
    smoother = LandmarkSmoother(0.5)
    smoother.smooth(_landmarks([1.0, 2.0]))
    assert len(smoother) == 2
    smoother.smooth(_landmarks([1.0, 2.0, 3.0, 4.0, 5.0]))
    assert len(smoother) == 5


def test_smoother_reset_keeps_filters() -> None:
    smoother = LandmarkSmoother(0.2)
    smoother.smooth(_landmarks([0.0, 0.0]))
    smoother.smooth(_landmarks([1.0, 1.0]))
    smoother.reset()
    assert len(smoother) == 2
    result = smoother.smooth(_landmarks([5.0, 6.0]))
    assert [lm.x for lm in result] == [5.0, 6.0]
