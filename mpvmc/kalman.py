"""
Kalman smoothing for landmark streams.

A scalar recursive estimator, its per-axis 3D composition, and a smoother
that keeps one 3D filter per landmark index.
"""
import threading
from typing import Dict, List, Optional

from .types import Landmark, Point3D

PROCESS_NOISE = 0.1
INITIAL_UNCERTAINTY = 1.0


class KalmanFilter:
    """
    1D Kalman filter with fixed noise parameters.

    The smoothing factor trades smoothness for responsiveness:
        0.0 = maximum smoothing (slow response)
        1.0 = no smoothing (instant response)
    """

    def __init__(self, smoothing_factor=0.5):
        self._lock = threading.Lock()
        # Measurement noise ranges from 0.1 (factor 1.0) to 1.0 (factor 0.0)
        self.q = PROCESS_NOISE
        self.r = 0.1 + (1.0 - smoothing_factor) * 0.9
        self._x = 0.0
        self._p = INITIAL_UNCERTAINTY
        self._initialized = False

    def update(self, measurement: float) -> float:
        """Fold a measurement into the estimate and return the new estimate"""
        with self._lock:
            if not self._initialized:
                # First sample is adopted verbatim so the first frame is never damped
                self._x = measurement
                self._p = INITIAL_UNCERTAINTY
                self._initialized = True
                return measurement

            p_pred = self._p + self.q
            gain = p_pred / (p_pred + self.r)
            self._x = self._x + gain * (measurement - self._x)
            self._p = (1.0 - gain) * p_pred
            return self._x

    def reset(self) -> None:
        """Return to the uninitialized state"""
        with self._lock:
            self._x = 0.0
            self._p = INITIAL_UNCERTAINTY
            self._initialized = False

    def state(self) -> float:
        with self._lock:
            return self._x

    @property
    def uncertainty(self) -> float:
        with self._lock:
            return self._p

    @property
    def initialized(self) -> bool:
        with self._lock:
            return self._initialized


class KalmanFilter3D:
    """Independent Kalman filters for the x, y and z axes"""

    def __init__(self, smoothing_factor=0.5):
        self.x = KalmanFilter(smoothing_factor)
        self.y = KalmanFilter(smoothing_factor)
        self.z = KalmanFilter(smoothing_factor)

    def update(self, point: Point3D) -> Point3D:
        return Point3D(
            x=self.x.update(point.x),
            y=self.y.update(point.y),
            z=self.z.update(point.z),
        )

    def reset(self) -> None:
        self.x.reset()
        self.y.reset()
        self.z.reset()


class LandmarkSmoother:
    """
    Smooths landmark arrays with one KalmanFilter3D per landmark index.

    Filters are created the first time an index is observed. Visibility is
    a detector confidence and is passed through untouched.
    """

    def __init__(self, smoothing_factor=0.5):
        self.smoothing_factor = smoothing_factor
        self._lock = threading.Lock()
        self._filters: Dict[int, KalmanFilter3D] = {}

    def smooth(self, landmarks: Optional[List[Landmark]]) -> Optional[List[Landmark]]:
        """Return a filtered copy of ``landmarks`` in the same order"""
        if not landmarks:
            return landmarks

        with self._lock:
            result = []
            for idx, landmark in enumerate(landmarks):
                kf = self._filters.get(idx)
                if kf is None:
                    kf = KalmanFilter3D(self.smoothing_factor)
                    self._filters[idx] = kf
                result.append(Landmark(point=kf.update(landmark.point), visibility=landmark.visibility))
            return result

    def reset(self) -> None:
        """Reset every filter; allocated filters are kept for reuse"""
        with self._lock:
            for kf in self._filters.values():
                kf.reset()

    def __len__(self):
        with self._lock:
            return len(self._filters)
