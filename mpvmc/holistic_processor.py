#!/usr/bin/env python3
"""
MediaPipe Holistic Processing Module
Detects face, hand and pose landmarks in a single pass and converts the
results into tracking snapshots.
"""

# ============================================================================
# IMPORTS
# ============================================================================
import threading

import numpy as np
import mediapipe as mp

from .landmark_utils import snapshot_from_holistic


# ============================================================================
# HOLISTIC PROCESSOR CLASS
# ============================================================================
class HolisticProcessor:
    """Processor backed by mp.solutions.holistic"""

    def __init__(self, config=None):
        """
        Initialize the Holistic graph

        Args:
            config: Configuration object; the "mediapipe" section is used
        """
        mp_config = config.get('mediapipe') if config else {}
        self._lock = threading.Lock()
        self._closed = False
        self._holistic = mp.solutions.holistic.Holistic(
            static_image_mode=False,
            model_complexity=mp_config.get('model_complexity', 1),
            smooth_landmarks=True,
            refine_face_landmarks=mp_config.get('refine_face_landmarks', False),
            min_detection_confidence=mp_config.get('min_detection_confidence', 0.5),
            min_tracking_confidence=mp_config.get('min_tracking_confidence', 0.5)
        )
        print("✅ Initialized MediaPipe Holistic")

    def process(self, cancel_event, frame, width, height):
        """Run Holistic on an RGB24 frame; returns None if cancelled first"""
        if cancel_event is not None and cancel_event.is_set():
            return None

        image = np.frombuffer(frame, dtype=np.uint8)
        if image.size != width * height * 3:
            raise ValueError(f"frame has {image.size} bytes, expected {width}x{height}x3")
        image = image.reshape((height, width, 3))

        with self._lock:
            if self._closed:
                raise RuntimeError("holistic processor is closed")
            results = self._holistic.process(image)

        return snapshot_from_holistic(results)

    def close(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._holistic.close()
