"""
OpenCV webcam capture source.
"""
import threading

import cv2
import numpy as np

from .errors import CameraError


class OpenCVCamera:
    """
    CameraSource backed by cv2.VideoCapture.

    Frames are returned as contiguous RGB24 bytes. With mirror enabled the
    image is flipped horizontally so the user sees themselves as in a mirror.
    """

    def __init__(self, mirror=True, buffer_size=1):
        self._lock = threading.Lock()
        self._mirror = mirror
        self.buffer_size = buffer_size
        self._cap = None
        self.device_id = None
        self._width = 0
        self._height = 0
        self._fps = 0

    @property
    def is_opened(self):
        with self._lock:
            return self._cap is not None

    @property
    def mirror(self):
        with self._lock:
            return self._mirror

    @mirror.setter
    def mirror(self, enabled):
        with self._lock:
            self._mirror = bool(enabled)

    @property
    def actual_resolution(self):
        """Resolution reported by the device, which may differ from the request"""
        with self._lock:
            return self._width, self._height

    @property
    def actual_fps(self):
        with self._lock:
            return self._fps

    def open(self, device_id, width, height, fps):
        """Open and configure the capture device"""
        with self._lock:
            if self._cap is not None:
                raise CameraError("camera already opened")

            cap = cv2.VideoCapture(device_id)
            if not cap.isOpened():
                cap.release()
                raise CameraError(f"camera device {device_id} not found or unavailable")

            # MJPG is the most widely supported USB webcam codec
            cap.set(cv2.CAP_PROP_FOURCC, cv2.VideoWriter_fourcc(*'MJPG'))
            cap.set(cv2.CAP_PROP_BUFFERSIZE, self.buffer_size)
            if width > 0:
                cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            if height > 0:
                cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
            if fps > 0:
                cap.set(cv2.CAP_PROP_FPS, fps)

            self.device_id = device_id
            self._width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
            self._height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
            self._fps = int(cap.get(cv2.CAP_PROP_FPS))
            self._cap = cap

            # Some devices need one frame to settle
            cap.read()

        print(f"📷 Camera setup: Device {device_id}, {self._width}x{self._height} @ {self._fps}fps")

    def read(self):
        """Capture one frame; returns (rgb_bytes, width, height)"""
        with self._lock:
            if self._cap is None:
                raise CameraError("camera not opened")

            ret, frame = self._cap.read()
            if not ret:
                raise CameraError("failed to read frame from camera")
            if frame is None or frame.size == 0:
                raise CameraError("captured frame is empty")

            if self._mirror:
                frame = cv2.flip(frame, 1)
            rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

        height, width = rgb_frame.shape[:2]
        return np.ascontiguousarray(rgb_frame, dtype=np.uint8).tobytes(), width, height

    def close(self):
        with self._lock:
            cap, self._cap = self._cap, None
        if cap is not None:
            cap.release()


def enumerate_cameras(max_devices=10):
    """Best-effort probe of camera device indices that can be opened"""
    devices = []
    for device_id in range(max_devices if max_devices > 0 else 10):
        cap = cv2.VideoCapture(device_id)
        try:
            if cap.isOpened():
                devices.append(device_id)
        finally:
            cap.release()
    return devices
