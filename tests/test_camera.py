import numpy as np
import pytest

from mpvmc import camera as camera_module
from mpvmc.camera import OpenCVCamera, enumerate_cameras
from mpvmc.errors import CameraError


class FakeVideoCapture:
    """Stands in for cv2.VideoCapture with a fixed 2x3 BGR frame"""

    available = {0}

    def __init__(self, device_id):
        self.device_id = device_id
        self.props = {}
        self.released = False
        self.reads = 0
        self.fail_reads = False
        frame = np.zeros((2, 3, 3), dtype=np.uint8)
        frame[:, 0] = (255, 0, 0)  # blue in the left column (BGR)
        frame[:, 2] = (0, 0, 255)  # red in the right column
        self.frame = frame

    def isOpened(self):
        return self.device_id in self.available

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def get(self, prop):
        if prop == camera_module.cv2.CAP_PROP_FRAME_WIDTH:
            return 3.0
        if prop == camera_module.cv2.CAP_PROP_FRAME_HEIGHT:
            return 2.0
        return float(self.props.get(prop, 0))

    def read(self):
        self.reads += 1
        if self.fail_reads:
            return False, None
        return True, self.frame.copy()

    def release(self):
        self.released = True


@pytest.fixture
def fake_capture(monkeypatch):
    created = []

    def factory(device_id):
        cap = FakeVideoCapture(device_id)
        created.append(cap)
        return cap

    monkeypatch.setattr(camera_module.cv2, "VideoCapture", factory)
    return created


def test_open_configures_device(fake_capture):
    cam = OpenCVCamera(mirror=False)
    cam.open(0, 1280, 720, 30)
    cap = fake_capture[0]

    assert cam.is_opened
    assert cap.props[camera_module.cv2.CAP_PROP_FRAME_WIDTH] == 1280
    assert cap.props[camera_module.cv2.CAP_PROP_FPS] == 30
    assert cap.reads == 1
    assert cam.actual_resolution == (3, 2)
    assert cam.actual_fps == 30
    cam.close()
    assert cap.released


def test_open_missing_device_raises(fake_capture):
    cam = OpenCVCamera()
    with pytest.raises(CameraError, match="not found"):
        cam.open(5, 640, 480, 30)
    assert fake_capture[0].released
    assert not cam.is_opened


def test_double_open_raises(fake_capture):
    cam = OpenCVCamera()
    cam.open(0, 640, 480, 30)
    with pytest.raises(CameraError, match="already opened"):
        cam.open(0, 640, 480, 30)
    cam.close()


def test_read_returns_rgb_bytes(fake_capture):
    cam = OpenCVCamera(mirror=False)
    cam.open(0, 640, 480, 30)
    data, width, height = cam.read()
    cam.close()

    assert (width, height) == (3, 2)
    pixels = np.frombuffer(data, dtype=np.uint8).reshape(height, width, 3)
    assert tuple(pixels[0, 0]) == (0, 0, 255)
    assert tuple(pixels[0, 2]) == (255, 0, 0)


def test_mirror_flips_horizontally(fake_capture):
    cam = OpenCVCamera(mirror=True)
    cam.open(0, 640, 480, 30)
    data, width, height = cam.read()
    cam.close()

    pixels = np.frombuffer(data, dtype=np.uint8).reshape(height, width, 3)
    assert tuple(pixels[0, 0]) == (255, 0, 0)
    assert tuple(pixels[0, 2]) == (0, 0, 255)


def test_read_errors(fake_capture):
    cam = OpenCVCamera()
    with pytest.raises(CameraError, match="not opened"):
        cam.read()

    cam.open(0, 640, 480, 30)
    fake_capture[0].fail_reads = True
    with pytest.raises(CameraError, match="failed to read"):
        cam.read()
    cam.close()
    cam.close()


def test_enumerate_cameras(fake_capture):
    assert enumerate_cameras(3) == [0]
    assert len(fake_capture) == 3
    assert all(cap.released for cap in fake_capture)
