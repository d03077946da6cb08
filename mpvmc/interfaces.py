"""
Pluggable collaborator contracts consumed by the Tracker.

Any object with matching methods can be registered, including test doubles.
Failures are reported by raising.
"""
import threading
from typing import Optional, Protocol, Tuple

from .types import TrackingSnapshot


class CameraSource(Protocol):
    def open(self, device_id: int, width: int, height: int, fps: int) -> None:
        """Initialize the capture device"""

    def read(self) -> Tuple[bytes, int, int]:
        """Capture one frame as contiguous interleaved 3-channel bytes plus (width, height)"""

    def close(self) -> None:
        """Release the capture device"""


class Processor(Protocol):
    def process(self, cancel_event: threading.Event, frame: bytes, width: int,
                height: int) -> Optional[TrackingSnapshot]:
        """Detect landmarks in a frame; None means nothing to publish this tick"""

    def close(self) -> None:
        """Release detector resources"""


class Sender(Protocol):
    def send(self, snapshot: TrackingSnapshot) -> None:
        """Transmit one snapshot"""

    def close(self) -> None:
        """Release sender resources"""


class PreviewSink(Protocol):
    def show(self, frame: bytes, width: int, height: int) -> None:
        """Display a captured frame without blocking the caller"""

    def close(self) -> None:
        """Close the window"""
