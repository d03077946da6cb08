"""
Tracking data types shared by the detector, smoother, senders and subscribers.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

FACE_LANDMARK_COUNT = 468
HAND_LANDMARK_COUNT = 21
POSE_LANDMARK_COUNT = 33


@dataclass
class Point3D:
    """A 3D coordinate"""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass
class Landmark:
    """A detected landmark point with a visibility confidence in [0, 1]"""
    point: Point3D = field(default_factory=Point3D)
    visibility: float = 0.0

    @property
    def x(self) -> float:
        return self.point.x

    @property
    def y(self) -> float:
        return self.point.y

    @property
    def z(self) -> float:
        return self.point.z


@dataclass
class Quaternion:
    """A rotation; the default value is the identity rotation"""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0


@dataclass
class FaceData:
    landmarks: List[Landmark] = field(default_factory=list)
    blend_shapes: Dict[str, float] = field(default_factory=dict)
    head_rotation: Quaternion = field(default_factory=Quaternion)
    head_position: Point3D = field(default_factory=Point3D)


@dataclass
class HandData:
    is_left: bool = False
    landmarks: List[Landmark] = field(default_factory=list)
    confidence: float = 0.0


@dataclass
class PoseData:
    landmarks: List[Landmark] = field(default_factory=list)


@dataclass
class TrackingSnapshot:
    """
    Tracking result for a single frame.

    A substructure left as None means it was not detected this frame.
    ``frame_number`` and ``timestamp`` are assigned by the tracker just
    before the snapshot is fanned out.
    """
    timestamp: float = 0.0
    frame_number: int = 0
    face: Optional[FaceData] = None
    left_hand: Optional[HandData] = None
    right_hand: Optional[HandData] = None
    pose: Optional[PoseData] = None

    def has_detections(self) -> bool:
        return any(part is not None for part in (self.face, self.left_hand, self.right_hand, self.pose))


class TrackerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"
    CLOSED = "closed"

    def __str__(self):
        return self.value
