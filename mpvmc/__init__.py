#!/usr/bin/env python3
"""
mp-vmc Package
Landmark tracking coordinator with Kalman smoothing and VMC/OSC output

The MediaPipe Holistic processor lives in mpvmc.holistic_processor and is
imported on demand since mediapipe is an optional dependency.
"""

# ============================================================================
# IMPORTS
# ============================================================================
from .types import (
    Point3D,
    Landmark,
    Quaternion,
    FaceData,
    HandData,
    PoseData,
    TrackingSnapshot,
    TrackerState
)
from .errors import (
    MpVmcError,
    TrackerError,
    TrackerClosedError,
    TrackerRunningError,
    TrackerNotRunningError,
    TrackerStateError,
    TrackerCloseError,
    SubscriptionClosed,
    SenderError,
    CameraError,
    ConfigError,
    PreviewError
)
from .interfaces import CameraSource, Processor, Sender, PreviewSink
from .kalman import KalmanFilter, KalmanFilter3D, LandmarkSmoother
from .osc_codec import build_osc_message
from .vmc_sender import VMCSender
from .osc_sender import ThreadedOSCSender, LandmarkOSCSender
from .tracker import Tracker, Subscription
from .camera import OpenCVCamera, enumerate_cameras
from .preview import PreviewWindow
from .config import Config, get_config

__version__ = "0.1.0"


# ============================================================================
# PUBLIC API
# ============================================================================
__all__ = [
    # Data Types
    'Point3D',
    'Landmark',
    'Quaternion',
    'FaceData',
    'HandData',
    'PoseData',
    'TrackingSnapshot',
    'TrackerState',

    # Errors
    'MpVmcError',
    'TrackerError',
    'TrackerClosedError',
    'TrackerRunningError',
    'TrackerNotRunningError',
    'TrackerStateError',
    'TrackerCloseError',
    'SubscriptionClosed',
    'SenderError',
    'CameraError',
    'ConfigError',
    'PreviewError',

    # Collaborator Contracts
    'CameraSource',
    'Processor',
    'Sender',
    'PreviewSink',

    # Smoothing
    'KalmanFilter',
    'KalmanFilter3D',
    'LandmarkSmoother',

    # Protocol Output
    'build_osc_message',
    'VMCSender',
    'ThreadedOSCSender',
    'LandmarkOSCSender',

    # Coordinator
    'Tracker',
    'Subscription',

    # Capture
    'OpenCVCamera',
    'enumerate_cameras',
    'PreviewWindow',

    # Configuration
    'Config',
    'get_config'
]
