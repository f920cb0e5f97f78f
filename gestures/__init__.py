"""
Gesture counting package.

Core pipeline (geometry ratios, smoothing, calibration, gesture state machines)
plus the landmark-source adapters used by the capture loop. The adapters
(mediapipe_detector, video_source_handler) import OpenCV/MediaPipe and are not
re-exported here so the core can be imported without them.
"""

from .errors import (
    GestureError,
    InputError,
    ConfigurationError,
    SessionNotFoundError,
    SessionClosedError,
    SessionLimitError,
)
from .landmark_schema import LandmarkSchema, MEDIAPIPE_FACE_MESH, DLIB_68, get_schema
from .geometry_metrics import SignalSample, as_landmark_array, compute_signals
from .smoothing_buffer import SmoothingBuffer
from .calibrator import Calibrator
from .gesture_config import GestureConfig
from .gesture_detector import GestureDetector, GestureEvent, GestureCounts, GestureKind

__all__ = [
    'GestureError',
    'InputError',
    'ConfigurationError',
    'SessionNotFoundError',
    'SessionClosedError',
    'SessionLimitError',
    'LandmarkSchema',
    'MEDIAPIPE_FACE_MESH',
    'DLIB_68',
    'get_schema',
    'SignalSample',
    'as_landmark_array',
    'compute_signals',
    'SmoothingBuffer',
    'Calibrator',
    'GestureConfig',
    'GestureDetector',
    'GestureEvent',
    'GestureCounts',
    'GestureKind',
]
