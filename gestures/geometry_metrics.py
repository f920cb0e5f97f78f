"""
Geometry Metrics Module

Pure per-frame computations that turn one frame of facial landmarks into the
three scalar signals the gesture counter tracks:

  - Eye aspect ratio (EAR): vertical lid distances over eye width, averaged
    over both eyes. Roughly 0.15-0.35 with the eyes open, near 0 when closed.
  - Mouth open ratio: inner lip gap over mouth width (scale-free).
  - Brow height ratio: eye-lid y minus brow y (positive when the brow sits
    above the eye, image y grows downward), divided by the inter-eye distance.

Nothing here keeps state. Any malformed frame raises InputError before the
caller has touched its own state.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np

from gestures.errors import InputError
from gestures.landmark_schema import LandmarkSchema, MEDIAPIPE_FACE_MESH


@dataclass(frozen=True)
class SignalSample:
    """Raw (unsmoothed) signal values for a single frame."""
    ear: float
    mouth: float
    brow: float


def _point_xy(point: Any) -> Sequence[float]:
    if isinstance(point, Mapping):
        return (point["x"], point["y"])
    if hasattr(point, "x") and hasattr(point, "y"):
        return (point.x, point.y)
    return tuple(point)[:2]


def as_landmark_array(
    landmarks: Any,
    schema: LandmarkSchema = MEDIAPIPE_FACE_MESH,
) -> Optional[np.ndarray]:
    """
    Convert a landmark frame into an (N, 2) float array.

    Accepts a numpy array of shape (N, 2) or (N, 3), a sequence of (x, y[, z])
    sequences, a sequence of {"x": .., "y": ..} mappings, a sequence of
    objects with .x/.y attributes, or a MediaPipe landmark list (.landmark).

    Returns:
        The (N, 2) array, or None when the frame is absent or empty (no face).

    Raises:
        InputError: Wrong shape, non-numeric or non-finite coordinates, or a
            point count the schema does not accept.
    """
    if landmarks is None:
        return None
    if hasattr(landmarks, "landmark"):
        landmarks = landmarks.landmark

    try:
        if isinstance(landmarks, np.ndarray):
            arr = np.asarray(landmarks, dtype=np.float64)
        else:
            points = list(landmarks)
            if not points:
                return None
            arr = np.array([_point_xy(p) for p in points], dtype=np.float64)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise InputError(f"Landmark frame could not be read: {e}") from e

    if arr.size == 0:
        return None
    if arr.ndim != 2 or arr.shape[1] < 2:
        raise InputError(f"Landmark frame must be (N, 2) or (N, 3), got shape {arr.shape}")
    arr = arr[:, :2]
    if not np.all(np.isfinite(arr)):
        raise InputError("Landmark frame contains non-finite coordinates")
    if not schema.accepts(arr.shape[0]):
        raise InputError(
            f"Landmark frame has {arr.shape[0]} points; schema '{schema.name}' "
            f"expects {' or '.join(str(n) for n in schema.point_counts)}"
        )
    return arr


def _distance(lm: np.ndarray, a: int, b: int) -> float:
    try:
        return float(np.linalg.norm(lm[a] - lm[b]))
    except IndexError as e:
        raise InputError(f"Landmark index out of range: {e}") from e


def _mean_y(lm: np.ndarray, indices: Sequence[int]) -> float:
    try:
        return float(np.mean(lm[list(indices), 1]))
    except IndexError as e:
        raise InputError(f"Landmark index out of range: {e}") from e


def _nonzero(value: float, what: str) -> float:
    if value <= 0.0:
        raise InputError(f"Degenerate landmark geometry: {what} is zero")
    return value


def eye_aspect_ratio(
    lm: np.ndarray,
    side: str = "left",
    schema: LandmarkSchema = MEDIAPIPE_FACE_MESH,
) -> float:
    """
    EAR for one eye: (||p1-p5|| + ||p2-p4||) / (2 * ||p0-p3||).

    Args:
        lm: (N, 2) landmark array
        side: "left" or "right"
        schema: Landmark index table
    """
    if side == "left":
        p = schema.left_eye_ear
    elif side == "right":
        p = schema.right_eye_ear
    else:
        raise ValueError("side must be 'left' or 'right'")
    a = _distance(lm, p[1], p[5])
    b = _distance(lm, p[2], p[4])
    c = _nonzero(_distance(lm, p[0], p[3]), f"{side} eye width")
    return (a + b) / (2.0 * c)


def mean_eye_aspect_ratio(lm: np.ndarray, schema: LandmarkSchema = MEDIAPIPE_FACE_MESH) -> float:
    """Mean of the left and right EAR."""
    return (eye_aspect_ratio(lm, "left", schema) + eye_aspect_ratio(lm, "right", schema)) / 2.0


def mouth_open_ratio(lm: np.ndarray, schema: LandmarkSchema = MEDIAPIPE_FACE_MESH) -> float:
    """Inner lip gap divided by mouth width."""
    gap = _distance(lm, schema.upper_lip, schema.lower_lip)
    width = _nonzero(
        _distance(lm, schema.mouth_corner_left, schema.mouth_corner_right), "mouth width"
    )
    return gap / width


def brow_height_ratio(lm: np.ndarray, schema: LandmarkSchema = MEDIAPIPE_FACE_MESH) -> float:
    """Mean eye-to-brow height over both sides, normalized by inter-eye distance."""
    left = _mean_y(lm, schema.left_eye_lids) - _mean_y(lm, schema.left_brow)
    right = _mean_y(lm, schema.right_eye_lids) - _mean_y(lm, schema.right_brow)
    eye_dist = _nonzero(
        _distance(lm, schema.left_eye_lids[0], schema.right_eye_lids[0]), "inter-eye distance"
    )
    return ((left + right) / 2.0) / eye_dist


def compute_signals(lm: np.ndarray, schema: LandmarkSchema = MEDIAPIPE_FACE_MESH) -> SignalSample:
    """All three raw signals for one frame. Raises InputError on any failure."""
    return SignalSample(
        ear=mean_eye_aspect_ratio(lm, schema),
        mouth=mouth_open_ratio(lm, schema),
        brow=brow_height_ratio(lm, schema),
    )
