"""
Face Detection Interface Module

Abstract interface for landmark sources, so the capture loop can feed the
gesture counter from MediaPipe or any other face-landmark backend.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np


@dataclass
class FaceDetectionResult:
    """
    Standardized face detection result.

    Landmarks are normalized to the frame (x, y in 0..1), which is the
    coordinate convention the gesture thresholds were tuned on.
    """
    landmarks: np.ndarray  # (N, 2) or (N, 3) array
    bounding_box: Optional[Tuple[int, int, int, int]] = None  # (left, top, width, height) in pixels
    confidence: float = 1.0


class FaceDetectorInterface(ABC):
    """Landmark backend used by services.capture_worker."""

    @abstractmethod
    def detect_faces(self, image: np.ndarray) -> List[FaceDetectionResult]:
        """
        Detect faces in an image.

        Args:
            image: BGR image array (OpenCV format)

        Returns:
            List of FaceDetectionResult objects, one per detected face
        """

    @abstractmethod
    def get_name(self) -> str:
        """Name of this backend (e.g. "mediapipe")."""

    def close(self) -> None:
        """Release backend resources. Default implementation does nothing."""
