"""
MediaPipe Face Detection Implementation

MediaPipe Face Mesh backend for the capture loop: one face, refined
landmarks (478 points), normalized coordinates. When the tracking-mode mesh
loses the face, a static-mode mesh (created on first use) retries the frame.
"""

from typing import List

import cv2
import mediapipe as mp
import numpy as np

from gestures.face_detection_interface import FaceDetectionResult, FaceDetectorInterface


class MediaPipeFaceDetector(FaceDetectorInterface):
    """MediaPipe Face Mesh returning normalized landmarks for a single face."""

    def __init__(self, min_detection_confidence: float = 0.5, min_tracking_confidence: float = 0.5):
        self._det_conf = max(0.01, min(0.99, float(min_detection_confidence)))
        self._track_conf = max(0.01, min(0.99, float(min_tracking_confidence)))

        self.mp_face_mesh = mp.solutions.face_mesh
        self.face_mesh = self.mp_face_mesh.FaceMesh(
            static_image_mode=False,
            max_num_faces=1,
            refine_landmarks=True,
            min_detection_confidence=self._det_conf,
            min_tracking_confidence=self._track_conf,
        )
        # Fallback: created on first tracking failure
        self._face_mesh_static = None

    def detect_faces(self, image: np.ndarray) -> List[FaceDetectionResult]:
        """
        Run Face Mesh on a BGR frame.

        Returns:
            One FaceDetectionResult, or an empty list when no face was found
        """
        if image is None or image.size == 0:
            return []

        rgb_image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        height, width = image.shape[:2]

        results = self.face_mesh.process(rgb_image)
        if not results.multi_face_landmarks:
            results = self._get_face_mesh_static().process(rgb_image)
        if not results.multi_face_landmarks:
            return []
        return self._extract_landmarks(results, width, height)

    def _get_face_mesh_static(self):
        if self._face_mesh_static is None:
            self._face_mesh_static = self.mp_face_mesh.FaceMesh(
                static_image_mode=True,
                max_num_faces=1,
                refine_landmarks=True,
                min_detection_confidence=self._det_conf,
            )
        return self._face_mesh_static

    def _extract_landmarks(self, results, width: int, height: int) -> List[FaceDetectionResult]:
        face_results = []
        for face_landmarks in results.multi_face_landmarks:
            landmarks_array = np.array(
                [[p.x, p.y, p.z] for p in face_landmarks.landmark], dtype=np.float64
            )
            x_coords = landmarks_array[:, 0] * width
            y_coords = landmarks_array[:, 1] * height
            left, top = int(np.min(x_coords)), int(np.min(y_coords))
            right, bottom = int(np.max(x_coords)), int(np.max(y_coords))
            face_results.append(
                FaceDetectionResult(
                    landmarks=landmarks_array,
                    bounding_box=(left, top, right - left, bottom - top),
                )
            )
        return face_results

    def get_name(self) -> str:
        return "mediapipe"

    def close(self) -> None:
        """Clean up MediaPipe resources."""
        for mesh in (self.face_mesh, self._face_mesh_static):
            if mesh is not None:
                mesh.close()
        self._face_mesh_static = None
