"""
Landmark Schema Module

Named index tables for the facial features the gesture counter reads. The
metrics never hard-code landmark indices; they look them up in a schema, so a
different landmark topology is supported by passing a different schema.

Two schemas ship:
  - MediaPipe Face Mesh (468 points, 478 with refined iris landmarks). Default.
  - iBUG 300-W / dlib 68-point layout.
"""

from dataclasses import dataclass
from typing import Dict, Tuple

from gestures.errors import ConfigurationError


@dataclass(frozen=True)
class LandmarkSchema:
    """
    Index table for one landmark topology.

    EAR tuples are ordered (p0, p1, p2, p3, p4, p5): p0/p3 are the eye corners,
    p1/p5 and p2/p4 are the vertical lid pairs.
    """
    name: str
    version: str
    point_counts: Tuple[int, ...]  # Accepted frame cardinalities
    left_eye_ear: Tuple[int, int, int, int, int, int]
    right_eye_ear: Tuple[int, int, int, int, int, int]
    left_brow: Tuple[int, ...]
    right_brow: Tuple[int, ...]
    left_eye_lids: Tuple[int, ...]  # First entry also anchors the inter-eye distance
    right_eye_lids: Tuple[int, ...]
    upper_lip: int
    lower_lip: int
    mouth_corner_left: int
    mouth_corner_right: int

    @property
    def required_points(self) -> int:
        """Smallest frame size that contains every index this schema reads."""
        indices = (
            self.left_eye_ear + self.right_eye_ear
            + self.left_brow + self.right_brow
            + self.left_eye_lids + self.right_eye_lids
            + (self.upper_lip, self.lower_lip, self.mouth_corner_left, self.mouth_corner_right)
        )
        return max(indices) + 1

    def accepts(self, n_points: int) -> bool:
        return n_points in self.point_counts


MEDIAPIPE_FACE_MESH = LandmarkSchema(
    name="mediapipe",
    version="mediapipe-face-mesh/1",
    point_counts=(468, 478),
    left_eye_ear=(33, 160, 158, 133, 153, 144),
    right_eye_ear=(362, 385, 387, 263, 373, 380),
    left_brow=(70, 63, 105),
    right_brow=(300, 293, 334),
    left_eye_lids=(159, 145),
    right_eye_lids=(386, 374),
    upper_lip=13,
    lower_lip=14,
    mouth_corner_left=78,
    mouth_corner_right=308,
)

DLIB_68 = LandmarkSchema(
    name="dlib68",
    version="ibug-300w-68/1",
    point_counts=(68,),
    left_eye_ear=(36, 37, 38, 39, 40, 41),
    right_eye_ear=(42, 43, 44, 45, 46, 47),
    left_brow=(18, 19, 20),
    right_brow=(23, 24, 25),
    left_eye_lids=(37, 41),
    right_eye_lids=(43, 47),
    upper_lip=62,
    lower_lip=66,
    mouth_corner_left=60,
    mouth_corner_right=64,
)

SCHEMAS: Dict[str, LandmarkSchema] = {
    MEDIAPIPE_FACE_MESH.name: MEDIAPIPE_FACE_MESH,
    DLIB_68.name: DLIB_68,
}


def get_schema(name: str) -> LandmarkSchema:
    """Return the schema registered under name (case-insensitive)."""
    key = (name or "").strip().lower()
    if key not in SCHEMAS:
        raise ConfigurationError(
            f"Unknown landmark schema '{name}'. Must be one of: {', '.join(sorted(SCHEMAS))}"
        )
    return SCHEMAS[key]
