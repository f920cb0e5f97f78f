"""
Video Source Handler Module

Unified frame reader over OpenCV sources:
- Webcam (first camera index that opens and delivers a frame)
- Local video files
- Network streams (RTSP/HTTP URLs)
"""

import logging
import math
import sys
from enum import Enum
from typing import Optional, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class VideoSourceType(Enum):
    """Enumeration of supported video source types."""
    WEBCAM = "webcam"
    FILE = "file"
    STREAM = "stream"


class VideoSourceHandler:
    """
    Reads BGR frames from a webcam, file or stream.

    Usage:
        handler = VideoSourceHandler()
        handler.initialize_source(VideoSourceType.WEBCAM)
        ret, frame = handler.read_frame()
        handler.release()
    """

    def __init__(self, width: int = 640, height: int = 480):
        self.cap: Optional[cv2.VideoCapture] = None
        self.source_type: Optional[VideoSourceType] = None
        self.source_path: Optional[str] = None
        self.width = width
        self.height = height

    def initialize_source(self, source_type: VideoSourceType, source_path: Optional[str] = None) -> bool:
        """
        Open a video source, releasing any previous one.

        Args:
            source_type: WEBCAM, FILE or STREAM
            source_path: File path or stream URL (required for FILE and STREAM)

        Returns:
            True if the source opened
        """
        self.release()
        self.source_type = source_type
        self.source_path = source_path

        try:
            if source_type == VideoSourceType.WEBCAM:
                self.cap = self._open_webcam()
                if self.cap is not None and self.cap.isOpened():
                    self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
                    self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
                    self.cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
            elif source_type in (VideoSourceType.FILE, VideoSourceType.STREAM):
                if not source_path:
                    raise ValueError(f"source_path is required for {source_type.value} source type")
                self.cap = cv2.VideoCapture(source_path)
            else:
                raise ValueError(f"Unsupported source type: {source_type}")

            return self.cap is not None and self.cap.isOpened()

        except Exception as e:
            logger.error("Error initializing video source: %s", e)
            self.release()
            return False

    @staticmethod
    def _open_webcam() -> Optional[cv2.VideoCapture]:
        apis = [cv2.CAP_DSHOW, cv2.CAP_MSMF, cv2.CAP_ANY] if sys.platform == "win32" else [cv2.CAP_ANY]
        for api in apis:
            for index in (0, 1, 2):
                cap = cv2.VideoCapture(index, api)
                if cap.isOpened() and cap.read()[0]:
                    return cap
                cap.release()
        return None

    def read_frame(self) -> Tuple[bool, Optional[np.ndarray]]:
        """
        Returns:
            (success, frame) where frame is a BGR array when success is True
        """
        if not self.cap or not self.cap.isOpened():
            return False, None
        ret, frame = self.cap.read()
        if not ret or frame is None:
            return False, None
        return True, frame

    def get_fps(self) -> Optional[float]:
        """Frame rate reported by the open source, or None when it reports none."""
        if not self.cap or not self.cap.isOpened():
            return None
        fps = float(self.cap.get(cv2.CAP_PROP_FPS) or 0.0)
        return fps if math.isfinite(fps) and fps > 0 else None

    def release(self) -> None:
        """Release the current video source."""
        if self.cap:
            self.cap.release()
            self.cap = None
        self.source_type = None
        self.source_path = None
