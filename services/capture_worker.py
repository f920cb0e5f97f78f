"""
Capture worker: camera/video frames -> MediaPipe landmarks -> gesture session.

Runs in a daemon thread. Each frame goes through the face detector; the first
face's landmarks (or None when no face was found) are submitted to the
session, which serializes them with any HTTP-submitted frames. The loop ends
when stop() is called, when a file source runs out of frames, or when the
session stops accepting its frames.
"""

import logging
import threading
import time
from typing import Callable, Optional

import config
from gestures.errors import SessionClosedError
from gestures.face_detection_interface import FaceDetectorInterface
from gestures.video_source_handler import VideoSourceHandler, VideoSourceType

logger = logging.getLogger(__name__)


def _default_face_detector() -> FaceDetectorInterface:
    # Deferred: importing mediapipe is slow and only needed once capture starts
    from gestures.mediapipe_detector import MediaPipeFaceDetector
    return MediaPipeFaceDetector(
        min_detection_confidence=config.MIN_FACE_CONFIDENCE,
        min_tracking_confidence=config.MIN_TRACKING_CONFIDENCE,
    )


class GestureCaptureWorker:
    """
    Feeds a GestureSession from a video source.

    Usage:
        worker = GestureCaptureWorker(session)
        if worker.start(VideoSourceType.WEBCAM):
            ...
        worker.stop()
    """

    def __init__(
        self,
        session,
        face_detector_factory: Callable[[], FaceDetectorInterface] = _default_face_detector,
        video_handler: Optional[VideoSourceHandler] = None,
        target_fps: Optional[float] = None,
    ):
        self.session = session
        self._face_detector_factory = face_detector_factory
        self.face_detector: Optional[FaceDetectorInterface] = None
        self.video_handler = video_handler or VideoSourceHandler(config.CAPTURE_WIDTH, config.CAPTURE_HEIGHT)
        fps = float(target_fps if target_fps is not None else config.CAPTURE_TARGET_FPS)
        self.target_fps = fps if fps > 0 else 30.0
        self.timestamp_fps = self.target_fps
        self.source_type: Optional[VideoSourceType] = None
        self.capture_thread: Optional[threading.Thread] = None
        self.is_running = False
        self.frames_read = 0
        self._generation: Optional[int] = None
        self._time_origin = 0.0

    def start(self, source_type: VideoSourceType = VideoSourceType.WEBCAM, source_path: Optional[str] = None) -> bool:
        """
        Open the source and start the capture thread.

        Returns:
            True if capture started, False if the source could not be opened
        """
        if self.is_running:
            self.stop()

        if not self.video_handler.initialize_source(source_type, source_path):
            logger.error("Failed to open video source %s (%s)", source_type.value, source_path)
            return False
        self.source_type = source_type
        self.face_detector = self._face_detector_factory()
        try:
            self._generation = self.session.attach_capture(self)
        except SessionClosedError:
            self._release()
            raise
        self.timestamp_fps = self.target_fps
        if source_type == VideoSourceType.FILE:
            file_fps = self.video_handler.get_fps()
            if file_fps:
                self.timestamp_fps = file_fps
        self.frames_read = 0
        self._time_origin = time.monotonic()

        logger.info("Capture started for session %s from %s", self.session.session_id, source_type.value)
        self.is_running = True
        self.capture_thread = threading.Thread(target=self._capture_loop, daemon=True)
        self.capture_thread.start()
        return True

    def stop(self) -> None:
        """Stop the capture thread and release the camera and face detector."""
        self.is_running = False
        if (
            self.capture_thread
            and self.capture_thread.is_alive()
            and self.capture_thread is not threading.current_thread()
        ):
            self.capture_thread.join(timeout=2.0)
        self._release()

    def _release(self) -> None:
        self.video_handler.release()
        if self.face_detector is not None:
            self.face_detector.close()
            self.face_detector = None

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the capture thread ends. Returns True if it has ended."""
        if self.capture_thread is None:
            return True
        self.capture_thread.join(timeout)
        return not self.capture_thread.is_alive()

    def _capture_loop(self) -> None:
        frame_budget = 1.0 / self.target_fps
        while self.is_running:
            started = time.monotonic()
            try:
                ret, frame = self.video_handler.read_frame()
                if not ret:
                    if self.source_type == VideoSourceType.FILE:
                        logger.info("Video file exhausted after %d frames", self.frames_read)
                        break
                    time.sleep(frame_budget)
                    continue
                self.frames_read += 1

                faces = self.face_detector.detect_faces(frame) if self.face_detector else []
                landmarks = faces[0].landmarks if faces else None
                # File frames carry video time so cooldowns match playback, not decode speed
                timestamp = self._time_origin + self.frames_read / self.timestamp_fps if self.source_type == VideoSourceType.FILE else None
                result = self.session.process_frame(landmarks, timestamp, generation=self._generation)
                if result is None:
                    break  # Session was reset or capture was replaced

            except SessionClosedError:
                break
            except Exception as e:
                logger.error("Error in capture loop: %s", e)
                time.sleep(0.1)
                continue

            # File sources are processed as fast as possible
            if self.source_type != VideoSourceType.FILE:
                elapsed = time.monotonic() - started
                if elapsed < frame_budget:
                    time.sleep(frame_budget - elapsed)
        self.is_running = False
