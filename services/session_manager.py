"""
Gesture session management.

A GestureSession is the explicit per-user context: one GestureDetector (its
buffers, baselines, flags and counters), a lock that serializes every frame
and control operation, and optionally a capture worker feeding it camera
frames. SessionManager keeps the open sessions by id for the HTTP layer.

Frames from a capture worker carry the session generation they were started
under; reset() and stop() bump the generation, so a frame still in flight from
a stopped worker is dropped instead of landing on fresh state.
"""

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import config
from gestures.errors import (
    InputError,
    SessionClosedError,
    SessionLimitError,
    SessionNotFoundError,
)
from gestures.gesture_config import GestureConfig
from gestures.gesture_detector import GestureCounts, GestureDetector, GestureEvent

logger = logging.getLogger(__name__)


@dataclass
class FrameResult:
    """Outcome of one submitted frame."""
    counts: GestureCounts
    events: List[GestureEvent] = field(default_factory=list)
    face_detected: bool = True
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "counts": self.counts.to_dict(),
            "events": [e.to_dict() for e in self.events],
            "faceDetected": self.face_detected,
        }
        if self.error:
            out["error"] = self.error
        return out


class GestureSession:
    """One gesture-counting session. All public methods are thread-safe."""

    def __init__(
        self,
        gesture_config: GestureConfig,
        session_id: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
        event_callback: Optional[Callable[[GestureEvent], None]] = None,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.config = gesture_config
        self.lock = threading.Lock()
        self.detector = GestureDetector(gesture_config, clock=clock, event_callback=event_callback)
        self.created_at = time.time()
        self.closed = False
        self.generation = 0
        self.frames_skipped = 0
        self.no_face_frames = 0
        self.last_error: Optional[str] = None
        self.capture_worker = None

    def process_frame(
        self,
        landmarks: Any,
        timestamp: Optional[float] = None,
        generation: Optional[int] = None,
    ) -> Optional[FrameResult]:
        """
        Feed one landmark frame to the detector.

        A malformed frame is skipped: it is logged, counted in frames_skipped
        and reported in FrameResult.error, and no detector state changes.

        Args:
            landmarks: Landmark frame; None/empty means no face
            timestamp: Logical frame time in seconds (detector clock when None)
            generation: Generation the caller was started under; stale callers get None

        Raises:
            SessionClosedError: The session was stopped
        """
        with self.lock:
            if self.closed:
                raise SessionClosedError(f"Session {self.session_id} is stopped")
            if generation is not None and generation != self.generation:
                return None
            before = self.detector.frames_processed
            try:
                events = self.detector.update(landmarks, timestamp)
            except InputError as e:
                self.frames_skipped += 1
                self.last_error = str(e)
                logger.warning("Session %s: frame skipped: %s", self.session_id, e)
                return FrameResult(self.detector.counts, [], face_detected=False, error=str(e))
            face_detected = self.detector.frames_processed > before
            if not face_detected:
                self.no_face_frames += 1
            return FrameResult(self.detector.counts, events, face_detected=face_detected)

    @property
    def counts(self) -> GestureCounts:
        with self.lock:
            return self.detector.counts

    def status(self) -> Dict[str, Any]:
        with self.lock:
            out = self.detector.status()
            out.update({
                "sessionId": self.session_id,
                "counts": self.detector.counts.to_dict(),
                "framesSkipped": self.frames_skipped,
                "noFaceFrames": self.no_face_frames,
                "lastError": self.last_error,
                "closed": self.closed,
                "capturing": bool(self.capture_worker and self.capture_worker.is_running),
            })
            return out

    def attach_capture(self, worker) -> int:
        """Stop any running capture worker, attach worker and return the generation it must use."""
        self.detach_capture()
        with self.lock:
            if self.closed:
                raise SessionClosedError(f"Session {self.session_id} is stopped")
            self.capture_worker = worker
            return self.generation

    def detach_capture(self) -> None:
        """Stop and forget the capture worker, if any. Must not be called with the lock held."""
        with self.lock:
            worker = self.capture_worker
            self.capture_worker = None
            self.generation += 1
        if worker is not None:
            worker.stop()

    def reset(self) -> GestureCounts:
        """Stop capture and discard all buffers, baselines, flags and counters."""
        self.detach_capture()
        with self.lock:
            if self.closed:
                raise SessionClosedError(f"Session {self.session_id} is stopped")
            self.detector.reset()
            self.frames_skipped = 0
            self.no_face_frames = 0
            self.last_error = None
            logger.info("Session %s reset", self.session_id)
            return self.detector.counts

    def stop(self) -> GestureCounts:
        """Stop capture, release resources and close the session. Returns the final counts."""
        self.detach_capture()
        with self.lock:
            final = self.detector.counts
            self.detector.reset()
            self.closed = True
            logger.info("Session %s stopped (final counts %s)", self.session_id, final.to_dict())
            return final


class SessionManager:
    """
    Registry of open gesture sessions.

    Usage:
        manager = get_session_manager()
        session = manager.start_session()
        result = session.process_frame(landmarks)
        manager.stop_session(session.session_id)
    """

    def __init__(
        self,
        max_sessions: Optional[int] = None,
        config_provider: Callable[[], Dict[str, Any]] = config.get_gesture_config,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_sessions = int(max_sessions if max_sessions is not None else config.MAX_SESSIONS)
        self._config_provider = config_provider
        self._clock = clock
        self._sessions: Dict[str, GestureSession] = {}
        self._lock = threading.Lock()

    def start_session(
        self,
        overrides: Optional[Dict[str, Any]] = None,
        event_callback: Optional[Callable[[GestureEvent], None]] = None,
    ) -> GestureSession:
        """
        Create a session with fresh, zeroed state.

        Args:
            overrides: Per-session tunables overriding config values

        Raises:
            ConfigurationError: Invalid tunables; no session is created
            SessionLimitError: max_sessions sessions are already open
        """
        gesture_config = GestureConfig.from_mapping(self._config_provider(), overrides)
        session = GestureSession(gesture_config, clock=self._clock, event_callback=event_callback)
        with self._lock:
            if len(self._sessions) >= self.max_sessions:
                raise SessionLimitError(f"Too many open sessions (max {self.max_sessions})")
            self._sessions[session.session_id] = session
        logger.info("Session %s started (schema=%s)", session.session_id, gesture_config.landmark_schema)
        return session

    def get_session(self, session_id: str) -> GestureSession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Unknown session: {session_id}")
        return session

    def reset_session(self, session_id: str) -> GestureSession:
        session = self.get_session(session_id)
        session.reset()
        return session

    def stop_session(self, session_id: str) -> GestureCounts:
        """Stop a session and forget it. Returns its final counts."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(f"Unknown session: {session_id}")
        return session.stop()

    def stop_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.stop()

    def list_sessions(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


# Lazy singleton: initialized on first use to avoid loading at import time
_session_manager: Optional[SessionManager] = None


def get_session_manager() -> SessionManager:
    """Return the process-wide SessionManager, creating it on first call (lazy init)."""
    global _session_manager
    if _session_manager is None:
        _session_manager = SessionManager()
    return _session_manager


def shutdown_session_manager() -> None:
    """Stop every open session and its capture; registered with atexit by app.py."""
    if _session_manager is not None:
        _session_manager.stop_all()
