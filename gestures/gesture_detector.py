"""
Gesture Detector Module

Turns a stream of facial landmark frames into debounced counts of three
gestures: eye blink, eyebrow raise and mouth open.

Per frame:
  landmarks -> geometry ratios (EAR, mouth, brow)
            -> per-signal moving average
            -> baseline calibration (EAR and brow, first N frames)
            -> gesture state machines -> events / counters

State machines:
  Blink   - event-only. Fires when smoothed EAR drops below baseline * 0.7 and
            the blink cooldown (250 ms) has expired. The EAR baseline is used
            while it is still being calibrated, so blinks count from the
            first frames.
  Eyebrow - idle/raised with hysteresis on (smoothed brow - baseline): raise
            above 0.015 fires (300 ms cooldown gates the next event), falling
            below 0.0075 unlatches silently. Suppressed until calibration
            completes.
  Mouth   - closed/open with fixed thresholds 0.32 (open, fires) and 0.28
            (close, silent). No calibration, no cooldown.

Cooldowns compare the frame's logical timestamp against a stored deadline, so
a simulated clock drives them deterministically. A timestamp earlier than the
previous frame's clears both deadlines. The detector is not thread-safe;
services.session_manager serializes access per session.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from gestures.calibrator import Calibrator
from gestures.geometry_metrics import SignalSample, as_landmark_array, compute_signals
from gestures.gesture_config import GestureConfig
from gestures.smoothing_buffer import SmoothingBuffer

logger = logging.getLogger(__name__)


class GestureKind(Enum):
    """The three counted gestures."""
    BLINK = "blink"
    EYEBROW = "eyebrow"
    MOUTH = "mouth"


@dataclass(frozen=True)
class GestureEvent:
    """One counted gesture occurrence."""
    kind: GestureKind
    timestamp: float  # Logical time in seconds
    count: int  # Counter value after this event

    def to_dict(self) -> Dict[str, Any]:
        return {"gesture": self.kind.value, "timestamp": self.timestamp, "count": self.count}


@dataclass(frozen=True)
class GestureCounts:
    """Snapshot of the three counters."""
    blink: int = 0
    eyebrow: int = 0
    mouth: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"blink": self.blink, "eyebrow": self.eyebrow, "mouth": self.mouth}


class GestureDetector:
    """
    Per-session gesture counter.

    Usage:
        detector = GestureDetector()
        for landmarks in frames:
            events = detector.update(landmarks)
        print(detector.counts)
    """

    def __init__(
        self,
        config: Optional[GestureConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        event_callback: Optional[Callable[[GestureEvent], None]] = None,
    ):
        """
        Args:
            config: Tunables (validated here; defaults when None)
            clock: Source of logical time in seconds when update() gets no timestamp
            event_callback: Called once per emitted GestureEvent
        """
        self.config = (config or GestureConfig()).validate()
        self.schema = self.config.schema
        self._clock = clock
        self.event_callback = event_callback

        self._ear_buffer = SmoothingBuffer(self.config.ear_window)
        self._mouth_buffer = SmoothingBuffer(self.config.mouth_window)
        self._brow_buffer = SmoothingBuffer(self.config.brow_window)
        self._ear_calibrator = Calibrator(self.config.calibration_frames)
        self._brow_calibrator = Calibrator(self.config.calibration_frames)
        self.reset()

    def reset(self) -> None:
        """Discard buffers, baselines, flags and counters."""
        self._ear_buffer.clear()
        self._mouth_buffer.clear()
        self._brow_buffer.clear()
        self._ear_calibrator.reset()
        self._brow_calibrator.reset()

        self._blink_count = 0
        self._eyebrow_count = 0
        self._mouth_count = 0
        self._blink_cooldown_until: Optional[float] = None
        self._brow_cooldown_until: Optional[float] = None
        self._last_timestamp: Optional[float] = None
        self.brow_raised = False
        self.mouth_open = False
        self.frames_processed = 0

        self.last_ear: Optional[float] = None
        self.last_mouth: Optional[float] = None
        self.last_brow_delta: Optional[float] = None

    @property
    def counts(self) -> GestureCounts:
        return GestureCounts(self._blink_count, self._eyebrow_count, self._mouth_count)

    @property
    def ear_baseline(self) -> Optional[float]:
        return self._ear_calibrator.baseline

    @property
    def brow_baseline(self) -> Optional[float]:
        return self._brow_calibrator.baseline

    @property
    def is_calibrated(self) -> bool:
        return self._ear_calibrator.is_complete and self._brow_calibrator.is_complete

    def update(self, landmarks: Any, timestamp: Optional[float] = None) -> List[GestureEvent]:
        """
        Process one landmark frame.

        Args:
            landmarks: Landmark frame (see geometry_metrics.as_landmark_array);
                None or empty means no face and the frame is skipped
            timestamp: Logical frame time in seconds; read from the clock when None

        Returns:
            Events emitted by this frame (possibly empty)

        Raises:
            InputError: Malformed frame. No state has been modified.
        """
        lm = as_landmark_array(landmarks, self.schema)
        if lm is None:
            logger.debug("No face in frame; skipped")
            return []
        sample = compute_signals(lm, self.schema)
        return self.update_signals(sample, timestamp)

    def update_signals(self, sample: SignalSample, timestamp: Optional[float] = None) -> List[GestureEvent]:
        """Run smoothing, calibration and the state machines on precomputed raw signals."""
        now = self._clock() if timestamp is None else float(timestamp)
        if self._last_timestamp is not None and now < self._last_timestamp:
            # Time base changed (client reload or mixed clocks)
            logger.debug("Timestamp went back from %.3f to %.3f; cooldowns cleared", self._last_timestamp, now)
            self._blink_cooldown_until = None
            self._brow_cooldown_until = None
        self._last_timestamp = now
        events: List[GestureEvent] = []
        self.frames_processed += 1

        # Blink
        ear = self._ear_buffer.push_and_average(sample.ear)
        self._ear_calibrator.observe(ear)
        self.last_ear = ear
        baseline = self._ear_calibrator.baseline
        if (
            baseline is not None
            and ear < baseline * self.config.blink_ratio
            and self._cooldown_expired(self._blink_cooldown_until, now)
        ):
            self._blink_count += 1
            self._blink_cooldown_until = now + self.config.blink_cooldown_sec
            events.append(GestureEvent(GestureKind.BLINK, now, self._blink_count))

        # Eyebrow (calibrated on the raw value, compared on the smoothed value)
        self._brow_calibrator.observe(sample.brow)
        brow = self._brow_buffer.push_and_average(sample.brow)
        if self._brow_calibrator.is_complete:
            delta = brow - self._brow_calibrator.baseline
            self.last_brow_delta = delta
            if (
                delta > self.config.brow_raise_threshold
                and not self.brow_raised
                and self._cooldown_expired(self._brow_cooldown_until, now)
            ):
                self._eyebrow_count += 1
                self.brow_raised = True
                self._brow_cooldown_until = now + self.config.brow_cooldown_sec
                events.append(GestureEvent(GestureKind.EYEBROW, now, self._eyebrow_count))
            elif delta < self.config.brow_fall_threshold and self.brow_raised:
                self.brow_raised = False

        # Mouth
        mouth = self._mouth_buffer.push_and_average(sample.mouth)
        self.last_mouth = mouth
        if mouth > self.config.mouth_open_threshold and not self.mouth_open:
            self._mouth_count += 1
            self.mouth_open = True
            events.append(GestureEvent(GestureKind.MOUTH, now, self._mouth_count))
        elif mouth <= self.config.mouth_close_threshold and self.mouth_open:
            self.mouth_open = False

        for event in events:
            logger.debug("Gesture %s #%d at %.3f", event.kind.value, event.count, event.timestamp)
            if self.event_callback:
                try:
                    self.event_callback(event)
                except Exception as e:
                    logger.warning("Error in gesture event callback: %s", e)
        return events

    @staticmethod
    def _cooldown_expired(until: Optional[float], now: float) -> bool:
        return until is None or now >= until

    def status(self) -> Dict[str, Any]:
        """Calibration progress, latched flags and the latest smoothed signals."""
        return {
            "framesProcessed": self.frames_processed,
            "calibrated": self.is_calibrated,
            "calibrationProgress": min(self._ear_calibrator.progress, self._brow_calibrator.progress),
            "earBaseline": self.ear_baseline,
            "browBaseline": self.brow_baseline,
            "browRaised": self.brow_raised,
            "mouthOpen": self.mouth_open,
            "ear": self.last_ear,
            "mouth": self.last_mouth,
            "browDelta": self.last_brow_delta,
            "schema": self.schema.version,
        }
