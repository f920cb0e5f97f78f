"""
=============================================================================
CONFIGURATION FOR FACE GESTURE COUNTER (config.py)
=============================================================================

WHAT THIS FILE DOES (in plain language):
----------------------------------------
This file holds ALL configurable settings for the project in one place. Other
files read from it. Values come from the environment (e.g. your .env file or
system variables), so you can tune thresholds or move the server to another
port without changing code.

MAIN GROUPS OF SETTINGS:
------------------------
  1. Gesture tunables  - Smoothing windows, calibration length, thresholds, cooldowns.
  2. Landmark source   - Which landmark layout frames use; MediaPipe confidences.
  3. Capture           - Camera resolution and target frame rate for the capture loop.
  4. Sessions          - How many gesture sessions may be open at once.
  5. Server / logging  - Host, port, debug mode and log level.

HOW VALUES ARE CHOSEN:
---------------------
  - Environment variables (e.g. GESTURE_BLINK_RATIO) override everything.
  - If an env var is not set, we use the tuned default.
  - Values are checked when a session starts (gestures.GestureConfig.validate);
    an invalid value stops that session from being created.
=============================================================================
"""

import os
from typing import Any, Dict

# ============================================================================
# GESTURE TUNABLES
# ============================================================================
# Moving-average window per signal (frames). Short windows react faster,
# long windows ignore more landmark jitter.
# ----------------------------------------------------------------------------
GESTURE_EAR_WINDOW: int = int(os.getenv("GESTURE_EAR_WINDOW", "5"))
GESTURE_MOUTH_WINDOW: int = int(os.getenv("GESTURE_MOUTH_WINDOW", "3"))
GESTURE_BROW_WINDOW: int = int(os.getenv("GESTURE_BROW_WINDOW", "4"))

# Frames used to learn the user's resting eye and brow geometry (~1 s at 30 fps).
GESTURE_CALIBRATION_FRAMES: int = int(os.getenv("GESTURE_CALIBRATION_FRAMES", "30"))

# Blink: smoothed EAR below baseline * ratio counts as a blink.
GESTURE_BLINK_RATIO: float = float(os.getenv("GESTURE_BLINK_RATIO", "0.7"))

# Eyebrow raise: rise above RAISE (relative to baseline) fires; drop below FALL re-arms.
GESTURE_BROW_RAISE_THRESHOLD: float = float(os.getenv("GESTURE_BROW_RAISE_THRESHOLD", "0.015"))
GESTURE_BROW_FALL_THRESHOLD: float = float(os.getenv("GESTURE_BROW_FALL_THRESHOLD", "0.0075"))

# Mouth open: lip gap / mouth width above OPEN fires; at or below CLOSE re-arms.
GESTURE_MOUTH_OPEN_THRESHOLD: float = float(os.getenv("GESTURE_MOUTH_OPEN_THRESHOLD", "0.32"))
GESTURE_MOUTH_CLOSE_THRESHOLD: float = float(os.getenv("GESTURE_MOUTH_CLOSE_THRESHOLD", "0.28"))

# Minimum time between two events of the same gesture (milliseconds).
GESTURE_BLINK_COOLDOWN_MS: float = float(os.getenv("GESTURE_BLINK_COOLDOWN_MS", "250"))
GESTURE_BROW_COOLDOWN_MS: float = float(os.getenv("GESTURE_BROW_COOLDOWN_MS", "300"))

# ============================================================================
# LANDMARK SOURCE
# ============================================================================
#   "mediapipe" - MediaPipe Face Mesh, 468 points (478 with refined iris). Default.
#   "dlib68"    - 68-point iBUG/dlib layout.
# ----------------------------------------------------------------------------
LANDMARK_SCHEMA: str = os.getenv("LANDMARK_SCHEMA", "mediapipe").strip().lower()

# MediaPipe Face Mesh confidences for the capture loop (0.01-0.99).
MIN_FACE_CONFIDENCE: float = float(os.getenv("MIN_FACE_CONFIDENCE", "0.5"))
MIN_TRACKING_CONFIDENCE: float = float(os.getenv("MIN_TRACKING_CONFIDENCE", "0.5"))

# ============================================================================
# CAPTURE
# ============================================================================
CAPTURE_WIDTH: int = int(os.getenv("CAPTURE_WIDTH", "640"))
CAPTURE_HEIGHT: int = int(os.getenv("CAPTURE_HEIGHT", "480"))
CAPTURE_TARGET_FPS: float = float(os.getenv("CAPTURE_TARGET_FPS", "30"))

# ============================================================================
# SESSIONS
# ============================================================================
# Upper bound on concurrently open sessions (each holds its own buffers/counters).
MAX_SESSIONS: int = int(os.getenv("MAX_SESSIONS", "32"))

# ============================================================================
# SERVER / LOGGING
# ============================================================================
FLASK_PORT: int = int(os.getenv("FLASK_PORT", "5000"))
FLASK_DEBUG: bool = os.getenv("FLASK_DEBUG", "false").lower() == "true"
FLASK_HOST: str = os.getenv("FLASK_HOST", "0.0.0.0")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").strip().upper()


def get_gesture_config() -> Dict[str, Any]:
    """
    Gesture tunables as a dict keyed by gestures.GestureConfig field names.

    Returns:
        dict: Feed to GestureConfig.from_mapping() to get a validated config
    """
    return {
        "ear_window": GESTURE_EAR_WINDOW,
        "mouth_window": GESTURE_MOUTH_WINDOW,
        "brow_window": GESTURE_BROW_WINDOW,
        "calibration_frames": GESTURE_CALIBRATION_FRAMES,
        "blink_ratio": GESTURE_BLINK_RATIO,
        "brow_raise_threshold": GESTURE_BROW_RAISE_THRESHOLD,
        "brow_fall_threshold": GESTURE_BROW_FALL_THRESHOLD,
        "mouth_open_threshold": GESTURE_MOUTH_OPEN_THRESHOLD,
        "mouth_close_threshold": GESTURE_MOUTH_CLOSE_THRESHOLD,
        "blink_cooldown_ms": GESTURE_BLINK_COOLDOWN_MS,
        "brow_cooldown_ms": GESTURE_BROW_COOLDOWN_MS,
        "landmark_schema": LANDMARK_SCHEMA,
    }


def get_capture_config() -> Dict[str, Any]:
    """Camera and MediaPipe settings for the capture loop."""
    return {
        "width": CAPTURE_WIDTH,
        "height": CAPTURE_HEIGHT,
        "targetFps": CAPTURE_TARGET_FPS,
        "minDetectionConfidence": MIN_FACE_CONFIDENCE,
        "minTrackingConfidence": MIN_TRACKING_CONFIDENCE,
    }


def warn_missing_config() -> None:
    """
    Print a warning when the configured tunables are invalid. Does not raise;
    sessions still refuse to start with an invalid config.
    """
    import sys
    from gestures.errors import ConfigurationError
    from gestures.gesture_config import GestureConfig

    try:
        GestureConfig.from_mapping(get_gesture_config())
    except ConfigurationError as e:
        print(f"Config warning: gesture settings are invalid ({e}). Sessions will not start.", file=sys.stderr)
    if CAPTURE_TARGET_FPS <= 0:
        print("Config warning: CAPTURE_TARGET_FPS must be positive; using 30.", file=sys.stderr)


def build_config_response() -> Dict[str, Any]:
    """Complete configuration response for GET /config/gestures."""
    return {
        "gestures": get_gesture_config(),
        "capture": get_capture_config(),
        "maxSessions": MAX_SESSIONS,
    }
