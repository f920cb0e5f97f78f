"""
Flask routes for the face gesture counter.

Handles gesture sessions (start / frames / state / reset / stop), camera or
video-file capture per session, and the gesture configuration.

Frames are submitted as JSON:
    {"landmarks": [[x, y], ...] | [{"x": .., "y": ..}, ...] | null, "timestampMs": 1234.5}
`timestampMs` is the client's frame time (e.g. performance.now()); when it is
omitted the server clock is used. A null or empty landmark list means no face.
"""

import logging
import math

from flask import Blueprint, Flask, jsonify, request

import config
from gestures.errors import (
    ConfigurationError,
    SessionClosedError,
    SessionLimitError,
    SessionNotFoundError,
)
from services.session_manager import get_session_manager

logger = logging.getLogger(__name__)

# Create a blueprint for better organization
api = Blueprint('api', __name__)


@api.errorhandler(SessionNotFoundError)
def _session_not_found(e):
    return jsonify({"error": str(e)}), 404


@api.errorhandler(SessionClosedError)
def _session_closed(e):
    return jsonify({"error": str(e)}), 409


@api.route("/favicon.ico")
def favicon():
    return "", 204


@api.route("/config/gestures", methods=["GET"])
def get_gesture_config():
    """
    Get gesture tunables, capture settings and the session limit.

    Returns:
        JSON: {"gestures": {...}, "capture": {...}, "maxSessions": int}
    """
    return jsonify(config.build_config_response())


@api.route("/gestures/sessions", methods=["POST"])
def start_session():
    """
    Start a gesture session with fresh, zeroed state.

    Request Body (optional):
        {"config": {"blink_ratio": 0.65, ...}}  per-session overrides

    Returns:
        201 JSON: {"sessionId": str, "counts": {...}, "config": {...}}
        400 on invalid configuration, 503 when the session limit is reached
    """
    data = request.get_json(silent=True) or {}
    overrides = data.get("config") if isinstance(data, dict) else None
    if overrides is not None and not isinstance(overrides, dict):
        return jsonify({"error": "'config' must be an object"}), 400
    try:
        session = get_session_manager().start_session(overrides)
    except ConfigurationError as e:
        return jsonify({"error": "Invalid gesture configuration", "details": str(e)}), 400
    except SessionLimitError as e:
        return jsonify({"error": str(e)}), 503
    return jsonify({
        "sessionId": session.session_id,
        "counts": session.counts.to_dict(),
        "config": session.config.to_dict(),
    }), 201


@api.route("/gestures/sessions/<session_id>/frames", methods=["POST"])
def submit_frame(session_id):
    """
    Submit one landmark frame.

    Returns:
        200 JSON: {"counts": {...}, "events": [...], "faceDetected": bool}
        422 JSON with the same fields plus "error" when the frame was malformed
            (the frame is skipped; counters are unchanged)
    """
    session = get_session_manager().get_session(session_id)
    if not request.is_json:
        return jsonify({"error": "Request must be JSON"}), 400
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or "landmarks" not in data:
        return jsonify({"error": "Missing 'landmarks'"}), 400

    timestamp = None
    if data.get("timestampMs") is not None:
        try:
            timestamp = float(data["timestampMs"]) / 1000.0
        except (TypeError, ValueError):
            return jsonify({"error": "'timestampMs' must be a number"}), 400
        if not math.isfinite(timestamp):
            return jsonify({"error": "'timestampMs' must be finite"}), 400

    result = session.process_frame(data["landmarks"], timestamp)
    status = 422 if result.error else 200
    return jsonify(result.to_dict()), status


@api.route("/gestures/sessions/<session_id>", methods=["GET"])
def get_session_state(session_id):
    """Counters, calibration progress and latched flags for a session."""
    return jsonify(get_session_manager().get_session(session_id).status())


@api.route("/gestures/sessions/<session_id>/reset", methods=["POST"])
def reset_session(session_id):
    """
    Discard all buffers, baselines, flags and counters (and stop capture).

    Returns:
        JSON: {"success": true, "counts": {"blink": 0, "eyebrow": 0, "mouth": 0}}
    """
    session = get_session_manager().reset_session(session_id)
    return jsonify({"success": True, "counts": session.counts.to_dict()})


@api.route("/gestures/sessions/<session_id>/stop", methods=["POST"])
@api.route("/gestures/sessions/<session_id>", methods=["DELETE"])
def stop_session(session_id):
    """
    Stop a session, release its capture resources and forget it.

    Returns:
        JSON: {"success": true, "finalCounts": {...}}
    """
    final = get_session_manager().stop_session(session_id)
    return jsonify({"success": True, "finalCounts": final.to_dict()})


@api.route("/gestures/sessions/<session_id>/capture", methods=["POST"])
def start_capture(session_id):
    """
    Start feeding the session from a local camera or video.

    Request Body:
        {"sourceType": "webcam" | "file" | "stream", "sourcePath": "required for file/stream"}
    """
    # Lazy import: defer loading OpenCV until capture is requested
    from services.capture_worker import GestureCaptureWorker
    from gestures.video_source_handler import VideoSourceType

    session = get_session_manager().get_session(session_id)
    data = request.get_json(silent=True) or {}
    source_type_str = str(data.get("sourceType", "webcam")).lower()
    source_path = data.get("sourcePath")

    source_type_map = {
        "webcam": VideoSourceType.WEBCAM,
        "file": VideoSourceType.FILE,
        "stream": VideoSourceType.STREAM,
    }
    source_type = source_type_map.get(source_type_str)
    if not source_type:
        return jsonify({
            "error": f"Invalid sourceType: {source_type_str}. Must be 'webcam', 'file', or 'stream'"
        }), 400
    if source_type != VideoSourceType.WEBCAM and not source_path:
        return jsonify({"error": f"'sourcePath' is required for sourceType '{source_type_str}'"}), 400

    try:
        worker = GestureCaptureWorker(session)
        if not worker.start(source_type, source_path):
            return jsonify({"error": "Failed to start capture. Check video source."}), 500
    except SessionClosedError:
        raise
    except Exception as e:
        logger.error("Failed to start capture for session %s: %s", session_id, e)
        return jsonify({"error": "Failed to start capture", "details": str(e)}), 500

    return jsonify({"success": True, "message": f"Capture started from {source_type_str}"})


@api.route("/gestures/sessions/<session_id>/capture/stop", methods=["POST"])
def stop_capture(session_id):
    """Stop capture for a session; counters are kept."""
    session = get_session_manager().get_session(session_id)
    session.detach_capture()
    return jsonify({"success": True, "counts": session.counts.to_dict()})


def register_routes(app: Flask) -> None:
    """Attach all gesture routes to the Flask app."""
    app.register_blueprint(api)
