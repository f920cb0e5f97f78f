"""
API endpoint tests.

Uses Flask test client. Does not require a running server or a camera.
"""

import sys
import os

# Ensure project root is on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import unittest
from unittest.mock import patch


def get_app_client():
    """Create Flask app and test client with a fresh session manager."""
    import services.session_manager as mod
    mod._session_manager = None
    from app import app
    app.config["TESTING"] = True
    return app.test_client()


def _frame(lm, timestamp_ms=None):
    from tests.fixtures.synthetic_landmarks import to_json_landmarks
    body = {"landmarks": to_json_landmarks(lm)}
    if timestamp_ms is not None:
        body["timestampMs"] = timestamp_ms
    return body


class TestStaticRoutes(unittest.TestCase):
    """Test static routes."""

    def setUp(self):
        self.client = get_app_client()

    def test_favicon_returns_204(self):
        """GET /favicon.ico should return 204."""
        r = self.client.get("/favicon.ico")
        self.assertEqual(r.status_code, 204)


class TestConfigEndpoints(unittest.TestCase):
    """Test config endpoint."""

    def setUp(self):
        self.client = get_app_client()

    def test_config_gestures_returns_json(self):
        """GET /config/gestures should return tunables, capture settings and the session limit."""
        r = self.client.get("/config/gestures")
        self.assertEqual(r.status_code, 200)
        self.assertIn("application/json", r.content_type)
        data = r.get_json()
        self.assertIn("blink_ratio", data["gestures"])
        self.assertIn("targetFps", data["capture"])
        self.assertIsInstance(data["maxSessions"], int)


class TestSessionEndpoints(unittest.TestCase):
    """Session lifecycle over HTTP."""

    def setUp(self):
        self.client = get_app_client()

    def _start(self, overrides=None):
        body = {"config": overrides} if overrides is not None else {}
        r = self.client.post("/gestures/sessions", json=body)
        self.assertEqual(r.status_code, 201)
        return r.get_json()["sessionId"]

    def test_start_session(self):
        r = self.client.post("/gestures/sessions")
        self.assertEqual(r.status_code, 201)
        data = r.get_json()
        self.assertTrue(data["sessionId"])
        self.assertEqual(data["counts"], {"blink": 0, "eyebrow": 0, "mouth": 0})
        self.assertEqual(data["config"]["calibration_frames"], 30)

    def test_start_session_invalid_config(self):
        r = self.client.post("/gestures/sessions", json={"config": {"ear_window": 0}})
        self.assertEqual(r.status_code, 400)
        self.assertIn("details", r.get_json())
        r = self.client.post("/gestures/sessions", json={"config": [1, 2]})
        self.assertEqual(r.status_code, 400)

    def test_start_session_non_finite_config(self):
        """NaN and infinite tunables are rejected like any other invalid value."""
        for overrides in ({"mouth_open_threshold": float("nan")}, {"blink_cooldown_ms": float("inf")}):
            r = self.client.post("/gestures/sessions", json={"config": overrides})
            self.assertEqual(r.status_code, 400, msg=str(overrides))

    def test_start_session_limit(self):
        import services.session_manager as mod
        from services.session_manager import SessionManager
        mod._session_manager = SessionManager(max_sessions=1)
        self._start()
        r = self.client.post("/gestures/sessions")
        self.assertEqual(r.status_code, 503)

    def test_frames_count_mouth(self):
        """Mouth open then closed counts one gesture; counters come back in each response."""
        from tests.fixtures.synthetic_landmarks import make_mouth_open_landmarks, make_neutral_landmarks
        sid = self._start({"mouth_window": 1})
        url = f"/gestures/sessions/{sid}/frames"
        r = self.client.post(url, json=_frame(make_neutral_landmarks(), 0))
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r.get_json()["faceDetected"])
        r = self.client.post(url, json=_frame(make_mouth_open_landmarks(), 33.3))
        data = r.get_json()
        self.assertEqual(data["counts"]["mouth"], 1)
        self.assertEqual(data["events"][0]["gesture"], "mouth")
        self.assertAlmostEqual(data["events"][0]["timestamp"], 0.0333)
        r = self.client.post(url, json=_frame(make_neutral_landmarks(), 66.6))
        self.assertEqual(r.get_json()["events"], [])

        r = self.client.get(f"/gestures/sessions/{sid}")
        self.assertEqual(r.status_code, 200)
        state = r.get_json()
        self.assertEqual(state["counts"]["mouth"], 1)
        self.assertEqual(state["framesProcessed"], 3)
        self.assertFalse(state["calibrated"])

    def test_pair_lists_accepted(self):
        from tests.fixtures.synthetic_landmarks import make_neutral_landmarks
        sid = self._start()
        r = self.client.post(
            f"/gestures/sessions/{sid}/frames",
            json={"landmarks": make_neutral_landmarks().tolist()},
        )
        self.assertEqual(r.status_code, 200)

    def test_null_landmarks_means_no_face(self):
        sid = self._start()
        r = self.client.post(f"/gestures/sessions/{sid}/frames", json={"landmarks": None})
        self.assertEqual(r.status_code, 200)
        self.assertFalse(r.get_json()["faceDetected"])

    def test_malformed_frame_returns_422(self):
        sid = self._start()
        r = self.client.post(f"/gestures/sessions/{sid}/frames", json={"landmarks": [[0.1, 0.2]] * 10})
        self.assertEqual(r.status_code, 422)
        data = r.get_json()
        self.assertIn("error", data)
        self.assertEqual(data["counts"], {"blink": 0, "eyebrow": 0, "mouth": 0})

    def test_bad_requests_return_400(self):
        sid = self._start()
        url = f"/gestures/sessions/{sid}/frames"
        self.assertEqual(self.client.post(url, data="x", content_type="text/plain").status_code, 400)
        self.assertEqual(self.client.post(url, json={"points": []}).status_code, 400)
        self.assertEqual(self.client.post(url, json={"landmarks": None, "timestampMs": "soon"}).status_code, 400)

    def test_unknown_session_returns_404(self):
        for method, url in (
            ("get", "/gestures/sessions/nope"),
            ("post", "/gestures/sessions/nope/frames"),
            ("post", "/gestures/sessions/nope/reset"),
            ("post", "/gestures/sessions/nope/stop"),
            ("delete", "/gestures/sessions/nope"),
            ("post", "/gestures/sessions/nope/capture/stop"),
        ):
            r = getattr(self.client, method)(url, json={"landmarks": None})
            self.assertEqual(r.status_code, 404, msg=url)

    def test_reset_session(self):
        from tests.fixtures.synthetic_landmarks import make_mouth_open_landmarks
        sid = self._start({"mouth_window": 1})
        self.client.post(f"/gestures/sessions/{sid}/frames", json=_frame(make_mouth_open_landmarks()))
        r = self.client.post(f"/gestures/sessions/{sid}/reset")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.get_json()["counts"], {"blink": 0, "eyebrow": 0, "mouth": 0})

    def test_stop_session(self):
        from tests.fixtures.synthetic_landmarks import make_mouth_open_landmarks
        sid = self._start({"mouth_window": 1})
        self.client.post(f"/gestures/sessions/{sid}/frames", json=_frame(make_mouth_open_landmarks()))
        r = self.client.post(f"/gestures/sessions/{sid}/stop")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.get_json()["finalCounts"]["mouth"], 1)
        self.assertEqual(self.client.get(f"/gestures/sessions/{sid}").status_code, 404)

    def test_delete_session(self):
        sid = self._start()
        r = self.client.delete(f"/gestures/sessions/{sid}")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.get_json()["finalCounts"], {"blink": 0, "eyebrow": 0, "mouth": 0})


class TestCaptureEndpoints(unittest.TestCase):
    """Capture control; the worker is mocked so no camera is opened."""

    def setUp(self):
        self.client = get_app_client()
        r = self.client.post("/gestures/sessions")
        self.sid = r.get_json()["sessionId"]

    def test_invalid_source_type(self):
        r = self.client.post(f"/gestures/sessions/{self.sid}/capture", json={"sourceType": "satellite"})
        self.assertEqual(r.status_code, 400)

    def test_file_requires_path(self):
        r = self.client.post(f"/gestures/sessions/{self.sid}/capture", json={"sourceType": "file"})
        self.assertEqual(r.status_code, 400)

    @patch("services.capture_worker.GestureCaptureWorker")
    def test_start_capture(self, mock_worker_cls):
        mock_worker_cls.return_value.start.return_value = True
        r = self.client.post(
            f"/gestures/sessions/{self.sid}/capture",
            json={"sourceType": "file", "sourcePath": "clip.mp4"},
        )
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r.get_json()["success"])
        mock_worker_cls.return_value.start.assert_called_once()

    @patch("services.capture_worker.GestureCaptureWorker")
    def test_start_capture_failure(self, mock_worker_cls):
        mock_worker_cls.return_value.start.return_value = False
        r = self.client.post(f"/gestures/sessions/{self.sid}/capture", json={"sourceType": "webcam"})
        self.assertEqual(r.status_code, 500)

    def test_stop_capture_keeps_counts(self):
        r = self.client.post(f"/gestures/sessions/{self.sid}/capture/stop")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.get_json()["counts"], {"blink": 0, "eyebrow": 0, "mouth": 0})


if __name__ == "__main__":
    unittest.main()
