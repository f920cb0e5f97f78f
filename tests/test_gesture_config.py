"""
Gesture configuration tests.

Covers defaults, the environment-driven values from config.py, per-session
overrides and rejection of invalid tunables.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import unittest


class TestGestureConfigDefaults(unittest.TestCase):
    """Default tunables."""

    def test_defaults(self):
        from gestures.gesture_config import GestureConfig
        cfg = GestureConfig()
        self.assertEqual((cfg.ear_window, cfg.mouth_window, cfg.brow_window), (5, 3, 4))
        self.assertEqual(cfg.calibration_frames, 30)
        self.assertEqual(cfg.blink_ratio, 0.7)
        self.assertEqual(cfg.brow_raise_threshold, 0.015)
        self.assertEqual(cfg.brow_fall_threshold, 0.0075)
        self.assertEqual(cfg.mouth_open_threshold, 0.32)
        self.assertEqual(cfg.mouth_close_threshold, 0.28)
        self.assertAlmostEqual(cfg.blink_cooldown_sec, 0.25)
        self.assertAlmostEqual(cfg.brow_cooldown_sec, 0.30)
        self.assertEqual(cfg.schema.name, "mediapipe")
        self.assertIs(cfg.validate(), cfg)

    def test_config_module_values_are_valid(self):
        """config.get_gesture_config() keys match the dataclass and validate."""
        import config
        from gestures.gesture_config import GestureConfig
        cfg = GestureConfig.from_mapping(config.get_gesture_config())
        self.assertEqual(set(cfg.to_dict()), set(config.get_gesture_config()))

    def test_build_config_response(self):
        import config
        data = config.build_config_response()
        self.assertIn("gestures", data)
        self.assertIn("capture", data)
        self.assertIn("maxSessions", data)


class TestGestureConfigOverrides(unittest.TestCase):
    """from_mapping coercion and overrides."""

    def test_overrides_win(self):
        from gestures.gesture_config import GestureConfig
        cfg = GestureConfig.from_mapping({"ear_window": 5}, {"ear_window": 2, "blink_ratio": "0.6"})
        self.assertEqual(cfg.ear_window, 2)
        self.assertEqual(cfg.blink_ratio, 0.6)

    def test_whole_float_accepted_for_int(self):
        from gestures.gesture_config import GestureConfig
        self.assertEqual(GestureConfig.from_mapping({"calibration_frames": 10.0}).calibration_frames, 10)

    def test_unknown_key_rejected(self):
        from gestures.errors import ConfigurationError
        from gestures.gesture_config import GestureConfig
        with self.assertRaises(ConfigurationError):
            GestureConfig.from_mapping({"smile_threshold": 0.5})

    def test_uncoercible_values_rejected(self):
        from gestures.errors import ConfigurationError
        from gestures.gesture_config import GestureConfig
        for bad in ({"ear_window": 2.5}, {"ear_window": "five"}, {"blink_ratio": None}, {"mouth_window": True}):
            with self.assertRaises(ConfigurationError, msg=str(bad)):
                GestureConfig.from_mapping(bad)


class TestGestureConfigValidation(unittest.TestCase):
    """validate() rejects every out-of-range tunable."""

    def test_invalid_values(self):
        from gestures.errors import ConfigurationError
        from gestures.gesture_config import GestureConfig
        invalid = [
            {"ear_window": 0},
            {"brow_window": -1},
            {"calibration_frames": 0},
            {"blink_ratio": 0.0},
            {"blink_ratio": 1.2},
            {"brow_raise_threshold": 0.0},
            {"brow_fall_threshold": 0.02},
            {"mouth_close_threshold": 0.4},
            {"mouth_close_threshold": 0.0},
            {"blink_cooldown_ms": -1},
            {"mouth_open_threshold": "nan"},
            {"brow_raise_threshold": "inf"},
            {"blink_cooldown_ms": float("inf")},
            {"brow_cooldown_ms": float("nan")},
            {"blink_ratio": float("nan")},
            {"landmark_schema": "openface"},
        ]
        for overrides in invalid:
            with self.assertRaises(ConfigurationError, msg=str(overrides)):
                GestureConfig.from_mapping(overrides)

    def test_configuration_error_is_value_error(self):
        from gestures.errors import ConfigurationError
        self.assertTrue(issubclass(ConfigurationError, ValueError))

    def test_zero_cooldown_allowed(self):
        from gestures.gesture_config import GestureConfig
        cfg = GestureConfig.from_mapping({"blink_cooldown_ms": 0, "brow_cooldown_ms": 0})
        self.assertEqual(cfg.blink_cooldown_sec, 0.0)

    def test_dlib_schema(self):
        from gestures.gesture_config import GestureConfig
        self.assertEqual(GestureConfig.from_mapping({"landmark_schema": "dlib68"}).schema.name, "dlib68")


if __name__ == "__main__":
    unittest.main()
