"""
Gesture Configuration Module

All tunables of the gesture counter in one validated dataclass. Defaults are
the empirically tuned values; config.get_gesture_config() supplies the
environment-driven values and callers may override individual keys per
session.
"""

import math
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Optional

from gestures.errors import ConfigurationError
from gestures.landmark_schema import LandmarkSchema, get_schema


@dataclass(frozen=True)
class GestureConfig:
    """Tunables for one gesture session."""
    ear_window: int = 5
    mouth_window: int = 3
    brow_window: int = 4
    calibration_frames: int = 30
    blink_ratio: float = 0.7  # Blink when smoothed EAR < baseline * blink_ratio
    brow_raise_threshold: float = 0.015
    brow_fall_threshold: float = 0.0075
    mouth_open_threshold: float = 0.32
    mouth_close_threshold: float = 0.28
    blink_cooldown_ms: float = 250.0
    brow_cooldown_ms: float = 300.0
    landmark_schema: str = "mediapipe"

    @property
    def blink_cooldown_sec(self) -> float:
        return self.blink_cooldown_ms / 1000.0

    @property
    def brow_cooldown_sec(self) -> float:
        return self.brow_cooldown_ms / 1000.0

    @property
    def schema(self) -> LandmarkSchema:
        return get_schema(self.landmark_schema)

    def validate(self) -> "GestureConfig":
        """
        Check every tunable; returns self so it can be chained.

        Raises:
            ConfigurationError: Describes the first invalid tunable found
        """
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, float) and not math.isfinite(value):
                raise ConfigurationError(f"{f.name} must be a finite number, got {value!r}")
        for name in ("ear_window", "mouth_window", "brow_window", "calibration_frames"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigurationError(f"{name} must be an integer >= 1, got {value!r}")
        if not 0.0 < self.blink_ratio < 1.0:
            raise ConfigurationError(f"blink_ratio must be between 0 and 1, got {self.blink_ratio}")
        if self.brow_raise_threshold <= 0.0:
            raise ConfigurationError("brow_raise_threshold must be positive")
        if not 0.0 <= self.brow_fall_threshold <= self.brow_raise_threshold:
            raise ConfigurationError(
                "brow_fall_threshold must be between 0 and brow_raise_threshold "
                f"({self.brow_fall_threshold} vs {self.brow_raise_threshold})"
            )
        if self.mouth_close_threshold <= 0.0:
            raise ConfigurationError("mouth_close_threshold must be positive")
        if self.mouth_close_threshold > self.mouth_open_threshold:
            raise ConfigurationError(
                "mouth_close_threshold must not exceed mouth_open_threshold "
                f"({self.mouth_close_threshold} vs {self.mouth_open_threshold})"
            )
        if self.blink_cooldown_ms < 0 or self.brow_cooldown_ms < 0:
            raise ConfigurationError("Cooldown durations must not be negative")
        get_schema(self.landmark_schema)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(
        cls,
        values: Optional[Mapping[str, Any]] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "GestureConfig":
        """
        Build a validated config from a mapping of tunables plus optional overrides.

        Unknown keys and values that cannot be coerced to the field type raise
        ConfigurationError.
        """
        merged: Dict[str, Any] = dict(values or {})
        merged.update(overrides or {})
        known = {f.name: f for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, raw in merged.items():
            if key not in known:
                raise ConfigurationError(f"Unknown gesture setting '{key}'")
            default = known[key].default
            try:
                if isinstance(default, bool) or isinstance(raw, bool):
                    raise TypeError("booleans are not valid tunables")
                if isinstance(default, int):
                    as_float = float(raw)
                    if not as_float.is_integer():
                        raise ValueError(f"{raw!r} is not a whole number")
                    kwargs[key] = int(as_float)
                elif isinstance(default, float):
                    kwargs[key] = float(raw)
                else:
                    kwargs[key] = str(raw)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid value for {key}: {e}") from e
        return cls(**kwargs).validate()
