"""
Calibrator Module

Online baseline estimation for one signal. During the warm-up period every
observed value folds into an incremental mean:

    baseline = (baseline * n + x) / (n + 1)

computed as baseline += (x - baseline) / (n + 1), which leaves a constant
input exactly unchanged.

Once n reaches the warm-up length the baseline is frozen until reset().
The baseline is None until the first observation, and callers read it while
warm-up is still running (blink detection does; eyebrow detection waits for
is_complete).
"""

from typing import Optional

from gestures.errors import ConfigurationError


class Calibrator:
    """Incremental-mean baseline with a fixed warm-up length."""

    def __init__(self, warmup_length: int = 30):
        if int(warmup_length) < 1:
            raise ConfigurationError(f"Calibration warm-up must be at least 1 frame, got {warmup_length}")
        self.warmup_length = int(warmup_length)
        self.sample_count: int = 0
        self.baseline: Optional[float] = None

    @property
    def is_complete(self) -> bool:
        return self.sample_count >= self.warmup_length

    @property
    def progress(self) -> float:
        """Fraction of warm-up done (0-1)."""
        return min(1.0, self.sample_count / self.warmup_length)

    def observe(self, value: float) -> bool:
        """
        Fold value into the baseline if warm-up is still running.

        Returns:
            True if the baseline was updated, False if it is frozen.
        """
        if self.is_complete:
            return False
        n = self.sample_count
        if self.baseline is None:
            self.baseline = float(value)
        else:
            self.baseline += (float(value) - self.baseline) / (n + 1)
        self.sample_count = n + 1
        return True

    def reset(self) -> None:
        self.sample_count = 0
        self.baseline = None
