"""
Rolling-window moving average for one signal.
"""

from collections import deque
from typing import List

from gestures.errors import ConfigurationError


class SmoothingBuffer:
    """Bounded FIFO of recent raw values; average() is their arithmetic mean."""

    def __init__(self, capacity: int):
        if int(capacity) < 1:
            raise ConfigurationError(f"Smoothing window must be at least 1, got {capacity}")
        self.capacity = int(capacity)
        self._values: deque = deque(maxlen=self.capacity)

    def push(self, value: float) -> None:
        """Append a value, evicting the oldest once the window is full."""
        self._values.append(float(value))

    def average(self) -> float:
        if not self._values:
            raise ValueError("average() called on an empty SmoothingBuffer")
        return sum(self._values) / len(self._values)

    def push_and_average(self, value: float) -> float:
        self.push(value)
        return self.average()

    def clear(self) -> None:
        self._values.clear()

    def values(self) -> List[float]:
        return list(self._values)

    def __len__(self) -> int:
        return len(self._values)
