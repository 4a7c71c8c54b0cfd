"""Deadline tracking for a whole execution run."""

import time
from typing import Optional


class RunDeadline:
    """Tracks the time budget of one execution run.

    A deadline without a timeout never expires.
    """

    def __init__(self, timeout: Optional[float] = None):
        """Initialize deadline.

        Args:
            timeout: Overall budget in seconds. None = unbounded.
        """
        self.timeout = timeout
        self._start_time: Optional[float] = None

    @property
    def elapsed(self) -> float:
        """Seconds elapsed since start."""
        if self._start_time is None:
            return 0.0
        return time.monotonic() - self._start_time

    @property
    def remaining(self) -> Optional[float]:
        """Seconds remaining, or None when unbounded."""
        if self.timeout is None:
            return None
        return max(0.0, self.timeout - self.elapsed)

    @property
    def is_expired(self) -> bool:
        """Whether the deadline has passed."""
        if self.timeout is None or self._start_time is None:
            return False
        return self.elapsed >= self.timeout

    def start(self) -> None:
        """Start the deadline timer."""
        self._start_time = time.monotonic()

    def bound(self, timeout: Optional[float]) -> tuple[Optional[float], bool]:
        """Clamp a per-callback timeout to the time left.

        Returns:
            (effective timeout, whether the deadline is the tighter bound)
        """
        remaining = self.remaining
        if remaining is None:
            return timeout, False
        if timeout is None or remaining < timeout:
            return remaining, True
        return timeout, False
