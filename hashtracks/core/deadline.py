"""Deadline passed through a fetch to bound its total latency."""

import time

from hashtracks.core.exceptions import DeadlineExceededError


class Deadline:
    """An absolute point on the monotonic clock after which no new request starts."""

    def __init__(self, expires_at: float):
        self.expires_at = expires_at

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(time.monotonic() + seconds)

    def remaining(self) -> float:
        """Seconds left, never negative."""
        return max(0.0, self.expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at

    def check(self, url: str | None = None) -> None:
        """Raise DeadlineExceededError if the deadline has passed."""
        if self.expired:
            raise DeadlineExceededError(url=url)

    def bound_timeout(self, timeout: float) -> float:
        """Clamp a per-request timeout so it cannot outlive the deadline."""
        return min(timeout, self.remaining())

    def __repr__(self) -> str:
        return f"Deadline(remaining={self.remaining():.2f}s)"
