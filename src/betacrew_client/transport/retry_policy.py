"""Retry policy for resend requests.

A resend attempt that fails (write error, session dropped, invalid or
mismatched response) is retried a bounded number of times, waiting an
exponentially growing, jittered delay between attempts.
"""

from __future__ import annotations

import random


class RetryPolicy:
    """Exponential backoff retry policy with jitter."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay_seconds: float = 0.1,
        max_delay_seconds: float = 2.0,
        jitter_factor: float = 0.1,
    ):
        """Initialize retry policy.

        Args:
            max_attempts: Total attempts per sequence, first one included (min 1)
            base_delay_seconds: Delay before the first retry
            max_delay_seconds: Delay cap
            jitter_factor: Jitter as fraction of delay (0.1 = 10%)
        """
        self.max_attempts = max(1, max_attempts)
        self.base_delay_seconds = base_delay_seconds
        self.max_delay_seconds = max_delay_seconds
        self.jitter_factor = jitter_factor

    def get_delay(self, attempt: int) -> float:
        """Calculate delay before retry number ``attempt`` (0-indexed).

        Formula: min(base * 2**attempt, max) + uniform(0, delay * jitter_factor)
        """
        delay = min(self.base_delay_seconds * (2**attempt), self.max_delay_seconds)
        jitter = random.uniform(0, delay * self.jitter_factor)
        return delay + jitter

    def should_retry(self, attempts_made: int) -> bool:
        """Return True while another attempt is allowed."""
        return attempts_made < self.max_attempts

    def __repr__(self) -> str:
        """String representation of retry policy."""
        return (
            f"RetryPolicy(max_attempts={self.max_attempts}, "
            f"base_delay={self.base_delay_seconds}s, "
            f"max_delay={self.max_delay_seconds}s, "
            f"jitter_factor={self.jitter_factor})"
        )
