"""Adaptive rate limiter with human-like timing."""

import asyncio
import random
import time
from collections import deque
from typing import Deque, Dict, Tuple

from wifi_reviews.utils.logging import logger

# (probability, min multiplier, max multiplier)
HUMAN_TIMING_PATTERNS: Tuple[Tuple[float, float, float], ...] = (
    (0.3, 0.8, 1.1),  # quick succession
    (0.5, 1.0, 1.3),  # normal pace
    (0.2, 1.5, 2.0),  # longer break
)

HISTORY_SIZE = 10


class RateLimiter:
    """Delay controller that slows down when requests start failing."""

    def __init__(
        self,
        min_delay: float = 6.0,
        max_delay: float = 12.0,
        jitter_ratio: float = 0.2,
    ):
        """Initialize rate limiter.

        Args:
            min_delay: Delay in seconds used while requests mostly succeed
            max_delay: Delay in seconds used once the success rate collapses
            jitter_ratio: Total width of the random jitter band, as a
                fraction of the base delay
        """
        self.min_delay = min_delay
        self.max_delay = max(max_delay, min_delay)
        self.jitter_ratio = jitter_ratio

        self.success_count = 0
        self.failure_count = 0
        self.history: Deque[Tuple[float, bool]] = deque(maxlen=HISTORY_SIZE)
        self.last_request = 0.0

    @property
    def success_rate(self) -> float:
        total = self.success_count + self.failure_count
        return self.success_count / total if total else 0.0

    def record_success(self) -> None:
        """Record a successful request."""
        self.success_count += 1
        self.history.append((time.time(), True))

    def record_failure(self) -> None:
        """Record a failed request."""
        self.failure_count += 1
        self.history.append((time.time(), False))

    def base_delay(self) -> float:
        """Delay implied by the running success rate, before any randomness."""
        if self.success_count + self.failure_count == 0:
            return self.min_delay

        rate = self.success_rate
        if rate > 0.8:
            return self.min_delay
        if rate > 0.6:
            return min(self.min_delay * 1.2, self.max_delay)
        if rate > 0.4:
            return min(self.min_delay * 1.5, self.max_delay)
        return self.max_delay

    def adaptive_delay(self) -> float:
        """Base delay with jitter, clamped to [0.8 * min_delay, max_delay]."""
        base = self.base_delay()
        jitter = base * self.jitter_ratio * (random.random() - 0.5) * 2
        return max(self.min_delay * 0.8, min(base + jitter, self.max_delay))

    def next_delay(self) -> float:
        """Adaptive delay scaled by a randomly chosen human timing pattern."""
        roll = random.random()
        cumulative = 0.0
        for weight, low, high in HUMAN_TIMING_PATTERNS:
            cumulative += weight
            if roll <= cumulative:
                return self.adaptive_delay() * random.uniform(low, high)
        return self.adaptive_delay()

    async def wait(self) -> None:
        """Wait until it is safe to issue the next request."""
        required = self.next_delay()
        elapsed = time.monotonic() - self.last_request if self.last_request else required

        if elapsed < required:
            wait_time = required - elapsed
            logger.debug(
                f"Adaptive rate limiting: waiting {wait_time:.1f}s "
                f"(success rate: {self.success_rate * 100:.1f}%)"
            )
            await asyncio.sleep(wait_time)

        self.last_request = time.monotonic()

    def get_stats(self) -> Dict[str, float]:
        """Get success/failure statistics."""
        recent = [ok for _, ok in self.history]
        return {
            "success_rate": self.success_rate,
            "recent_success_rate": (sum(recent) / len(recent)) if recent else 0.0,
            "total_requests": self.success_count + self.failure_count,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
        }
