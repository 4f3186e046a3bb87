"""
Retry helpers for AUR network operations.

Provides exponential backoff for transient RPC and download failures and a
circuit breaker that stops hammering an endpoint once it keeps failing.
"""

import logging
import random
import time
from collections import defaultdict

logger = logging.getLogger(__name__)


class ExponentialBackoff:
    """Exponential backoff with ±25% jitter."""

    def __init__(self, base_delay: float = 0.5, max_delay: float = 10.0, max_retries: int = 3):
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.max_retries = max_retries

    def calculate_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (zero-based)."""
        delay = min(self.base_delay * (2**attempt), self.max_delay)
        jitter = delay * 0.25 * (random.random() * 2 - 1)
        return max(0.0, delay + jitter)

    def should_retry(self, attempt: int) -> bool:
        return attempt < self.max_retries


class CircuitBreaker:
    """
    Per-endpoint circuit breaker.

    After ``failure_threshold`` consecutive failures on an endpoint the
    circuit opens and calls to it are refused until ``timeout`` seconds
    have passed.
    """

    def __init__(self, failure_threshold: int = 5, timeout: float = 60.0):
        self.failure_threshold = failure_threshold
        self.timeout = timeout
        self.failures: dict[str, int] = defaultdict(int)
        self.opened_at: dict[str, float] = {}

    def record_failure(self, endpoint: str) -> None:
        self.failures[endpoint] += 1
        if self.failures[endpoint] >= self.failure_threshold and endpoint not in self.opened_at:
            self.opened_at[endpoint] = time.monotonic()
            logger.warning(f"[AUR] Circuit open for {endpoint} ({self.failures[endpoint]} failures)")

    def record_success(self, endpoint: str) -> None:
        self.failures[endpoint] = 0
        if self.opened_at.pop(endpoint, None) is not None:
            logger.info(f"[AUR] Circuit closed for {endpoint}")

    def is_open(self, endpoint: str) -> bool:
        opened = self.opened_at.get(endpoint)
        if opened is None:
            return False

        if time.monotonic() - opened > self.timeout:
            del self.opened_at[endpoint]
            self.failures[endpoint] = 0
            logger.info(f"[AUR] Circuit reset for {endpoint} (timeout passed)")
            return False

        return True
