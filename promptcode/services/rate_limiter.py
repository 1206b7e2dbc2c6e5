"""
Per-client rate limiting.

Thin wrapper over the ``limits`` fixed-window strategy. The limiter is created
once at startup and held on ``app.state``; counters live in the configured
``limits`` storage (in-process memory by default).
"""

import math
import time

from limits import RateLimitItemPerSecond
from limits.storage import storage_from_string
from limits.strategies import FixedWindowRateLimiter
from structlog import get_logger

logger = get_logger()

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


class ClientRateLimiter:
    """
    Allows ``max_requests`` per ``window_seconds`` for each client key.

    Usage::

        limiter = ClientRateLimiter(max_requests=100, window_seconds=900)
        if not limiter.hit(client_ip):
            retry = limiter.retry_after(client_ip)
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        storage_uri: str = "memory://",
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be at least 1")

        self.limit = RateLimitItemPerSecond(max_requests, window_seconds)
        self._storage = storage_from_string(storage_uri)
        self._strategy = FixedWindowRateLimiter(self._storage)

        logger.info(
            "Rate limiter initialized",
            limit=str(self.limit),
            storage=storage_uri,
        )

    @property
    def max_requests(self) -> int:
        return self.limit.amount

    @property
    def window_seconds(self) -> int:
        return self.limit.get_expiry()

    def hit(self, key: str) -> bool:
        """Count one request for *key*; return False if it exceeds the limit."""
        return self._strategy.hit(self.limit, key)

    def retry_after(self, key: str) -> int:
        """Seconds until *key*'s current window resets."""
        stats = self._strategy.get_window_stats(self.limit, key)
        return max(0, math.ceil(stats.reset_time - time.time()))

    def reset(self) -> None:
        """Forget all counters."""
        self._storage.reset()
