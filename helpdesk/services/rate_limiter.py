"""
Rate Limiter - Fixed-window request limiting per caller

One instance lives on the FastAPI app state and is handed to routes through
a dependency; nothing here is module-global.
"""
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Hashable

from ..domain.errors import RateLimitError
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class RateLimitWindow:
    """Track requests within a time window"""
    count: int = 0
    window_start: float = field(default_factory=time.monotonic)


class RateLimiter:
    """
    In-memory fixed-window limiter

    Each key gets max_requests per window_seconds. Windows older than
    window_seconds are discarded on the next check for that key, or in
    bulk by purge_expired().
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic
    ):
        if max_requests < 1 or window_seconds < 1:
            raise ValueError("max_requests and window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[Hashable, RateLimitWindow] = {}

    def check(self, key: Hashable) -> int:
        """
        Count one request for key

        Returns:
            Requests left in the current window

        Raises:
            RateLimitError: when the window is already full
        """
        now = self._clock()
        window = self._windows.get(key)

        if window is None or now - window.window_start >= self.window_seconds:
            window = RateLimitWindow(count=0, window_start=now)
            self._windows[key] = window

        if window.count >= self.max_requests:
            retry_after = max(1, int(self.window_seconds - (now - window.window_start)))
            logger.warning(
                f"Rate limit exceeded for {key}",
                extra={"user_id": str(key), "error_code": RateLimitError.error_code}
            )
            raise RateLimitError(
                f"Rate limit exceeded. Retry after {retry_after} seconds.",
                details={
                    "retry_after": retry_after,
                    "limit": self.max_requests,
                    "window_seconds": self.window_seconds,
                }
            )

        window.count += 1
        return self.max_requests - window.count

    def reset(self, key: Hashable) -> None:
        """Forget a key's window (admin override, tests)"""
        self._windows.pop(key, None)

    def reset_all(self) -> None:
        self._windows.clear()

    def purge_expired(self) -> int:
        """Drop windows that have run out; returns how many were dropped"""
        now = self._clock()
        expired = [
            key for key, window in self._windows.items()
            if now - window.window_start >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)
