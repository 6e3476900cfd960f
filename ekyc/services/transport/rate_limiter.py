"""
Rate Limiter - in-process sliding window admission control.

Bounds the number of calls made to each verification endpoint:
- Independent window per endpoint key
- Sliding window algorithm (admissions age out continuously)
- Atomic evict/count/append per key under a per-key lock
- Rejection has no side effects

Usage:
    limiter = SlidingWindowRateLimiter(max_requests=10, window_seconds=60)

    allowed, info = limiter.check_rate_limit("http://svc/api/v1/verify-document")
    if not allowed:
        raise AdmissionDeniedError(...)
"""

import threading
import time
from collections import deque
from collections.abc import Callable

from ekyc.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class SlidingWindowRateLimiter:
    """
    Per-key sliding window rate limiter.

    Tracks exact admission instants per key rather than fixed buckets.

    Example:
        If limit is 10 req/min and 10 calls were admitted at 10:00:00,
        the next call is admitted once those entries are older than the
        window, i.e. after 10:01:00, not at a bucket boundary.

    Thread Safety:
        The eviction, count check and append for a key run under that key's
        lock, so concurrent callers observe a consistent count. Different
        keys never contend.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests: Admissions allowed per window for each key
            window_seconds: Sliding window duration in seconds
            clock: Monotonic time source (injectable for tests)
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, deque[float]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
                self._windows[key] = deque()
            return lock

    def check_rate_limit(self, key: str) -> tuple[bool, dict]:
        """
        Try to admit one call for ``key``.

        Args:
            key: Endpoint key (the service URL)

        Returns:
            Tuple of (allowed: bool, info: dict)
            - allowed: True if the call was admitted and recorded
            - info: limit, remaining, retry_after (seconds, when rejected)
        """
        lock = self._lock_for(key)
        with lock:
            window = self._windows[key]
            now = self._clock()
            window_start = now - self.window_seconds

            # Remove entries older than the window
            while window and window[0] < window_start:
                window.popleft()

            if len(window) >= self.max_requests:
                retry_after = max(0.0, window[0] + self.window_seconds - now)
                logger.warning(
                    "Rate limit exceeded",
                    key=key,
                    limit=self.max_requests,
                    window_seconds=self.window_seconds,
                    retry_after=round(retry_after, 3),
                )
                return False, self._create_info_dict(
                    allowed=False, remaining=0, retry_after=retry_after
                )

            window.append(now)
            remaining = self.max_requests - len(window)

        return True, self._create_info_dict(allowed=True, remaining=remaining)

    def try_admit(self, key: str) -> bool:
        allowed, _ = self.check_rate_limit(key)
        return allowed

    def current_count(self, key: str) -> int:
        """Admissions recorded for ``key`` inside the current window."""
        lock = self._lock_for(key)
        with lock:
            window_start = self._clock() - self.window_seconds
            return sum(1 for instant in self._windows[key] if instant >= window_start)

    def reset(self, key: str | None = None) -> None:
        """Forget admissions for one key, or for every key."""
        with self._registry_lock:
            keys = [key] if key is not None else list(self._windows)
            for k in keys:
                if k in self._windows:
                    with self._locks[k]:
                        self._windows[k].clear()

    def _create_info_dict(
        self,
        allowed: bool,
        remaining: int,
        retry_after: float | None = None,
    ) -> dict:
        return {
            "allowed": allowed,
            "limit": self.max_requests,
            "remaining": remaining,
            "retry_after": retry_after,
            "window_seconds": self.window_seconds,
        }
