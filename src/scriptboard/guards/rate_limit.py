"""Fixed-window rate limiting.

Best effort and single process: counters live in memory, reset when the
process restarts, and are not shared between server instances.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Optional, Tuple

logger = logging.getLogger(__name__)

Clock = Callable[[], int]

DEFAULT_SWEEP_THRESHOLD = 10_000


def _epoch_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class RateLimitEntry:
    """Request count for one caller and endpoint in the current window."""

    count: int
    reset_time: int


@dataclass(frozen=True)
class RateLimitConfig:
    """Allowance for one endpoint."""

    max_requests: int
    window_ms: int


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a rate limit check."""

    allowed: bool
    remaining: int
    reset_time: int
    retry_after: Optional[int] = None


RATE_LIMITS: Dict[str, RateLimitConfig] = {
    "generate_script": RateLimitConfig(max_requests=10, window_ms=60_000),
    "generate_storyboard": RateLimitConfig(max_requests=30, window_ms=60_000),
    "generate_share_link": RateLimitConfig(max_requests=20, window_ms=60_000),
    "export_pdf": RateLimitConfig(max_requests=5, window_ms=60_000),
}


class RateLimitStore:
    """In-memory map of rate limit keys to their current window."""

    def __init__(self) -> None:
        self._entries: Dict[str, RateLimitEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Tuple[str, RateLimitEntry]]:
        return iter(list(self._entries.items()))

    def get(self, key: str) -> Optional[RateLimitEntry]:
        return self._entries.get(key)

    def set(self, key: str, entry: RateLimitEntry) -> None:
        self._entries[key] = entry

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def sweep_expired(self, now: int) -> int:
        """Drop entries whose window has ended. Returns how many were removed."""
        expired = [key for key, entry in self._entries.items() if now >= entry.reset_time]
        for key in expired:
            del self._entries[key]
        return len(expired)


class RateLimiter:
    """Fixed-window counter keyed by caller identity and endpoint."""

    def __init__(
        self,
        store: Optional[RateLimitStore] = None,
        clock: Optional[Clock] = None,
        sweep_threshold: int = DEFAULT_SWEEP_THRESHOLD,
    ) -> None:
        self._store = store if store is not None else RateLimitStore()
        self._clock = clock or _epoch_ms
        self._sweep_threshold = sweep_threshold
        self._lock = threading.Lock()

    @property
    def store(self) -> RateLimitStore:
        return self._store

    def check(
        self, identifier: str, endpoint: str, max_requests: int, window_ms: int
    ) -> RateLimitResult:
        """Count one request and report whether it is allowed."""
        key = f"{identifier}:{endpoint}"

        with self._lock:
            now = self._clock()

            if len(self._store) > self._sweep_threshold:
                removed = self._store.sweep_expired(now)
                logger.debug(f"Swept {removed} expired rate limit entries")

            entry = self._store.get(key)

            if entry is None or now >= entry.reset_time:
                entry = RateLimitEntry(count=1, reset_time=now + window_ms)
                self._store.set(key, entry)
                return RateLimitResult(
                    allowed=True,
                    remaining=max_requests - 1,
                    reset_time=entry.reset_time,
                )

            if entry.count >= max_requests:
                retry_after = math.ceil((entry.reset_time - now) / 1000)
                logger.warning(f"Rate limit hit for {key}, retry after {retry_after}s")
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    reset_time=entry.reset_time,
                    retry_after=retry_after,
                )

            entry.count += 1
            self._store.set(key, entry)
            return RateLimitResult(
                allowed=True,
                remaining=max_requests - entry.count,
                reset_time=entry.reset_time,
            )

    def check_endpoint(self, identifier: str, endpoint: str) -> RateLimitResult:
        """Check against the default allowance in :data:`RATE_LIMITS`."""
        limits = RATE_LIMITS[endpoint]
        return self.check(identifier, endpoint, limits.max_requests, limits.window_ms)


def rate_limit_headers(result: RateLimitResult) -> Dict[str, str]:
    """Response headers describing a rate limit result."""
    headers = {
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_time),
    }
    if result.retry_after is not None:
        headers["Retry-After"] = str(result.retry_after)
    return headers
