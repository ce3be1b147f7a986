"""
Gateway — Fixed-Window Rate Limiter
====================================

What:  Per-client request counting in discrete, non-overlapping windows.
Why:   Protects the resource handlers from a single client flooding the
       gateway without needing authentication.
How:   Each client key maps to a RateLimitEntry (count, window_start).
       On each hit the window is reset if it has elapsed, then the count
       is incremented and compared against the limit.

Algorithm: Fixed Window Counter
    1. Look up (or lazily create) the client's entry
    2. If now - window_start >= window, reset count to 0 and window_start to now
    3. Increment count
    4. Allow if count <= max, reject otherwise

    Bursts at a window boundary are accepted: a client can send max
    requests at the end of one window and max more at the start of the
    next. Counting is O(1) per hit and O(1) memory per client, which is
    why this is preferred over a sliding log here.

Concurrency:
    hit() is synchronous. On a single asyncio event loop no other request
    can run between the read and the write of an entry, so two concurrent
    requests from the same client can never lose an update. Do NOT add an
    await inside hit(); a store needing I/O belongs behind its own lock.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass
class RateLimitEntry:
    count: int
    window_start: float


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single hit, used for the response headers."""

    allowed: bool
    limit: int
    count: int
    reset_at: float

    @property
    def remaining(self) -> int:
        return max(self.limit - self.count, 0)


class RateLimitStore(Protocol):
    """Storage for per-client entries. Owned exclusively by one RateLimiter."""

    def get(self, key: str) -> Optional[RateLimitEntry]: ...

    def set(self, key: str, entry: RateLimitEntry) -> None: ...

    def delete(self, key: str) -> None: ...

    def clear(self) -> None: ...

    def __len__(self) -> int: ...


class MemoryRateLimitStore:
    """
    In-process dict-backed store.

    Works for a single worker process. With several workers each process
    keeps its own table, so the effective limit is max × workers.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, RateLimitEntry] = {}

    def get(self, key: str) -> Optional[RateLimitEntry]:
        return self._entries.get(key)

    def set(self, key: str, entry: RateLimitEntry) -> None:
        self._entries[key] = entry

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def expired_keys(self, now: float, window: float):
        return [k for k, e in self._entries.items() if now - e.window_start >= window]


class RateLimiter:
    """
    Fixed-window limiter.

    Args:
        max_requests: Requests allowed per window per client
        window_ms:    Window length in milliseconds
        store:        Entry store (defaults to a fresh MemoryRateLimitStore)
        clock:        Monotonic seconds source; injectable for tests
    """

    # Sweep expired entries every N hits so idle clients don't accumulate
    CLEANUP_EVERY = 1000

    def __init__(
        self,
        max_requests: int,
        window_ms: int,
        store: Optional[RateLimitStore] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")
        self.max_requests = max_requests
        self.window_ms = window_ms
        self.store = store if store is not None else MemoryRateLimitStore()
        self.clock = clock
        self._hits = 0

    @property
    def window(self) -> float:
        """Window length in seconds."""
        return self.window_ms / 1000

    def hit(self, key: str) -> RateLimitDecision:
        """Count one request for `key` and decide whether it may proceed."""
        now = self.clock()
        entry = self.store.get(key)
        if entry is None or now - entry.window_start >= self.window:
            entry = RateLimitEntry(count=0, window_start=now)
        entry.count += 1
        self.store.set(key, entry)

        self._hits += 1
        if self._hits % self.CLEANUP_EVERY == 0:
            self._cleanup(now)

        return RateLimitDecision(
            allowed=entry.count <= self.max_requests,
            limit=self.max_requests,
            count=entry.count,
            reset_at=entry.window_start + self.window,
        )

    def reset(self, key: Optional[str] = None) -> None:
        """Forget one client, or every client when key is None."""
        if key is None:
            self.store.clear()
        else:
            self.store.delete(key)

    def _cleanup(self, now: float) -> None:
        expired = getattr(self.store, "expired_keys", None)
        if expired is None:
            return
        stale = expired(now, self.window)
        for key in stale:
            self.store.delete(key)
        if stale:
            logger.debug("Cleaned up %d expired rate limit entries", len(stale))
