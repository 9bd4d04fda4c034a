# =============================================================================
# lib/rate_limiter.py - Fixed Window Rate Limiter
# =============================================================================
# Counts calls per identifier inside a fixed time window.
#
# The counter store is injected rather than kept as a module global, so the
# API can share counters through Redis in production and tests can start
# every case from an empty in-memory store.
#
# Every check counts, including checks that end up rejected.
#
# Usage:
#   limiter = RateLimiter(InMemoryRateLimitStore())
#   result = limiter.check("agent:123", RateLimitPolicy(max_requests=5, window_ms=60_000))
#   if not result.allowed:
#       ...
# =============================================================================

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

# How often the in-memory store sweeps out closed windows
PURGE_INTERVAL_MS = 5 * 60 * 1000


@dataclass(frozen=True)
class RateLimitPolicy:
    """Maximum number of calls allowed per window."""
    max_requests: int
    window_ms: int

    def __post_init__(self) -> None:
        if self.max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if self.window_ms < 1:
            raise ValueError("window_ms must be at least 1")


@dataclass(frozen=True)
class RateLimitResult:
    """
    Outcome of a rate limit check.

    Attributes:
        allowed: Whether this call fits inside the policy
        remaining: Calls left in the current window
        reset_time: Epoch seconds at which the current window ends
    """
    allowed: bool
    remaining: int
    reset_time: float


# =============================================================================
# Counter Stores
# =============================================================================

class RateLimitStore(ABC):
    """
    Storage for per-identifier window counters.

    Implementations must make `increment` atomic per identifier: two
    overlapping requests may never observe the same count.
    """

    @abstractmethod
    def increment(self, identifier: str, window_ms: int, now_ms: int) -> tuple[int, int]:
        """
        Count one call for `identifier`.

        Starts a new window if none is open or the open one has ended.

        Returns:
            Tuple of (count inside the window including this call, window end in epoch ms)
        """

    @abstractmethod
    def reset(self) -> None:
        """Forget every counter."""


class InMemoryRateLimitStore(RateLimitStore):
    """
    Process-local store guarded by a lock.

    Closed windows are swept out at most once per `purge_interval_ms`,
    on whichever increment first lands after the interval has passed.
    """

    def __init__(self, purge_interval_ms: int = PURGE_INTERVAL_MS) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[int, int]] = {}
        self._purge_interval_ms = purge_interval_ms
        self._next_purge_ms = 0

    def increment(self, identifier: str, window_ms: int, now_ms: int) -> tuple[int, int]:
        with self._lock:
            if now_ms >= self._next_purge_ms:
                self._purge_locked(now_ms)
                self._next_purge_ms = now_ms + self._purge_interval_ms

            entry = self._entries.get(identifier)
            if entry is None or now_ms >= entry[1]:
                entry = (1, now_ms + window_ms)
            else:
                entry = (entry[0] + 1, entry[1])
            self._entries[identifier] = entry
            return entry

    def purge_expired(self, now_ms: int) -> int:
        """Drop closed windows. Returns how many entries were removed."""
        with self._lock:
            return self._purge_locked(now_ms)

    def _purge_locked(self, now_ms: int) -> int:
        expired = [key for key, (_, reset_ms) in self._entries.items() if reset_ms <= now_ms]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired rate limit entries")
        return len(expired)

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


# INCR and the first-hit PEXPIRE run as one script, so Redis applies them
# atomically relative to every other client.
_INCREMENT_SCRIPT = """
local count = redis.call('INCR', KEYS[1])
if count == 1 then
    redis.call('PEXPIRE', KEYS[1], ARGV[1])
end
local ttl = redis.call('PTTL', KEYS[1])
if ttl < 0 then
    redis.call('PEXPIRE', KEYS[1], ARGV[1])
    ttl = tonumber(ARGV[1])
end
return {count, ttl}
"""


class RedisRateLimitStore(RateLimitStore):
    """Store shared by every API process through Redis."""

    def __init__(self, client, prefix: str = "ratelimit:") -> None:
        self._client = client
        self._prefix = prefix
        self._script = client.register_script(_INCREMENT_SCRIPT)

    @classmethod
    def from_url(cls, url: str, prefix: str = "ratelimit:") -> "RedisRateLimitStore":
        import redis

        return cls(redis.Redis.from_url(url), prefix=prefix)

    def increment(self, identifier: str, window_ms: int, now_ms: int) -> tuple[int, int]:
        count, ttl_ms = self._script(keys=[self._prefix + identifier], args=[window_ms])
        return int(count), now_ms + int(ttl_ms)

    def reset(self) -> None:
        for key in self._client.scan_iter(match=self._prefix + "*"):
            self._client.delete(key)


# =============================================================================
# Limiter
# =============================================================================

class RateLimiter:
    """
    Fixed window rate limiter over a pluggable counter store.

    Args:
        store: Where counters live
        clock: Returns the current time in epoch seconds (injectable for tests)
    """

    def __init__(self, store: RateLimitStore, clock: Callable[[], float] = time.time) -> None:
        self.store = store
        self.clock = clock

    def check(self, identifier: str, policy: RateLimitPolicy) -> RateLimitResult:
        """
        Count a call and decide whether it is allowed.

        Args:
            identifier: Caller key, e.g. "agent:<id>" or "n8n:<key prefix>"
            policy: Limit to apply

        Returns:
            RateLimitResult for this call
        """
        now_ms = int(self.clock() * 1000)
        count, reset_ms = self.store.increment(identifier, policy.window_ms, now_ms)

        allowed = count <= policy.max_requests
        remaining = max(0, policy.max_requests - count)

        if not allowed:
            logger.warning(f"Rate limit exceeded for {identifier} ({count}/{policy.max_requests})")

        return RateLimitResult(
            allowed=allowed,
            remaining=remaining,
            reset_time=reset_ms / 1000,
        )

    def reset(self) -> None:
        """Clear every counter (used between tests)."""
        self.store.reset()


def check_rate_limit(
    limiter: RateLimiter,
    identifier: str,
    policy: RateLimitPolicy,
) -> RateLimitResult:
    """Functional shorthand for `limiter.check(identifier, policy)`."""
    return limiter.check(identifier, policy)
