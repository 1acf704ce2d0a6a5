# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Fixed-window request counter.

A client is identified by ``<ip>:<first 16 hex of sha256(user agent)>``.
The first request of a window creates ``{count: 1, reset_time}``; later
requests increment ``count`` until ``now > reset_time`` replaces the record.
Expired records are evicted on every call (O(n) over recent clients; there
is no background sweeper).

Failure policy
--------------
Fail-open.  If the limiter's own bookkeeping raises, the error is logged and
the request is admitted: availability beats strict quota enforcement here.
"""

import hashlib
import math
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from core.logger import logger


@dataclass(frozen=True)
class RateLimitConfig:
    window_ms: int
    max_requests: int
    message: str = "Too many requests"


# Profiles are data, not branches: add one here and reference it by name.
RATE_LIMIT_PROFILES: dict[str, RateLimitConfig] = {
    # encryption / decryption operations (more restrictive)
    "encryption": RateLimitConfig(
        window_ms=15 * 60 * 1000,
        max_requests=100,
        message="Too many encryption requests. Please try again later.",
    ),
    # debug / self-test endpoints (very restrictive)
    "debug": RateLimitConfig(
        window_ms=5 * 60 * 1000,
        max_requests=20,
        message="Too many debug requests. Please try again later.",
    ),
    "general": RateLimitConfig(
        window_ms=15 * 60 * 1000,
        max_requests=1000,
        message="Too many requests. Please try again later.",
    ),
}


@dataclass
class RateLimitRecord:
    count: int
    reset_time: int  # epoch milliseconds


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_time: int          # epoch milliseconds
    retry_after: int = 0     # seconds, only meaningful when rejected
    window_ms: int = 0

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(math.ceil(self.reset_time / 1000)),
        }


def client_key(ip: str, user_agent: Optional[str]) -> str:
    """Client identity; the user agent is hashed so it is not kept verbatim."""
    ua_hash = hashlib.sha256((user_agent or "unknown").encode("utf-8")).hexdigest()[:16]
    return f"{ip or 'unknown'}:{ua_hash}"


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


class RateLimitStore(ABC):
    """Record storage.  Swap in a shared backend for multi-process deployments."""

    @abstractmethod
    def get(self, key: str) -> Optional[RateLimitRecord]:
        ...

    @abstractmethod
    def set(self, key: str, record: RateLimitRecord) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def items(self) -> Iterator[tuple[str, RateLimitRecord]]:
        ...


class MemoryRateLimitStore(RateLimitStore):
    def __init__(self):
        self._records: dict[str, RateLimitRecord] = {}

    def get(self, key: str) -> Optional[RateLimitRecord]:
        return self._records.get(key)

    def set(self, key: str, record: RateLimitRecord) -> None:
        self._records[key] = record

    def delete(self, key: str) -> None:
        self._records.pop(key, None)

    def items(self) -> Iterator[tuple[str, RateLimitRecord]]:
        # snapshot so callers may delete while iterating
        return iter(list(self._records.items()))

    def __len__(self) -> int:
        return len(self._records)


# ---------------------------------------------------------------------------
# Limiter
# ---------------------------------------------------------------------------


def _now_ms() -> int:
    return int(time.time() * 1000)


class FixedWindowRateLimiter:
    def __init__(self, store: Optional[RateLimitStore] = None, clock: Callable[[], int] = _now_ms):
        self.store = store if store is not None else MemoryRateLimitStore()
        self.clock = clock
        # Serialises read-check-write so concurrent requests from one client
        # cannot both read count=N and write N+1.
        self._lock = threading.Lock()

    def hit(self, key: str, config: RateLimitConfig) -> RateLimitDecision:
        now = None
        try:
            now = self.clock()
            with self._lock:
                self._evict_expired(now)

                record = self.store.get(key)
                if record is None or now > record.reset_time:
                    record = RateLimitRecord(count=1, reset_time=now + config.window_ms)
                else:
                    record = RateLimitRecord(count=record.count + 1, reset_time=record.reset_time)
                self.store.set(key, record)
        except Exception:
            logger.exception("Rate limiter error; admitting request")
            if now is None:
                now = _now_ms()
            return RateLimitDecision(
                allowed=True,
                limit=config.max_requests,
                remaining=config.max_requests,
                reset_time=now + config.window_ms,
                window_ms=config.window_ms,
            )

        if record.count > config.max_requests:
            return RateLimitDecision(
                allowed=False,
                limit=config.max_requests,
                remaining=0,
                reset_time=record.reset_time,
                retry_after=math.ceil((record.reset_time - now) / 1000),
                window_ms=config.window_ms,
            )

        return RateLimitDecision(
            allowed=True,
            limit=config.max_requests,
            remaining=max(0, config.max_requests - record.count),
            reset_time=record.reset_time,
            window_ms=config.window_ms,
        )

    def _evict_expired(self, now: int) -> None:
        for key, record in self.store.items():
            if now > record.reset_time:
                self.store.delete(key)
