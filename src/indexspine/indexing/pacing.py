"""Commit pacing — fixed-interval and burst gates.

Manifesto:
Hosted search services enforce indexing rate limits. A bulk reindex that
fires batch after batch as fast as the content store can export them gets
throttled or rejected. The committer acquires from a limiter before every
request so pacing is a property of the committer, not ``sleep()`` calls
sprinkled through the loop.

ARCHITECTURE
────────────
::

    RateLimiter (ABC)
      ├── FixedIntervalLimiter   ─ at most one commit per interval
      ├── TokenBucketLimiter     ─ ``burst`` commits back to back, then one per interval
      └── NullRateLimiter        ─ no pacing (non-interactive runs)

    All limiters are thread-safe (internal Lock).

Pacing is courtesy towards the remote service, not failure recovery: the
interval is fixed and never grows after an error.

Example::

    limiter = limiter_for(interval=1.0, output=True, burst=4)
    for batch in batches:
        limiter.acquire()          # first four immediate, then ~1s apart
        service.upsert(...)

Tags:
    indexspine, rate-limit, throttle, pacing, token-bucket

Doc-Types:
    api-reference
"""

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class RateLimiter(ABC):
    """Gate acquired once per commit."""

    @abstractmethod
    def acquire(self, block: bool = True) -> bool:
        """Take a commit slot.

        Args:
            block: Wait for a slot instead of refusing.

        Returns:
            True if the caller may commit now.
        """
        ...


class NullRateLimiter(RateLimiter):
    """Never waits. Used when output is suppressed for programmatic runs."""

    def acquire(self, block: bool = True) -> bool:
        return True


@dataclass
class FixedIntervalLimiter(RateLimiter):
    """Allows one commit per ``interval`` seconds.

    The first acquisition is immediate; each later one waits until
    ``interval`` has passed since the previous one.
    """

    interval: float

    _last: float | None = field(default=None, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def __post_init__(self):
        if self.interval < 0:
            raise ValueError(f"interval must be >= 0, got {self.interval}")

    def acquire(self, block: bool = True) -> bool:
        with self._lock:
            now = time.monotonic()
            wait = 0.0 if self._last is None else self._last + self.interval - now
            if wait <= 0:
                self._last = now
                return True
            if not block:
                return False
            # Reserve the slot so a concurrent caller queues behind it
            self._last = now + wait

        time.sleep(wait)
        return True


@dataclass
class TokenBucketLimiter(RateLimiter):
    """Lets ``burst`` commits through back to back, then one per ``interval``.

    Idle time earns the allowance back at one commit per ``interval``, up
    to ``burst``.
    """

    interval: float
    burst: int

    _allowance: float = field(default=0.0, init=False)
    _checked: float = field(default=0.0, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def __post_init__(self):
        if self.interval <= 0:
            raise ValueError(f"interval must be > 0, got {self.interval}")
        if self.burst < 1:
            raise ValueError(f"burst must be >= 1, got {self.burst}")
        self._allowance = float(self.burst)
        self._checked = time.monotonic()

    def acquire(self, block: bool = True) -> bool:
        while True:
            with self._lock:
                now = time.monotonic()
                earned = (now - self._checked) / self.interval
                self._allowance = min(float(self.burst), self._allowance + earned)
                self._checked = now
                if self._allowance >= 1.0:
                    self._allowance -= 1.0
                    return True
                if not block:
                    return False
                wait = (1.0 - self._allowance) * self.interval

            time.sleep(wait)


def limiter_for(interval: float, *, output: bool, burst: int = 1) -> RateLimiter:
    """Pacing used by the reindex commands.

    Interactive runs wait ``interval`` seconds between commits, after an
    initial run of ``burst`` commits when ``burst`` is above one.
    Non-interactive (``output=False``) runs and a zero interval don't pace.
    """
    if not output or interval <= 0:
        return NullRateLimiter()
    if burst > 1:
        return TokenBucketLimiter(interval=interval, burst=burst)
    return FixedIntervalLimiter(interval=interval)


__all__ = [
    "RateLimiter",
    "NullRateLimiter",
    "FixedIntervalLimiter",
    "TokenBucketLimiter",
    "limiter_for",
]
