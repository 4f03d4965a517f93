# src/jsonrates/application/expiry.py
"""
Expiry Clock - Shared TTL and Expiration Schedule

This module holds the TTL and the "next expiration" instant that caches
using the straight policy share. Instead of class-level state, a clock is
an explicit object handed to every cache that should expire together, so
independent caches (and tests) never leak into each other.

Each time the expiration instant passes, the clock advances its epoch.
A cache remembers the epoch it last flushed at and flushes its own table
when it sees a newer one, so every cache sharing the clock is swept.

Files that USE this module:
- jsonrates.application.rate_cache (lazy expiry and TTL accessors)
- jsonrates.application.policies (careful policy reads the TTL)
- jsonrates.app (builds the process-wide clock from settings)

Files that this module USES:
- threading (Lock)
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)

TtlValue = Union[None, int, float, timedelta]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _as_timedelta(ttl: TtlValue) -> Optional[timedelta]:
    if ttl is None or isinstance(ttl, timedelta):
        return ttl
    return timedelta(seconds=ttl)


class ExpiryClock:
    """Thread-safe TTL plus next-expiration instant shared by several caches."""

    def __init__(self, ttl: TtlValue = None, now: Callable[[], datetime] = utc_now):
        """
        Initialize the clock.

        Args:
            ttl: Seconds (or timedelta) between two table-wide expirations;
                None disables them
            now: Callable returning the current time (injectable for tests)
        """
        self._now = now
        self._lock = threading.Lock()
        self._ttl: Optional[timedelta] = None
        self._expires_at: Optional[datetime] = None
        self._epoch = 0
        self.set_ttl(ttl)

    def now(self) -> datetime:
        return self._now()

    @property
    def ttl(self) -> Optional[timedelta]:
        with self._lock:
            return self._ttl

    @property
    def ttl_in_seconds(self) -> Optional[int]:
        ttl = self.ttl
        return None if ttl is None else int(ttl.total_seconds())

    @property
    def expires_at(self) -> Optional[datetime]:
        """Next expiration instant, or None when no TTL is configured."""
        with self._lock:
            return self._expires_at

    @property
    def epoch(self) -> int:
        """Number of expirations observed so far."""
        with self._lock:
            return self._epoch

    def set_ttl(self, ttl: TtlValue) -> None:
        """
        Set the TTL and, if one is given, reschedule expiration to now + TTL.

        Raises:
            ValueError: If the TTL is negative or not a whole number of seconds
        """
        ttl = _as_timedelta(ttl)
        if ttl is not None:
            if ttl < timedelta(0):
                raise ValueError("ttl must not be negative")
            if ttl.microseconds:
                raise ValueError("ttl must be a whole number of seconds")
        with self._lock:
            self._ttl = ttl
            self._expires_at = None if ttl is None else self._now() + ttl
        logger.debug("Rates TTL set to %s", ttl)

    def refresh(self) -> Optional[datetime]:
        """
        Reschedule the next expiration at now + TTL.

        Returns:
            The new expiration instant (None when no TTL is configured)
        """
        with self._lock:
            if self._ttl is not None:
                self._expires_at = self._now() + self._ttl
            return self._expires_at

    def poll(self) -> int:
        """
        Advance the epoch if the expiration instant has passed.

        The check and the reschedule happen in one critical section, so
        concurrent pollers advance the epoch at most once per expiration.

        Returns:
            The current epoch
        """
        with self._lock:
            if self._ttl is not None and self._expires_at is not None:
                now = self._now()
                if self._expires_at <= now:
                    self._epoch += 1
                    self._expires_at = now + self._ttl
                    logger.info("Rates expired; next expiration at %s", self._expires_at)
            return self._epoch

    def is_stale(self, created_at: datetime) -> bool:
        """Whether an entry created at ``created_at`` has outlived the TTL (None counts as 0)."""
        ttl = self.ttl or timedelta(0)
        return created_at + ttl < self._now()
