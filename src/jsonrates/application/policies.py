# src/jsonrates/application/policies.py
"""
Retrieval Policies - Straight and Careful Rate Lookup

This module holds the two strategies a RateCache can be built with:

- StraightPolicy: the whole table expires at once on the shared clock;
  a failed fetch on a miss propagates to the caller.
- CarefulPolicy: each entry is timestamped and checked on its own; a
  failed fetch falls back to the stale entry when there is one.

Both run their lookup-or-fetch sequence while holding the store lock, so
concurrent misses on one cache issue a single upstream request.

Files that USE this module:
- jsonrates.application.rate_cache (delegates get/set/key derivation)
- jsonrates.app (selects the policy from settings)

Files that this module USES:
- jsonrates.application.rate_store (RateStore)
- jsonrates.application.expiry (ExpiryClock)
- jsonrates.domain (CurrencyPair, RateEntry, RemoteRequestError)
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable

from jsonrates.application.expiry import ExpiryClock
from jsonrates.application.rate_store import RateStore
from jsonrates.domain.errors import RemoteRequestError
from jsonrates.domain.models import CurrencyPair, RateEntry

logger = logging.getLogger(__name__)

Fetch = Callable[[], Decimal]


class RatePolicy(ABC):
    """Strategy deciding how rates are keyed, stored and refreshed."""

    name: str = ""
    key_suffix: str = ""
    # Whether get_rate should run the table-wide lazy expiry first
    sweeps: bool = False

    def key_for(self, pair: CurrencyPair) -> str:
        """Return the rate table key, e.g. ``USD_TO_CAD``."""
        return f"{pair.source}_TO_{pair.target}{self.key_suffix}".upper()

    @abstractmethod
    def make_entry(self, rate: Decimal, now: datetime) -> Any:
        """Wrap a rate into the value stored in the table."""

    @abstractmethod
    def rate_of(self, entry: Any) -> Decimal:
        """Unwrap the rate from a stored value."""

    @abstractmethod
    def get_rate(self, store: RateStore, key: str, fetch: Fetch, clock: ExpiryClock) -> Decimal:
        """Return the rate under ``key``, fetching it when required."""

    def set_rate(self, store: RateStore, key: str, rate: Decimal, clock: ExpiryClock) -> Decimal:
        store.put(key, self.make_entry(rate, clock.now()))
        return rate

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class StraightPolicy(RatePolicy):
    """Bare Decimal values; the whole table expires together."""

    name = "straight"
    sweeps = True

    def make_entry(self, rate: Decimal, now: datetime) -> Decimal:
        return rate

    def rate_of(self, entry: Decimal) -> Decimal:
        return entry

    def get_rate(self, store: RateStore, key: str, fetch: Fetch, clock: ExpiryClock) -> Decimal:
        with store.lock:
            rate = store.get(key)
            if rate is None:
                rate = store.put(key, fetch())
            return rate


class CarefulPolicy(RatePolicy):
    """Timestamped entries with per-entry staleness and stale fallback."""

    name = "careful"
    key_suffix = "_C"

    def make_entry(self, rate: Decimal, now: datetime) -> RateEntry:
        return RateEntry(rate=rate, created_at=now)

    def rate_of(self, entry: RateEntry) -> Decimal:
        return entry.rate

    def get_rate(self, store: RateStore, key: str, fetch: Fetch, clock: ExpiryClock) -> Decimal:
        with store.lock:
            cached = store.get(key)
            if cached is not None and not clock.is_stale(cached.created_at):
                return cached.rate

            try:
                rate = fetch()
            except RemoteRequestError as e:
                if cached is None:
                    raise
                logger.warning("Keeping cached %s=%s after failed refresh: %s", key, cached.rate, e)
                return cached.rate

            store.put(key, self.make_entry(rate, clock.now()))
            return rate
