# src/jsonrates/application/rate_cache.py
"""
Rate Cache - Cached Exchange Rate Bank

This module contains RateCache, the rate source handed to a money library.
It composes a RateStore (the table), a RatePolicy (straight or careful),
a RateFetcher (the upstream API) and an ExpiryClock (shared TTL state).

It implements the "variable exchange" contract a money library expects:
get_rate, set_rate/add_rate and rate_key_for, plus cache maintenance
(flush_rate, flush_rates, expire_rates).

Files that USE this module:
- jsonrates.app (create_rate_cache builds a RateCache from settings)
- tests.test_rate_cache (unit tests)

Files that this module USES:
- jsonrates.adapters.providers.base (RateFetcher interface)
- jsonrates.application.expiry (ExpiryClock)
- jsonrates.application.policies (StraightPolicy, CarefulPolicy)
- jsonrates.application.rate_store (RateStore)
- jsonrates.domain.models (CurrencyPair)
"""
from __future__ import annotations  # Enable postponed evaluation of annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from jsonrates.adapters.providers.base import RateFetcher
from jsonrates.application.expiry import ExpiryClock, TtlValue
from jsonrates.application.policies import RatePolicy, StraightPolicy
from jsonrates.application.rate_store import RateStore
from jsonrates.domain.models import CurrencyPair

logger = logging.getLogger(__name__)


class RateCache:
    """
    Thread-safe cache of exchange rates backed by a RateFetcher.

    Example:
        cache = RateCache(JsonRatesFetcher(), api_key="xx-xxx")
        cache.get_rate("USD", "EUR")          # Decimal('0.88770100')
        cache.add_rate("USD", "CAD", 1.24515)  # Decimal('1.24515')
        cache.flush_rates()                    # {}
    """

    def __init__(
        self,
        fetcher: RateFetcher,
        api_key: Optional[str] = None,
        policy: Optional[RatePolicy] = None,
        clock: Optional[ExpiryClock] = None,
        store: Optional[RateStore] = None,
    ):
        """
        Initialize the cache.

        Args:
            fetcher: Upstream rate source used on a miss
            api_key: Credential passed to the fetcher
            policy: Retrieval policy (defaults to StraightPolicy)
            clock: Expiry clock; caches built with the same clock expire together
            store: Rate table (defaults to a fresh RateStore)
        """
        self.fetcher = fetcher
        self.api_key = api_key
        self.policy = policy or StraightPolicy()
        self.clock = clock or ExpiryClock()
        self._store = store or RateStore()
        self._epoch = self.clock.epoch

    # --- Variable exchange contract ---

    def rate_key_for(self, from_currency: Any, to_currency: Any) -> str:
        """
        Return the rate table key for the given currencies.

        Example:
            rate_key_for("usd", "cad")  # "USD_TO_CAD", or "USD_TO_CAD_C" when careful
        """
        return self.policy.key_for(CurrencyPair.of(from_currency, to_currency))

    def get_rate(self, from_currency: Any, to_currency: Any) -> Decimal:
        """
        Return the rate for converting ``from_currency`` into ``to_currency``.

        Under the straight policy the whole table is flushed first when the
        shared clock has expired. Under the careful policy a stale entry is
        refreshed, and kept if the refresh fails.

        Raises:
            MissingCredential: If no API key is set and the rate must be fetched
            RemoteRequestError: If the fetch fails and nothing can be returned
        """
        pair = CurrencyPair.of(from_currency, to_currency)
        if self.policy.sweeps:
            self.expire_rates()
        key = self.policy.key_for(pair)
        return self.policy.get_rate(
            self._store, key, lambda: self.fetcher.fetch_rate(pair, self.api_key), self.clock
        )

    def set_rate(self, from_currency: Any, to_currency: Any, rate: Any) -> Decimal:
        """
        Register a conversion rate and return it as Decimal.

        Equivalent to a successful fetch; the careful policy stamps the current time.
        """
        rate_d = Decimal(str(rate))
        key = self.rate_key_for(from_currency, to_currency)
        return self.policy.set_rate(self._store, key, rate_d, self.clock)

    def add_rate(self, from_currency: Any, to_currency: Any, rate: Any) -> Decimal:
        """Register a conversion rate and return it (uses set_rate)."""
        return self.set_rate(from_currency, to_currency, rate)

    # --- Cache maintenance ---

    @property
    def rates(self) -> Dict[str, Any]:
        """Copy of the currently known rates, keyed by rate_key_for."""
        return self._store.snapshot()

    def flush_rates(self) -> Dict[str, Any]:
        """
        Clear all stored rates.

        Returns:
            The empty rate table
        """
        logger.debug("Flushing all rates")
        return self._store.clear()

    def flush_rate(self, from_currency: Any, to_currency: Any) -> Optional[Decimal]:
        """
        Clear the rate stored for one currency pair.

        Returns:
            The flushed rate, or None if it was not cached
        """
        entry = self._store.pop(self.rate_key_for(from_currency, to_currency))
        return None if entry is None else self.policy.rate_of(entry)

    def expire_rates(self) -> bool:
        """
        Flush all rates if the shared clock has expired since this cache last flushed.

        Polling the clock also reschedules it at now + TTL.

        Returns:
            True if the rates were flushed
        """
        epoch = self.clock.poll()
        with self._store.lock:
            # A caller that polled earlier may arrive after a newer epoch was applied
            if epoch <= self._epoch:
                return False
            self.flush_rates()
            self._epoch = epoch
        logger.info("Rates expired and flushed (epoch %d)", epoch)
        return True

    # --- Shared TTL state ---

    @property
    def ttl_in_seconds(self) -> Optional[int]:
        return self.clock.ttl_in_seconds

    @ttl_in_seconds.setter
    def ttl_in_seconds(self, value: TtlValue) -> None:
        """Set the TTL on the shared clock; this reschedules every cache using it."""
        self.clock.set_ttl(value)

    @property
    def rates_expiration(self) -> Optional[datetime]:
        """When the rates expire next."""
        return self.clock.expires_at

    def refresh_rates_expiration(self) -> Optional[datetime]:
        """Set the rates expiration TTL seconds from the current time."""
        return self.clock.refresh()

    def __repr__(self) -> str:
        return f"<RateCache policy={self.policy!r} rates={len(self._store)}>"
