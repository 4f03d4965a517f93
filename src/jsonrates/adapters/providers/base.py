# src/jsonrates/adapters/providers/base.py
"""
Base Fetcher Interface for Exchange Rate Providers

This module defines the abstract base class for rate fetchers. A fetcher
translates one currency pair into one upstream request and returns the
parsed rate; it never caches and never retries.

Files that USE this module:
- jsonrates.adapters.providers.jsonrates (JsonRatesFetcher implements RateFetcher)
- jsonrates.application.rate_cache (RateCache calls fetch_rate on a miss)

Files that this module USES:
- jsonrates.domain.models (CurrencyPair)
"""
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from jsonrates.domain.models import CurrencyPair


class RateFetcher(ABC):
    @abstractmethod
    def fetch_rate(self, pair: CurrencyPair, api_key: Optional[str]) -> Decimal:
        """
        Return target units per 1 source unit.

        Raises:
            MissingCredential: If api_key is blank (before any request)
            RemoteRequestError: On any transport or upstream failure
        """
        raise NotImplementedError
