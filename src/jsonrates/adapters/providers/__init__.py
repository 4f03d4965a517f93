# src/jsonrates/adapters/providers/__init__.py
"""
Provider Adapters - External API Clients

This package contains adapters for external exchange rate APIs.
All providers implement the RateFetcher interface.
"""

from jsonrates.adapters.providers.base import RateFetcher
from jsonrates.adapters.providers.jsonrates import JsonRatesFetcher

__all__ = [
    "RateFetcher",
    "JsonRatesFetcher",
]
