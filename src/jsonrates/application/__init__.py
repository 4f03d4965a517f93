# src/jsonrates/application/__init__.py
"""
Application Layer - Rate Cache and Policies

This package contains the cache and the policies that decide when rates
are fetched. Upstream I/O goes through the RateFetcher interface.
"""

from jsonrates.application.expiry import ExpiryClock, utc_now
from jsonrates.application.policies import CarefulPolicy, RatePolicy, StraightPolicy
from jsonrates.application.rate_cache import RateCache
from jsonrates.application.rate_store import RateStore

__all__ = [
    "ExpiryClock",
    "utc_now",
    "RatePolicy",
    "StraightPolicy",
    "CarefulPolicy",
    "RateCache",
    "RateStore",
]
