# tests/conftest.py
"""
Shared Test Fixtures

Provides a controllable clock and a scripted rate fetcher so cache tests
never touch the network or depend on wall-clock time.

Files that USE this module:
- pytest (fixtures are injected into test functions)

Files that this module USES:
- jsonrates.adapters.providers.base (RateFetcher interface)
- jsonrates.application.expiry (ExpiryClock)
"""
import threading
import time
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from jsonrates.adapters.providers.base import RateFetcher
from jsonrates.application.expiry import ExpiryClock


class FakeNow:
    """Callable standing in for utc_now; only moves when advanced."""

    def __init__(self, start=None):
        self.current = start or datetime(2015, 6, 9, 18, 50, 2, tzinfo=timezone.utc)

    def __call__(self):
        return self.current

    def advance(self, seconds):
        self.current += timedelta(seconds=seconds)


class StubFetcher(RateFetcher):
    """Returns queued rates (or raises queued errors) and counts calls."""

    def __init__(self, *results, delay=0.0):
        self.results = list(results)
        self.delay = delay
        self.calls = []
        self._lock = threading.Lock()

    def fetch_rate(self, pair, api_key):
        with self._lock:
            self.calls.append((pair, api_key))
            result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if self.delay:
            time.sleep(self.delay)
        if isinstance(result, Exception):
            raise result
        return Decimal(str(result))


@pytest.fixture
def fake_now():
    return FakeNow()


@pytest.fixture
def clock(fake_now):
    return ExpiryClock(ttl=None, now=fake_now)
