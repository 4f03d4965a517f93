# tests/test_rate_cache.py
"""
Rate Cache Tests - Straight and Careful Retrieval Policies

This module tests the RateCache contract: manual insertion, flushing,
key derivation, table-wide expiry (straight policy), per-entry staleness
with stale fallback (careful policy) and single-fetch-per-miss under
concurrent callers.

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- jsonrates.application (RateCache, StraightPolicy, CarefulPolicy, ExpiryClock)
- jsonrates.adapters.providers.jsonrates (JsonRatesFetcher for end-to-end careful test)
- tests.conftest (StubFetcher, FakeNow)
"""
import pytest  # Testing framework for writing and running tests

import threading  # Concurrent callers
from datetime import timedelta  # Expiration arithmetic
from decimal import Decimal  # Expected rate type
from unittest.mock import Mock, patch  # Patching the HTTP layer

from conftest import StubFetcher
from jsonrates.adapters.providers.jsonrates import JsonRatesFetcher
from jsonrates.application import CarefulPolicy, ExpiryClock, RateCache, StraightPolicy
from jsonrates.domain.errors import MissingCredential, RemoteRequestError, UnknownCurrency
from jsonrates.domain.models import RateEntry


@pytest.fixture
def straight(clock):
    return RateCache(StubFetcher("0.88770100"), api_key="xx-xxx", policy=StraightPolicy(), clock=clock)


@pytest.fixture
def careful(clock):
    return RateCache(StubFetcher("0.88770100"), api_key="xx-xxx", policy=CarefulPolicy(), clock=clock)


class TestRateKeys:
    def test_straight_key(self, straight):
        assert straight.rate_key_for("USD", "CAD") == "USD_TO_CAD"

    def test_careful_key_is_tagged(self, careful):
        assert careful.rate_key_for("USD", "CAD") == "USD_TO_CAD_C"

    def test_order_sensitive(self, straight):
        assert straight.rate_key_for("USD", "EUR") != straight.rate_key_for("EUR", "USD")

    def test_case_normalizing(self, straight, careful):
        assert straight.rate_key_for("usd", "eur") == straight.rate_key_for("USD", "EUR")
        assert careful.rate_key_for("usd", "eur") == careful.rate_key_for("USD", "EUR")

    def test_unknown_currency(self, straight):
        with pytest.raises(UnknownCurrency):
            straight.rate_key_for("USD", "EURO")


class TestManualRates:
    @pytest.mark.parametrize("policy", [StraightPolicy(), CarefulPolicy()])
    def test_add_rate_round_trip(self, clock, policy):
        fetcher = StubFetcher(RemoteRequestError("should not be called"))
        cache = RateCache(fetcher, api_key="xx-xxx", policy=policy, clock=clock)

        assert cache.add_rate("USD", "CAD", 1.24515) == Decimal("1.24515")
        assert cache.get_rate("USD", "CAD") == Decimal("1.24515")
        assert fetcher.calls == []

    def test_set_rate_replaces_whole_entry(self, careful, fake_now):
        careful.set_rate("USD", "CAD", "1.2")
        fake_now.advance(5)
        careful.set_rate("USD", "CAD", "1.3")
        assert careful.rates == {"USD_TO_CAD_C": RateEntry(Decimal("1.3"), fake_now())}

    def test_straight_stores_bare_decimal(self, straight):
        straight.add_rate("USD", "CAD", 1.24515)
        assert straight.rates == {"USD_TO_CAD": Decimal("1.24515")}

    def test_rates_is_a_copy(self, straight):
        straight.add_rate("USD", "CAD", 1)
        straight.rates.clear()
        assert "USD_TO_CAD" in straight.rates


class TestFlush:
    def test_flush_rates_empties_table(self, straight):
        straight.add_rate("USD", "CAD", 1.24515)
        assert straight.flush_rates() == {}
        assert straight.rates == {}

    def test_flush_rate_removes_only_one_key(self, straight):
        straight.add_rate("USD", "EUR", 1.4)
        straight.add_rate("USD", "JPY", 0.3)

        assert straight.flush_rate("USD", "EUR") == Decimal("1.4")

        assert "USD_TO_JPY" in straight.rates
        assert "USD_TO_EUR" not in straight.rates

    def test_flush_rate_careful_returns_rate(self, careful):
        careful.add_rate("USD", "EUR", 1.4)
        assert careful.flush_rate("usd", "eur") == Decimal("1.4")
        assert careful.rates == {}

    def test_flush_absent_rate_returns_none(self, straight):
        assert straight.flush_rate("USD", "EUR") is None


class TestStraightPolicy:
    def test_fetches_on_miss_then_caches(self, straight):
        assert straight.get_rate("USD", "EUR") == Decimal("0.88770100")
        assert straight.get_rate("usd", "eur") == Decimal("0.88770100")
        assert len(straight.fetcher.calls) == 1
        pair, api_key = straight.fetcher.calls[0]
        assert (pair.source, pair.target, api_key) == ("USD", "EUR", "xx-xxx")

    def test_fetch_failure_propagates_and_caches_nothing(self, clock):
        cache = RateCache(StubFetcher(RemoteRequestError("boom")), api_key="xx-xxx", clock=clock)
        with pytest.raises(RemoteRequestError, match="boom"):
            cache.get_rate("USD", "EUR")
        assert cache.rates == {}

    def test_missing_credential(self, clock):
        cache = RateCache(JsonRatesFetcher(), api_key=None, clock=clock)
        with patch('jsonrates.adapters.providers.jsonrates.requests.get') as mock_get:
            with pytest.raises(MissingCredential):
                cache.get_rate("USD", "EUR")
            mock_get.assert_not_called()

    def test_get_rate_flushes_expired_table(self, clock, fake_now):
        clock.set_ttl(1000)
        cache = RateCache(StubFetcher("1.1", "1.2"), api_key="xx-xxx", clock=clock)

        assert cache.get_rate("EUR", "USD") == Decimal("1.1")
        fake_now.advance(999)
        assert cache.get_rate("EUR", "USD") == Decimal("1.1")
        fake_now.advance(2)
        assert cache.get_rate("EUR", "USD") == Decimal("1.2")
        assert len(cache.fetcher.calls) == 2


class TestExpireRates:
    @pytest.fixture
    def cache(self, clock):
        clock.set_ttl(1000)
        cache = RateCache(StubFetcher("1"), api_key="xx-xxx", clock=clock)
        cache.add_rate("USD", "CAD", 1.24515)
        return cache

    def test_flushes_when_ttl_expired(self, cache, fake_now):
        fake_now.advance(1001)
        assert cache.expire_rates() is True
        assert cache.rates == {}

    def test_updates_next_expiration(self, cache, fake_now):
        fake_now.advance(1001)
        cache.expire_rates()
        assert cache.rates_expiration == fake_now() + timedelta(seconds=1000)

    def test_no_flush_before_ttl(self, cache, fake_now):
        fake_now.advance(999)
        with patch.object(cache, "flush_rates", wraps=cache.flush_rates) as flush:
            assert cache.expire_rates() is False
            flush.assert_not_called()
        assert "USD_TO_CAD" in cache.rates

    def test_idempotent(self, cache, fake_now):
        fake_now.advance(1001)
        assert cache.expire_rates() is True
        assert cache.expire_rates() is False

    def test_late_poller_does_not_roll_back_expiry(self, cache, clock, fake_now):
        polled = threading.Event()
        real_poll = clock.poll
        results = []

        def poll_and_signal():
            epoch = real_poll()
            polled.set()
            return epoch

        with patch.object(clock, "poll", side_effect=poll_and_signal):
            with cache._store.lock:
                fake_now.advance(1001)
                worker = threading.Thread(target=lambda: results.append(cache.expire_rates()))
                worker.start()
                assert polled.wait(timeout=5)

                # second expiry applied while the worker waits on the store lock
                fake_now.advance(1001)
                assert cache.expire_rates() is True
                cache.add_rate("USD", "EUR", "1.5")
            worker.join(timeout=5)

        assert results == [False]
        assert cache.rates == {"USD_TO_EUR": Decimal("1.5")}
        fake_now.advance(1)
        assert cache.expire_rates() is False
        assert cache.rates == {"USD_TO_EUR": Decimal("1.5")}

    def test_caches_sharing_a_clock_expire_together(self, cache, clock, fake_now):
        other = RateCache(StubFetcher("1"), api_key="xx-xxx", clock=clock)
        other.add_rate("USD", "JPY", 0.3)
        fake_now.advance(1001)

        assert cache.expire_rates() is True
        assert other.expire_rates() is True
        assert other.rates == {}

    def test_independent_clocks_do_not_leak(self, cache, fake_now):
        other = RateCache(StubFetcher("1"), api_key="xx-xxx", clock=ExpiryClock(ttl=1000, now=fake_now))
        fake_now.advance(1001)
        cache.expire_rates()
        assert other.ttl_in_seconds == 1000
        cache.ttl_in_seconds = None
        assert other.ttl_in_seconds == 1000

    def test_ttl_setter_resets_shared_clock(self, cache, fake_now):
        fake_now.advance(10)
        cache.ttl_in_seconds = 86400
        assert cache.ttl_in_seconds == 86400
        assert cache.rates_expiration == fake_now() + timedelta(seconds=86400)

    def test_refresh_rates_expiration(self, cache, fake_now):
        fake_now.advance(30)
        assert cache.refresh_rates_expiration() == fake_now() + timedelta(seconds=1000)


class TestCarefulPolicy:
    def test_returns_stale_rate_when_refresh_fails(self, fake_now):
        clock = ExpiryClock(ttl=0, now=fake_now)
        fetcher = StubFetcher(RemoteRequestError("connection reset"))
        cache = RateCache(fetcher, api_key="xx-xxx", policy=CarefulPolicy(), clock=clock)

        cache.add_rate("USD", "CAD", 32.231)
        fake_now.advance(1)

        assert cache.get_rate("USD", "CAD") == Decimal("32.231")
        assert len(fetcher.calls) == 1

    @patch('jsonrates.adapters.providers.jsonrates.requests.get')
    def test_api_error_keeps_cached_rate(self, mock_get, fake_now):
        mock_response = Mock()
        mock_response.json.return_value = {"error": "currency XXXX does not exist"}
        mock_response.raise_for_status.return_value = None
        mock_get.return_value = mock_response

        clock = ExpiryClock(ttl=0, now=fake_now)
        cache = RateCache(JsonRatesFetcher(), api_key="xx-xxx", policy=CarefulPolicy(), clock=clock)
        cache.flush_rates()
        cache.add_rate("USD", "EUR", 1.011)
        fake_now.advance(1)

        assert cache.get_rate("USD", "EUR") == Decimal("1.011")
        mock_get.assert_called_once()

    def test_failure_without_prior_entry_propagates(self, careful):
        careful.fetcher = StubFetcher(RemoteRequestError("boom"))
        with pytest.raises(RemoteRequestError, match="boom"):
            careful.get_rate("USD", "EUR")
        assert careful.rates == {}

    def test_missing_credential_is_not_masked(self, fake_now):
        clock = ExpiryClock(ttl=0, now=fake_now)
        cache = RateCache(JsonRatesFetcher(), api_key="", policy=CarefulPolicy(), clock=clock)
        cache.add_rate("USD", "EUR", 1.011)
        fake_now.advance(1)
        with pytest.raises(MissingCredential):
            cache.get_rate("USD", "EUR")

    def test_fresh_entry_is_not_refetched(self, fake_now):
        clock = ExpiryClock(ttl=60, now=fake_now)
        fetcher = StubFetcher("2.0")
        cache = RateCache(fetcher, api_key="xx-xxx", policy=CarefulPolicy(), clock=clock)
        cache.add_rate("USD", "EUR", "1.0")

        fake_now.advance(60)
        assert cache.get_rate("USD", "EUR") == Decimal("1.0")
        assert fetcher.calls == []

    def test_stale_entry_is_refreshed_and_restamped(self, fake_now):
        clock = ExpiryClock(ttl=60, now=fake_now)
        fetcher = StubFetcher("2.0")
        cache = RateCache(fetcher, api_key="xx-xxx", policy=CarefulPolicy(), clock=clock)
        cache.add_rate("USD", "EUR", "1.0")

        fake_now.advance(61)
        assert cache.get_rate("USD", "EUR") == Decimal("2.0")
        assert cache.rates["USD_TO_EUR_C"] == RateEntry(Decimal("2.0"), fake_now())

    def test_no_table_wide_sweep(self, fake_now):
        clock = ExpiryClock(ttl=1000, now=fake_now)
        cache = RateCache(StubFetcher("2.0"), api_key="xx-xxx", policy=CarefulPolicy(), clock=clock)
        cache.add_rate("USD", "JPY", "0.3")
        fake_now.advance(1001)

        cache.get_rate("USD", "EUR")
        assert set(cache.rates) == {"USD_TO_JPY_C", "USD_TO_EUR_C"}

    def test_policies_do_not_collide(self, clock):
        store_fetcher = StubFetcher("1")
        straight = RateCache(store_fetcher, api_key="xx-xxx", policy=StraightPolicy(), clock=clock)
        careful = RateCache(store_fetcher, api_key="xx-xxx", policy=CarefulPolicy(), clock=clock,
                            store=straight._store)
        straight.add_rate("USD", "EUR", "1.1")
        careful.add_rate("USD", "EUR", "1.2")
        assert straight.get_rate("USD", "EUR") == Decimal("1.1")
        assert careful.get_rate("USD", "EUR") == Decimal("1.2")


class TestConcurrency:
    @pytest.mark.parametrize("policy", [StraightPolicy(), CarefulPolicy()])
    def test_concurrent_misses_fetch_once(self, clock, policy):
        fetcher = StubFetcher("0.776337241", delay=0.05)
        cache = RateCache(fetcher, api_key="xx-xxx", policy=policy, clock=clock)
        callers = 8
        barrier = threading.Barrier(callers)
        results = []
        results_lock = threading.Lock()

        def worker():
            barrier.wait()
            rate = cache.get_rate("USD", "EUR")
            with results_lock:
                results.append(rate)

        threads = [threading.Thread(target=worker) for _ in range(callers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert len(fetcher.calls) == 1
        assert results == [Decimal("0.776337241")] * callers

    def test_flush_is_atomic_for_readers(self, clock):
        cache = RateCache(StubFetcher("1"), api_key="xx-xxx", clock=clock)
        for code in ("EUR", "JPY", "CAD", "GBP", "CHF"):
            cache.add_rate("USD", code, 1)
        sizes = []
        started = threading.Event()
        stop = threading.Event()

        def reader():
            while not stop.is_set():
                sizes.append(len(cache.rates))
                started.set()

        t = threading.Thread(target=reader)
        t.start()
        started.wait(timeout=5)
        cache.flush_rates()
        stop.set()
        t.join(timeout=5)

        assert sizes
        assert set(sizes) <= {0, 5}
