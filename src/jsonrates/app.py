# src/jsonrates/app.py
"""
Application Entry Point - Rate Cache Composition

This module is the composition root of the package. It wires settings,
the jsonrates.com fetcher, the retrieval policy and the process-wide
expiry clocks into a ready-to-use RateCache.

Files that USE this module:
- Applications embedding the cache (create_rate_cache)
- tests.test_app (unit tests)

Files that this module USES:
- jsonrates.config (settings)
- jsonrates.shared.logging_conf (setup_logging)
- jsonrates.adapters.providers.jsonrates (JsonRatesFetcher)
- jsonrates.application (RateCache, policies, ExpiryClock)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

import logging
import threading
from typing import Dict, Optional

from jsonrates.adapters.providers.base import RateFetcher
from jsonrates.adapters.providers.jsonrates import JsonRatesFetcher
from jsonrates.application.expiry import ExpiryClock
from jsonrates.application.policies import CarefulPolicy, RatePolicy, StraightPolicy
from jsonrates.application.rate_cache import RateCache
from jsonrates.config import Settings, settings as default_settings
from jsonrates.shared.logging_conf import setup_logging

logger = logging.getLogger(__name__)

_clocks: Dict[str, ExpiryClock] = {}
_clocks_lock = threading.Lock()


def shared_clock(policy: RatePolicy, cfg: Optional[Settings] = None) -> ExpiryClock:
    """
    Return the process-wide expiry clock for a policy, creating it on first use.

    The TTL of a newly created clock comes from settings; later calls return
    the same clock regardless of settings.
    """
    cfg = cfg or default_settings
    with _clocks_lock:
        clock = _clocks.get(policy.name)
        if clock is None:
            clock = ExpiryClock(ttl=cfg.ttl_in_seconds)
            _clocks[policy.name] = clock
        return clock


def reset_shared_clocks() -> None:
    """Forget every process-wide clock."""
    with _clocks_lock:
        _clocks.clear()


def create_rate_cache(
    cfg: Optional[Settings] = None,
    fetcher: Optional[RateFetcher] = None,
    policy: Optional[RatePolicy] = None,
    clock: Optional[ExpiryClock] = None,
    configure_logging: bool = False,
) -> RateCache:
    """
    Build a RateCache from settings.

    Args:
        cfg: Settings to use (defaults to the global settings instance)
        fetcher: Rate fetcher (defaults to JsonRatesFetcher over cfg)
        policy: Retrieval policy (defaults to CarefulPolicy when cfg.rates_careful)
        clock: Expiry clock (defaults to the shared clock of the policy)
        configure_logging: Call setup_logging with the logging settings first

    Returns:
        Configured RateCache
    """
    cfg = cfg or default_settings
    if configure_logging:
        setup_logging(
            log_file=cfg.log_file,
            log_dir=cfg.log_dir,
            max_bytes=cfg.log_max_bytes,
            backup_count=cfg.log_backup_count,
            log_to_stdout=cfg.log_stdout,
        )

    if policy is None:
        policy = CarefulPolicy() if cfg.rates_careful else StraightPolicy()
    fetcher = fetcher or JsonRatesFetcher(base_url=cfg.service_url, timeout=cfg.http_timeout_seconds)
    clock = clock or shared_clock(policy, cfg)

    cache = RateCache(fetcher, api_key=cfg.api_key, policy=policy, clock=clock)
    logger.info("Rate cache ready: policy=%s ttl=%s", policy.name, clock.ttl_in_seconds)
    return cache
