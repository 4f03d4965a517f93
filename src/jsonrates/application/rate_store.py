# src/jsonrates/application/rate_store.py
"""
Rate Store - Lock-guarded Rate Table

This module provides the key/value table behind a RateCache. It owns the
dict and the reentrant lock that serializes every mutation, so a policy
can hold the lock across a whole lookup-or-fetch sequence.

Files that USE this module:
- jsonrates.application.rate_cache (one store per cache)
- jsonrates.application.policies (policies read and write through the store)

Files that this module USES:
- threading (RLock)
"""
from __future__ import annotations

import threading
from typing import Any, Dict, Optional


class RateStore:
    """In-memory rate table. Callers only ever receive copies of it."""

    def __init__(self):
        self._rates: Dict[str, Any] = {}
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """Lock to hold across a check-then-populate sequence."""
        return self._lock

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._rates.get(key)

    def put(self, key: str, value: Any) -> Any:
        with self._lock:
            self._rates[key] = value
            return value

    def pop(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._rates.pop(key, None)

    def clear(self) -> Dict[str, Any]:
        """Drop every entry at once and return the (empty) table."""
        with self._lock:
            self._rates = {}
            return dict(self._rates)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._rates)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rates)
