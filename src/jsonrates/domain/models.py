# src/jsonrates/domain/models.py
"""
Domain Models - Currency Pairs and Cached Rates

This module contains the value objects the cache is built around:
- Currency code normalization
- Currency pairs (conversion direction)
- Timestamped rate entries

Files that USE this module:
- jsonrates.adapters.providers.jsonrates (builds requests from CurrencyPair)
- jsonrates.application.* (keys and entries of the rate table)
- tests.* (tests use domain models for test data)

Files that this module USES:
- jsonrates.domain.errors (UnknownCurrency)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

import re  # ISO code shape check
from dataclasses import dataclass  # Decorator for creating data classes
from datetime import datetime  # Date/time utilities for timestamps
from decimal import Decimal  # Arbitrary-precision rate values
from typing import Any

from jsonrates.domain.errors import UnknownCurrency

_ISO_CODE = re.compile(r"^[A-Z]{3}$")


def normalize_currency(value: Any) -> str:
    """
    Map a currency identifier to its canonical ISO 4217 code.

    Accepts plain strings ("usd", " EUR ") and currency objects of a money
    library that expose an ``iso_code`` attribute.

    Args:
        value: Currency identifier

    Returns:
        Uppercase three-letter code

    Raises:
        UnknownCurrency: If the value does not look like an ISO code
    """
    code = getattr(value, "iso_code", value)
    if not isinstance(code, str):
        raise UnknownCurrency(f"Unknown currency: {value!r}")
    code = code.strip().upper()
    if not _ISO_CODE.match(code):
        raise UnknownCurrency(f"Unknown currency: {value!r}")
    return code


@dataclass(frozen=True)
class CurrencyPair:
    """
    Ordered (source, target) pair of normalized currency codes.

    Attributes:
        source: Code of the currency converted from
        target: Code of the currency converted to
    """
    source: str
    target: str

    @classmethod
    def of(cls, source: Any, target: Any) -> CurrencyPair:
        """Build a pair from arbitrary currency identifiers."""
        return cls(normalize_currency(source), normalize_currency(target))

    def __str__(self) -> str:
        return f"{self.source}/{self.target}"


@dataclass(frozen=True)
class RateEntry:
    """
    Rate cached together with the moment it was stored.

    Attributes:
        rate: Exchange rate (target units per 1 source unit)
        created_at: When the rate was fetched or inserted
    """
    rate: Decimal
    created_at: datetime
