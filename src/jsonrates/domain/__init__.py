# src/jsonrates/domain/__init__.py
"""
Domain Layer - Pure Business Objects

This package contains domain models and business rules.
No dependencies on infrastructure or external systems.
"""

from jsonrates.domain.models import (
    CurrencyPair,
    RateEntry,
    normalize_currency,
)
from jsonrates.domain.errors import (
    JsonRatesError,
    MissingCredential,
    RemoteRequestError,
    UnknownCurrency,
)

__all__ = [
    "CurrencyPair",
    "RateEntry",
    "normalize_currency",
    "JsonRatesError",
    "MissingCredential",
    "RemoteRequestError",
    "UnknownCurrency",
]
