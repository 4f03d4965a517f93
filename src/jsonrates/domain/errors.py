# src/jsonrates/domain/errors.py
"""
Domain Errors - Rate Lookup Exceptions

This module defines the exceptions surfaced by the fetcher and the cache.
Flushing a rate that is not cached is not an error and has no exception.
"""


class JsonRatesError(Exception):
    """Base exception for jsonrates errors."""
    pass


class MissingCredential(JsonRatesError):
    """Raised when no API key is configured. Never retried."""

    def __init__(self, message: str = ""):
        super().__init__(
            message
            or "Blank api_key! Get an api_key on jsonrates.com and set it via "
               "JSONRATES_API_KEY or RateCache.api_key"
        )


class RemoteRequestError(JsonRatesError):
    """Raised when the rate request fails in transport or the API reports an error."""
    pass


class UnknownCurrency(JsonRatesError, ValueError):
    """Raised when a value cannot be normalized to an ISO currency code."""
    pass
