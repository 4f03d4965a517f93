# src/jsonrates/adapters/providers/jsonrates.py
"""
JsonRates API Provider for Currency Exchange Rates

This module implements the jsonrates.com client used by the rate cache on a
miss. It builds the query for one currency pair, performs a single GET and
parses the decimal rate out of the JSON answer. Every transport failure and
every error reported by the API is turned into RemoteRequestError.

Files that USE this module:
- jsonrates.app (create_rate_cache wires a JsonRatesFetcher into RateCache)
- tests.test_providers (unit tests)

Files that this module USES:
- jsonrates.adapters.providers.base (RateFetcher interface)
- jsonrates.config (settings for URL and timeout defaults)
- jsonrates.domain (CurrencyPair, MissingCredential, RemoteRequestError)
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple

import requests

from jsonrates.adapters.providers.base import RateFetcher
from jsonrates.config import settings
from jsonrates.domain.errors import MissingCredential, RemoteRequestError
from jsonrates.domain.models import CurrencyPair
from jsonrates.shared.validators import validate_api_key

log = logging.getLogger(__name__)


class JsonRatesFetcher(RateFetcher):
    """
    Stateless client for the jsonrates.com ``/get`` endpoint.

    A successful answer looks like:
      {"utctime": "2015-06-09T18:50:02+02:00", "from": "USD", "to": "EUR", "rate": "0.88770100"}
    A failed one carries an ``error`` message, even with a 200 status:
      {"error": "currency XXXX does not exist"}
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[int] = None):
        """
        Initialize jsonrates.com fetcher.

        Args:
            base_url: Optional custom API URL (defaults to settings.service_url)
            timeout: Optional HTTP timeout in seconds (defaults to settings.http_timeout_seconds)
        """
        self.url = base_url or settings.service_url
        self.timeout = timeout or settings.http_timeout_seconds

    def build_request(self, pair: CurrencyPair, api_key: Optional[str]) -> Tuple[str, Dict[str, str]]:
        """
        Build the URL and query parameters identifying the request for a pair.

        Raises:
            MissingCredential: If api_key is blank
        """
        if not validate_api_key(api_key):
            raise MissingCredential()
        params = {"from": pair.source, "to": pair.target, "apiKey": api_key.strip()}
        return self.url, params

    def fetch_rate(self, pair: CurrencyPair, api_key: Optional[str]) -> Decimal:
        """
        Get the exchange rate for a currency pair from jsonrates.com.

        Returns:
            Target units per 1 source unit as Decimal

        Raises:
            MissingCredential: If api_key is blank (no request is made)
            RemoteRequestError: If the request fails, the body is not a JSON
                object, the API reports an error or the rate is unparseable
        """
        url, params = self.build_request(pair, api_key)
        log.info("Fetching %s rate from jsonrates", pair)
        data = self._perform_request(url, params)
        return self._extract_rate(pair, data)

    def _perform_request(self, url: str, params: Dict[str, str]) -> Dict[str, Any]:
        """Run the GET and decode the JSON object, mapping failures to RemoteRequestError."""
        try:
            resp = requests.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.exceptions.Timeout as e:
            log.warning("jsonrates API timeout after %d seconds", self.timeout)
            raise RemoteRequestError(f"jsonrates API timeout after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            log.warning("jsonrates API request failed: %s", e)
            raise RemoteRequestError(f"jsonrates API request failed: {e}") from e
        except ValueError as e:
            log.error("jsonrates API returned invalid JSON: %s", e)
            raise RemoteRequestError(f"jsonrates API returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            log.error("jsonrates unexpected response type: %r", type(data))
            raise RemoteRequestError("jsonrates API returned non-dict JSON")
        return data

    @staticmethod
    def _extract_rate(pair: CurrencyPair, data: Dict[str, Any]) -> Decimal:
        """Parse the rate field, honouring an explicit error message first."""
        error = data.get("error")
        if error:
            log.warning("jsonrates API error for %s: %s", pair, error)
            raise RemoteRequestError(str(error))

        raw = data.get("rate")
        if raw is None:
            log.error("jsonrates response missing 'rate' field: %s", data)
            raise RemoteRequestError("jsonrates response missing 'rate' field")
        try:
            rate = Decimal(str(raw))
        except InvalidOperation as e:
            log.error("jsonrates returned unparseable rate: %r", raw)
            raise RemoteRequestError(f"jsonrates returned unparseable rate: {raw!r}") from e
        if not rate.is_finite():
            raise RemoteRequestError(f"jsonrates returned unparseable rate: {raw!r}")

        log.info("jsonrates updated: %s=%s", pair, rate)
        return rate
