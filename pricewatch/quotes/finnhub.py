"""Finnhub quote provider."""

import logging
from typing import Any, Optional

import httpx

from pricewatch.errors import QuoteUnavailableError
from pricewatch.quotes.base import BaseQuoteProvider, Quote

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://finnhub.io/api/v1"


def _safe_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class FinnhubQuoteProvider(BaseQuoteProvider):
    """Fetches quotes from the Finnhub ``/quote`` endpoint."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize the Finnhub provider.

        Args:
            api_key: Finnhub API token.
            base_url: API root URL.
            timeout: Per-request timeout in seconds.
            client: Optional preconfigured client (shared across calls).
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _get(self, path: str, params: dict[str, Any]) -> Any:
        query = {**params, "token": self.api_key}
        url = f"{self.base_url}{path}"
        if self._client is not None:
            response = self._client.get(url, params=query, timeout=self.timeout)
        else:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(url, params=query)
        response.raise_for_status()
        return response.json()

    def get_quote(self, symbol: str) -> Quote:
        """Get the current quote for a symbol.

        Raises:
            QuoteUnavailableError: On HTTP errors, timeouts, malformed
                payloads or when Finnhub has no price for the symbol.
        """
        symbol = symbol.strip().upper()
        if not self.api_key:
            raise QuoteUnavailableError(symbol, "Finnhub API key is not configured")

        try:
            payload = self._get("/quote", {"symbol": symbol})
        except httpx.TimeoutException as e:
            raise QuoteUnavailableError(symbol, f"timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise QuoteUnavailableError(
                symbol, f"HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise QuoteUnavailableError(symbol, str(e) or type(e).__name__) from e

        if not isinstance(payload, dict):
            raise QuoteUnavailableError(symbol, "Unexpected response payload")

        price = _safe_float(payload.get("c"))
        if not price or price <= 0:
            raise QuoteUnavailableError(symbol, "No price data")

        previous_close = _safe_float(payload.get("pc")) or 0.0
        change = _safe_float(payload.get("d"))
        if change is None:
            change = price - previous_close if previous_close else 0.0
        change_percent = _safe_float(payload.get("dp"))
        if change_percent is None:
            change_percent = (change / previous_close * 100) if previous_close else 0.0

        logger.debug("Quote %s: %.4f (%+.2f%%)", symbol, price, change_percent)
        return Quote(
            symbol=symbol,
            price=price,
            change=change,
            change_percent=change_percent,
            previous_close=max(previous_close, 0.0),
        )
