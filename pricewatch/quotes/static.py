"""In-memory quote provider for paper runs and tests."""

import threading
from typing import Mapping, Optional

from pricewatch.errors import QuoteUnavailableError
from pricewatch.quotes.base import BaseQuoteProvider, Quote


class StaticQuoteProvider(BaseQuoteProvider):
    """Serves quotes from a fixed price table.

    Prices can be changed between cycles with :meth:`set_price`. Every
    requested symbol is recorded in :attr:`calls`.
    """

    def __init__(
        self,
        prices: Optional[Mapping[str, float]] = None,
        change_percents: Optional[Mapping[str, float]] = None,
    ):
        """Initialize the provider.

        Args:
            prices: Mapping of symbol to current price.
            change_percents: Optional mapping of symbol to day change percent.
        """
        self._prices = {k.upper(): float(v) for k, v in (prices or {}).items()}
        self._change_percents = {
            k.upper(): float(v) for k, v in (change_percents or {}).items()
        }
        self._lock = threading.Lock()
        self.calls: list[str] = []

    def set_price(self, symbol: str, price: float, change_percent: float = 0.0) -> None:
        """Set the price served for a symbol."""
        with self._lock:
            self._prices[symbol.upper()] = float(price)
            self._change_percents[symbol.upper()] = float(change_percent)

    def get_quote(self, symbol: str) -> Quote:
        """Get the configured quote for a symbol."""
        symbol = symbol.upper()
        with self._lock:
            self.calls.append(symbol)
            price = self._prices.get(symbol)
            change_percent = self._change_percents.get(symbol, 0.0)

        if price is None or price <= 0:
            raise QuoteUnavailableError(symbol, "No price data")

        previous_close = price / (1 + change_percent / 100) if change_percent > -100 else 0.0
        return Quote(
            symbol=symbol,
            price=price,
            change=round(price - previous_close, 4),
            change_percent=change_percent,
            previous_close=round(previous_close, 4),
        )
