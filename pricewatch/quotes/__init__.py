"""Quote providers for PriceWatch."""

from pricewatch.quotes.base import BaseQuoteProvider, Quote
from pricewatch.quotes.finnhub import FinnhubQuoteProvider
from pricewatch.quotes.static import StaticQuoteProvider

__all__ = [
    "BaseQuoteProvider",
    "FinnhubQuoteProvider",
    "Quote",
    "StaticQuoteProvider",
]
