"""PriceWatch - threshold price alerts for tracked instruments."""

__version__ = "0.1.0"
