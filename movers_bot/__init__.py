"""Benzinga Pro Movers scraper."""

__version__ = "1.0.0"
