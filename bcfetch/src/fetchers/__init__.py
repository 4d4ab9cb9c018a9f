"""
HTTP collaborators used by the operation dispatcher.

Usage:
    from bcfetch.src.fetchers import get_fetcher, get_available_fetchers

    # Get list of available fetchers
    available = get_available_fetchers()
    # ['binance', 'blockstream', 'http']

    # Create a fetcher instance
    fetcher = get_fetcher("binance")
    price = await fetcher.fetch_price("BTCUSDT")
"""

# Import base classes and utilities
from .base import (
    FETCHER_REGISTRY,
    BaseFetcher,
    FetcherError,
    FetcherHTTPError,
    get_available_fetchers,
    get_fetcher,
    register_fetcher,
)

# Import all fetcher implementations to trigger registration
from .binance import BinanceFetcher
from .blockstream import AddressStats, BlockstreamFetcher
from .http import HttpFetcher

__all__ = [
    # Base classes
    "BaseFetcher",
    "FetcherError",
    "FetcherHTTPError",
    # Registry functions
    "register_fetcher",
    "get_fetcher",
    "get_available_fetchers",
    "FETCHER_REGISTRY",
    # Fetcher implementations
    "AddressStats",
    "BinanceFetcher",
    "BlockstreamFetcher",
    "HttpFetcher",
]
