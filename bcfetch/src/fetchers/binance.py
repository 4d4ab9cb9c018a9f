"""Binance ticker fetcher.

Endpoint: https://api.binance.com/api/v3/ticker/price
Rate Limit: High (no key required for public endpoints)
"""

import logging

from .base import BaseFetcher, FetcherError, register_fetcher

logger = logging.getLogger(__name__)


@register_fetcher
class BinanceFetcher(BaseFetcher):
    """Latest price for a Binance symbol such as ``BTCUSDT``."""

    name = "binance"
    BASE_URL = "https://api.binance.com/api/v3"

    async def fetch_price(self, symbol: str) -> str:
        """Fetch the ticker price for a symbol.

        The price is returned as Binance sends it (a decimal string) so no
        precision is lost before post-processing.

        :param symbol: Binance symbol (e.g., "BTCUSDT").
        :returns: Price string, e.g. ``"67250.01000000"``.
        :raises FetcherError: On request failure or a response without price.
        """
        response = await self._get(
            f"{self.BASE_URL}/ticker/price", params={"symbol": symbol}
        )
        try:
            data = response.json()
            price = data["price"]
        except (KeyError, TypeError, ValueError) as e:
            raise FetcherError(f"No price for {symbol} in response: {response.text[:200]}") from e
        logger.debug(f"[binance] {symbol} = {price}")
        return str(price)
