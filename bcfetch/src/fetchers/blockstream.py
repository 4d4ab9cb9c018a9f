"""Blockstream Esplora fetcher for Bitcoin address balances.

Endpoint: https://blockstream.info/api/address/<address>
All amounts are integers in satoshi.
"""

import logging
from dataclasses import dataclass

from .base import BaseFetcher, FetcherError, register_fetcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AddressStats:
    """Funded and spent totals of an address, in satoshi.

    :ivar chain_funded: Confirmed funded output sum.
    :ivar chain_spent: Confirmed spent output sum.
    :ivar mempool_funded: Unconfirmed funded output sum.
    :ivar mempool_spent: Unconfirmed spent output sum.
    """

    chain_funded: int
    chain_spent: int
    mempool_funded: int = 0
    mempool_spent: int = 0

    @property
    def balance(self) -> int:
        """Confirmed plus unconfirmed balance in satoshi."""
        return (self.chain_funded - self.chain_spent) + (
            self.mempool_funded - self.mempool_spent
        )


@register_fetcher
class BlockstreamFetcher(BaseFetcher):
    """Address statistics from the Esplora ledger index."""

    name = "blockstream"
    BASE_URL = "https://blockstream.info/api"

    async def fetch_address_stats(self, address: str) -> AddressStats:
        """Fetch funded/spent totals for a Bitcoin address.

        :param address: Bitcoin address.
        :returns: AddressStats for confirmed and mempool states.
        :raises FetcherError: On request failure or malformed response.
        """
        response = await self._get(f"{self.BASE_URL}/address/{address}")
        try:
            data = response.json()
            chain = data["chain_stats"]
            mempool = data.get("mempool_stats") or {}
            stats = AddressStats(
                chain_funded=int(chain["funded_txo_sum"]),
                chain_spent=int(chain["spent_txo_sum"]),
                mempool_funded=int(mempool.get("funded_txo_sum", 0)),
                mempool_spent=int(mempool.get("spent_txo_sum", 0)),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise FetcherError(f"Malformed address stats for {address}: {e}") from e
        logger.debug(f"[blockstream] {address} balance = {stats.balance} sat")
        return stats
