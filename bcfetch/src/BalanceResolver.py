"""BalanceResolver: address balances for EVM tokens and the Bitcoin ledger.

EVM balances are normalised with the token's own decimals and keep full
precision. Bitcoin balances are the funded-minus-spent sum over confirmed
and mempool outputs, rendered with exactly 8 fractional digits.

.. code-block:: python

    >>> resolver = BalanceResolver(ChainRegistry.from_rpc_urls())
    >>> await resolver.resolve({"chainId": 1, "contract": USDC, "address": VITALIK})
    '1234.56'
    >>> await resolver.resolve({"chainId": "BTC", "address": "bc1q..."})
    '0.00120000'
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from web3 import Web3

from .ChainClient import UTXO_CHAIN_ID, ChainRegistry
from .errors import InvalidParams, ResolutionFailed
from .fetchers import BlockstreamFetcher, FetcherError
from .fixed_point import format_fixed, format_units

logger = logging.getLogger(__name__)

# Satoshi per bitcoin.
BTC_DECIMALS = 8


def chain_param(params: Mapping[str, Any]) -> Any:
    """Return the chain id parameter (``chainId`` or legacy ``chainid``)."""
    chain_id = params.get("chainId")
    return params.get("chainid") if chain_id is None else chain_id


def require_address(params: Mapping[str, Any], key: str, operation: str) -> str:
    """Return a hex address parameter, raising InvalidParams if absent or malformed."""
    value = params.get(key)
    if not value:
        raise InvalidParams(f'{operation} requires a "{key}" parameter')
    if not isinstance(value, str) or not Web3.is_address(value):
        raise InvalidParams(f'{operation} "{key}" is not a valid address: {value!r}')
    return value


class BalanceResolver:
    """Resolves ``balanceOf`` operations.

    :ivar chains: Chain registry for EVM reads.
    :ivar ledger: Bitcoin ledger-index collaborator.
    """

    def __init__(
        self,
        chains: ChainRegistry,
        ledger: BlockstreamFetcher | None = None,
    ) -> None:
        self.chains = chains
        self.ledger = ledger or BlockstreamFetcher()

    async def resolve(self, params: Mapping[str, Any]) -> str:
        """Resolve a balance.

        :param params: ``chainId``, ``address`` and, for EVM chains, ``contract``.
        :returns: Human-readable decimal balance string.
        :raises InvalidParams: If a required parameter is missing.
        :raises UnsupportedChain: If the chain is not configured.
        :raises ResolutionFailed: If a collaborator call fails.
        """
        chain_id = chain_param(params)
        address = params.get("address")
        if not chain_id or not address:
            raise InvalidParams('balanceOf requires "chainId" and "address" parameters')

        if chain_id == UTXO_CHAIN_ID:
            return await self._btc_balance(str(address))

        contract = params.get("contract")
        if not contract:
            raise InvalidParams('balanceOf requires a "contract" parameter')

        client = self.chains.get(chain_id)
        contract = require_address(params, "contract", "balanceOf")
        address = require_address(params, "address", "balanceOf")

        try:
            raw_balance, decimals = await asyncio.gather(
                client.balance_of(contract, address),
                client.decimals(contract),
            )
        except Exception as e:
            raise ResolutionFailed(
                "fetch balance", f"contract {contract} on chain {chain_id}", e
            ) from e

        return format_units(raw_balance, decimals)

    async def _btc_balance(self, address: str) -> str:
        try:
            stats = await self.ledger.fetch_address_stats(address)
        except FetcherError as e:
            raise ResolutionFailed("fetch balance", f"BTC address {address}", e) from e
        return format_fixed(stats.balance, BTC_DECIMALS)
