"""AmmPriceResolver: token-pair prices from AMM pool state.

Two pool models are supported, selected by the ``version`` parameter:

    v2 (default)  proportional reserves from ``getReserves()``. Reserves are
                  scaled to human units by each token's decimals and divided
                  as floats; the result is written positionally.
    v3            tick-based pools exposing ``sqrtPriceX96`` in ``slot0()``.
                  The price is kept as an exact integer ratio and rendered
                  at 18 fractional digits; ``sqrtPriceX96`` is never
                  converted to a float.

Without ``reverse`` both models return the price of token1 expressed in
token0 (``reserve0 / reserve1``); with ``reverse`` the inverse.

.. code-block:: python

    >>> resolver = AmmPriceResolver(ChainRegistry.from_rpc_urls())
    >>> await resolver.resolve({"chainId": 1, "contract": POOL, "version": 3, "reverse": True})
    '3021.447218118254718126'
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .BalanceResolver import chain_param, require_address
from .ChainClient import V2_PAIR_ABI, V3_POOL_ABI, ChainClient, ChainRegistry
from .errors import InvalidParams, ResolutionFailed
from .fixed_point import PRICE_PRECISION, format_float, ratio_to_decimal_string

logger = logging.getLogger(__name__)

Q192 = 2**192

_VERSIONS = {2: 2, 3: 3, "2": 2, "3": 3, "v2": 2, "v3": 3}


def parse_version(value: Any) -> int:
    """Return the pool model (2 or 3); None selects 2.

    :raises InvalidParams: For any other value.
    """
    if value is None:
        return 2
    key = value.lower() if isinstance(value, str) else value
    if not isinstance(key, (int, str)) or isinstance(key, bool) or key not in _VERSIONS:
        raise InvalidParams(f"lpPrice version must be 2 or 3, got {value!r}")
    return _VERSIONS[key]


def parse_reverse(value: Any) -> bool:
    """Interpret the ``reverse`` flag; strings "true"/"1" count as true."""
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


@dataclass(frozen=True)
class ReserveQuote:
    """Proportional-reserve pool state."""

    reserve0: int
    reserve1: int
    decimals0: int
    decimals1: int

    def price(self, reverse: bool = False) -> str:
        adjusted0 = self.reserve0 / 10**self.decimals0
        adjusted1 = self.reserve1 / 10**self.decimals1
        if reverse:
            return format_float(adjusted1 / adjusted0)
        return format_float(adjusted0 / adjusted1)


@dataclass(frozen=True)
class SqrtPriceQuote:
    """Tick-based pool state."""

    sqrt_price_x96: int
    decimals0: int
    decimals1: int

    def ratio(self) -> tuple[int, int]:
        """Exact token1-per-token0 price as (numerator, denominator)."""
        numerator = self.sqrt_price_x96 * self.sqrt_price_x96
        denominator = Q192
        if self.decimals0 > self.decimals1:
            numerator *= 10 ** (self.decimals0 - self.decimals1)
        elif self.decimals0 < self.decimals1:
            denominator *= 10 ** (self.decimals1 - self.decimals0)
        return numerator, denominator

    def price(self, reverse: bool = False) -> str:
        numerator, denominator = self.ratio()
        if reverse:
            return ratio_to_decimal_string(numerator, denominator, PRICE_PRECISION)
        return ratio_to_decimal_string(denominator, numerator, PRICE_PRECISION)


PoolQuote = ReserveQuote | SqrtPriceQuote


class AmmPriceResolver:
    """Resolves ``lpPrice`` operations.

    :ivar chains: Chain registry for pool reads.
    """

    def __init__(self, chains: ChainRegistry) -> None:
        self.chains = chains

    async def resolve(self, params: Mapping[str, Any]) -> str:
        """Compute the pool price.

        :param params: ``chainId``, ``contract``, optional ``reverse`` and
            ``version`` (2 or 3).
        :returns: Price as a decimal string.
        :raises InvalidParams: If a parameter is missing or invalid.
        :raises UnsupportedChain: If the chain is not configured.
        :raises ResolutionFailed: If pool or token reads fail.
        """
        chain_id = chain_param(params)
        if not chain_id or not params.get("contract"):
            raise InvalidParams('lpPrice requires "chainId" and "contract" parameters')

        version = parse_version(params.get("version"))
        reverse = parse_reverse(params.get("reverse"))
        client = self.chains.get(chain_id)
        contract = require_address(params, "contract", "lpPrice")

        try:
            if version == 3:
                quote: PoolQuote = await self._sqrt_price_quote(client, contract)
            else:
                quote = await self._reserve_quote(client, contract)
            price = quote.price(reverse)
        except Exception as e:
            raise ResolutionFailed(
                "compute lp price", f"pool {contract} on chain {chain_id}", e
            ) from e

        logger.debug(f"[lpPrice] v{version} {contract} on {chain_id}: {price}")
        return price

    async def _token_decimals(
        self, client: ChainClient, token0: str, token1: str
    ) -> tuple[int, int]:
        decimals0, decimals1 = await asyncio.gather(
            client.decimals(token0), client.decimals(token1)
        )
        return decimals0, decimals1

    async def _reserve_quote(self, client: ChainClient, pair: str) -> ReserveQuote:
        (reserve0, reserve1), (token0, token1) = await asyncio.gather(
            client.get_reserves(pair),
            client.pool_tokens(pair, V2_PAIR_ABI),
        )
        decimals0, decimals1 = await self._token_decimals(client, token0, token1)
        if reserve0 == 0 or reserve1 == 0:
            raise ValueError("pool has an empty reserve")
        return ReserveQuote(reserve0, reserve1, decimals0, decimals1)

    async def _sqrt_price_quote(self, client: ChainClient, pool: str) -> SqrtPriceQuote:
        sqrt_price_x96, (token0, token1) = await asyncio.gather(
            client.slot0(pool),
            client.pool_tokens(pool, V3_POOL_ABI),
        )
        if sqrt_price_x96 == 0:
            raise ValueError("pool is not initialized (sqrtPriceX96 is 0)")
        decimals0, decimals1 = await self._token_decimals(client, token0, token1)
        return SqrtPriceQuote(sqrt_price_x96, decimals0, decimals1)
