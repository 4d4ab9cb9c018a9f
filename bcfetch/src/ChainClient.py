"""ChainClient: read-only contract access per chain and the chain registry."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Mapping

from web3 import AsyncWeb3, Web3

from .errors import UnsupportedChain

logger = logging.getLogger(__name__)

# Public RPC endpoints per EVM chain id. RPC_URL_<chainId> overrides an entry.
DEFAULT_RPC_URLS: dict[int, str] = {
    1: "https://ethereum.publicnode.com",
    56: "https://bsc-dataseed.binance.org/",
    137: "https://polygon-rpc.com",
}

# Chain id denoting the Bitcoin UTXO ledger.
UTXO_CHAIN_ID = "BTC"

ERC20_ABI = [
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "owner", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "decimals",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
]

_TOKEN_GETTERS = [
    {
        "name": "token0",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "name": "token1",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
]

V2_PAIR_ABI = [
    {
        "name": "getReserves",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "reserve0", "type": "uint112"},
            {"name": "reserve1", "type": "uint112"},
            {"name": "blockTimestampLast", "type": "uint32"},
        ],
    },
    *_TOKEN_GETTERS,
]

V3_POOL_ABI = [
    {
        "name": "slot0",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "sqrtPriceX96", "type": "uint160"},
            {"name": "tick", "type": "int24"},
            {"name": "observationIndex", "type": "uint16"},
            {"name": "observationCardinality", "type": "uint16"},
            {"name": "observationCardinalityNext", "type": "uint16"},
            {"name": "feeProtocol", "type": "uint8"},
            {"name": "unlocked", "type": "bool"},
        ],
    },
    {
        "name": "fee",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint24"}],
    },
    *_TOKEN_GETTERS,
]


def normalize_chain_id(chain_id: object) -> object:
    """Return an int for numeric chain ids ("56" -> 56), else the input."""
    if isinstance(chain_id, bool):
        return chain_id
    if isinstance(chain_id, int):
        return chain_id
    if isinstance(chain_id, str) and chain_id.strip().isdigit():
        return int(chain_id.strip())
    return chain_id


def rpc_urls_from_env(
    defaults: Mapping[int, str] = DEFAULT_RPC_URLS,
    environ: Mapping[str, str] | None = None,
) -> dict[int, str]:
    """Apply ``RPC_URL_<chainId>`` environment overrides to the defaults.

    An override for a chain id absent from the defaults adds that chain.

    :param defaults: Default chain id to RPC URL mapping.
    :param environ: Environment mapping (default: ``os.environ``).
    :returns: Chain id to RPC URL mapping.
    """
    environ = os.environ if environ is None else environ
    urls = dict(defaults)
    prefix = "RPC_URL_"
    for key, value in environ.items():
        if key.startswith(prefix) and value and key[len(prefix):].isdigit():
            urls[int(key[len(prefix):])] = value
    return urls


class ChainClient:
    """Read-only contract calls against one EVM chain.

    :ivar chain_id: EVM chain id.
    :ivar w3: AsyncWeb3 instance connected to the chain.
    """

    def __init__(self, chain_id: int, w3: AsyncWeb3) -> None:
        self.chain_id = chain_id
        self.w3 = w3

    @classmethod
    def from_rpc_url(cls, chain_id: int, rpc_url: str) -> ChainClient:
        """Create a client backed by an async HTTP provider.

        :param chain_id: EVM chain id.
        :param rpc_url: JSON-RPC endpoint.
        """
        return cls(chain_id, AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url)))

    def _contract(self, address: str, abi: list):
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    async def call(self, contract: str, data: str) -> str:
        """Execute a raw ``eth_call``.

        :param contract: Target contract address.
        :param data: ABI-encoded call data, ``0x`` prefixed.
        :returns: Raw return data as a ``0x`` hex string.
        """
        logger.debug(f"[chain {self.chain_id}] eth_call {contract} {data[:10]}")
        result = await self.w3.eth.call(
            {"to": Web3.to_checksum_address(contract), "data": data}
        )
        return Web3.to_hex(result)

    async def balance_of(self, token: str, owner: str) -> int:
        """Return the raw ERC-20 balance of ``owner``."""
        contract = self._contract(token, ERC20_ABI)
        return await contract.functions.balanceOf(
            Web3.to_checksum_address(owner)
        ).call()

    async def decimals(self, token: str) -> int:
        """Return the ERC-20 token decimals."""
        return await self._contract(token, ERC20_ABI).functions.decimals().call()

    async def pool_tokens(self, pool: str, abi: list) -> tuple[str, str]:
        """Return the pool's (token0, token1) addresses."""
        contract = self._contract(pool, abi)
        token0, token1 = await asyncio.gather(
            contract.functions.token0().call(),
            contract.functions.token1().call(),
        )
        return token0, token1

    async def get_reserves(self, pair: str) -> tuple[int, int]:
        """Return the v2 pair's (reserve0, reserve1)."""
        reserves = await self._contract(pair, V2_PAIR_ABI).functions.getReserves().call()
        return reserves[0], reserves[1]

    async def slot0(self, pool: str) -> int:
        """Return the v3 pool's current ``sqrtPriceX96``."""
        state = await self._contract(pool, V3_POOL_ABI).functions.slot0().call()
        return state[0]

    async def fee(self, pool: str) -> int:
        """Return the v3 pool's fee tier in hundredths of a bip."""
        return await self._contract(pool, V3_POOL_ABI).functions.fee().call()


class ChainRegistry:
    """Read-only mapping from chain id to ChainClient.

    .. code-block:: python

        >>> registry = ChainRegistry.from_rpc_urls({1: "https://ethereum.publicnode.com"})
        >>> registry.chain_ids
        [1]
    """

    def __init__(self, clients: Mapping[int, ChainClient]) -> None:
        self._clients = dict(clients)

    @classmethod
    def from_rpc_urls(cls, urls: Mapping[int, str] | None = None) -> ChainRegistry:
        """Build a registry from RPC URLs (default: env-adjusted defaults)."""
        urls = rpc_urls_from_env() if urls is None else urls
        return cls(
            {chain_id: ChainClient.from_rpc_url(chain_id, url) for chain_id, url in urls.items()}
        )

    @property
    def chain_ids(self) -> list[int]:
        """Configured chain ids in ascending order."""
        return sorted(self._clients)

    def get(self, chain_id: object) -> ChainClient:
        """Return the client for ``chain_id``.

        :raises UnsupportedChain: If the chain id is not configured.
        """
        key = normalize_chain_id(chain_id)
        # True == 1 in a dict lookup
        client = None
        if isinstance(key, (int, str)) and not isinstance(key, bool):
            client = self._clients.get(key)
        if client is None:
            raise UnsupportedChain(chain_id, self.chain_ids)
        return client
