"""OperationDispatcher: concurrent execution of an operation batch.

Architecture:
    - Validates the whole batch before any operation starts
    - Routes each operation to its resolver by kind
    - Runs all operations concurrently on the event loop
    - Post-processes each value through its pipeline
    - Returns results in input order (or keyed by name in keyed mode)

A batch is all-or-nothing: the first operation error rejects the batch and
sibling results are discarded. Pipeline failures are the exception; they are
logged and the untransformed value is kept unless ``strict_postprocess`` is
set.

.. code-block:: python

    >>> dispatcher = OperationDispatcher()
    >>> await dispatcher.execute([
    ...     {"kind": "binance", "params": {"symbol": "BTCUSDT"}, "postprocess": "toNumber"},
    ...     {"kind": "balanceOf", "params": {"chainId": "BTC", "address": "bc1q..."}},
    ... ])
    [67250.01, '0.00120000']
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypedDict

from .AmmPriceResolver import AmmPriceResolver
from .BalanceResolver import BalanceResolver, chain_param, require_address
from .ChainClient import ChainRegistry
from .errors import (
    InvalidBatch,
    InvalidOperation,
    InvalidParams,
    ResolutionFailed,
    UnsupportedOperationKind,
)
from .fetchers import BinanceFetcher, BlockstreamFetcher, FetcherError, HttpFetcher, get_fetcher
from .Operation import XPATH_KIND, Operation, OperationKind, raw_kind
from .Pipeline import apply as apply_postprocess

logger = logging.getLogger(__name__)

_HEX_DATA_RE = re.compile(r"(?:[0-9a-fA-F]{2})*")


class CallResult(TypedDict):
    """Result of a raw ``call`` operation.

    :ivar contract: Called contract address.
    :ivar chainId: Chain id the call ran on.
    :ivar callData: ``0x``-prefixed call data sent.
    :ivar rawResult: ``0x``-prefixed raw return data.
    """

    contract: str
    chainId: Any
    callData: str
    rawResult: str


def normalize_call_data(data: Any) -> str:
    """Validate hex call data and return it ``0x``-prefixed.

    :raises InvalidParams: If data is empty or not an even-length hex string.
    """
    if not isinstance(data, str):
        raise InvalidParams(f"call data must be a hex string, got {data!r}")
    body = data[2:] if data[:2].lower() == "0x" else data
    if not body:
        raise InvalidParams("call data must not be empty")
    if not _HEX_DATA_RE.fullmatch(body):
        raise InvalidParams(f"call data is not valid hex: {data!r}")
    return "0x" + body


class OperationDispatcher:
    """Executes operation batches concurrently.

    :ivar chains: Chain registry shared by on-chain resolvers.
    :ivar keyed: Require ``name`` on every operation and return
        ``[{name: value}, ...]`` instead of positional values.
    :ivar strict_postprocess: Propagate pipeline failures instead of
        returning the untransformed value.
    """

    def __init__(
        self,
        chains: ChainRegistry | None = None,
        *,
        keyed: bool = False,
        strict_postprocess: bool = False,
        http: HttpFetcher | None = None,
        binance: BinanceFetcher | None = None,
        ledger: BlockstreamFetcher | None = None,
        fetch_timeout: float | None = None,
    ) -> None:
        """Initialize the dispatcher.

        :param chains: Chain registry (default: built from RPC URL config).
        :param keyed: Enable keyed mode.
        :param strict_postprocess: Make pipeline failures fatal.
        :param http: HTTP collaborator for http-get/http-post.
        :param binance: Binance ticker collaborator.
        :param ledger: Bitcoin ledger-index collaborator.
        :param fetch_timeout: Timeout for default HTTP collaborators.
        """
        self.chains = chains or ChainRegistry.from_rpc_urls()
        self.keyed = keyed
        self.strict_postprocess = strict_postprocess
        self.http = http or get_fetcher("http", timeout=fetch_timeout)
        self.binance = binance or get_fetcher("binance", timeout=fetch_timeout)
        self.balances = BalanceResolver(
            self.chains, ledger or get_fetcher("blockstream", timeout=fetch_timeout)
        )
        self.lp_prices = AmmPriceResolver(self.chains)

        self._resolvers: dict[
            OperationKind, Callable[[Mapping[str, Any]], Awaitable[Any]]
        ] = {
            OperationKind.HTTP_GET: self._http_get,
            OperationKind.HTTP_POST: self._http_post,
            OperationKind.BALANCE_OF: self.balances.resolve,
            OperationKind.BINANCE: self._binance,
            OperationKind.LP_PRICE: self.lp_prices.resolve,
            OperationKind.CALL: self._call,
        }

    async def execute(self, batch: Any) -> list[Any]:
        """Execute a batch of operations.

        :param batch: List of raw operation mappings.
        :returns: Values in input order, or ``[{name: value}]`` in keyed mode.
        :raises InvalidBatch: If batch is not a list.
        :raises InvalidOperation: If an operation lacks kind (or name when keyed).
        :raises UnsupportedOperationKind: For xpath operations (before any
            operation starts) or kinds without a resolver.
        :raises BcFetchError: The first per-operation failure.
        """
        if not isinstance(batch, (list, tuple)):
            raise InvalidBatch("input must be a list of operations")

        if any(isinstance(raw, Mapping) and raw_kind(raw) == XPATH_KIND for raw in batch):
            raise UnsupportedOperationKind(
                XPATH_KIND,
                "xpath operations require browser-based scraping and are not supported",
            )

        prepared = [self._prepare(raw) for raw in batch]
        logger.debug(f"Executing batch of {len(prepared)} operations")

        tasks = [self._run(item) for item in prepared]
        values = await asyncio.gather(*tasks)

        if self.keyed:
            return [
                {operation.name: value}
                for operation, value in zip(prepared, values, strict=True)
            ]
        return list(values)

    def _prepare(self, raw: Any) -> Operation | UnsupportedOperationKind:
        """Validate one raw operation.

        In positional mode an unknown kind is returned as the error its task
        will raise; in keyed mode it is an input error.
        """
        try:
            return Operation.from_dict(raw, require_name=self.keyed)
        except UnsupportedOperationKind as e:
            if self.keyed:
                raise InvalidOperation(
                    f"unknown operation kind {e.kind!r}; expected one of "
                    f"{', '.join(OperationKind.values())}"
                ) from e
            return e

    async def _run(self, item: Operation | UnsupportedOperationKind) -> Any:
        if isinstance(item, UnsupportedOperationKind):
            raise item
        value = await self._resolvers[item.kind](item.params)
        if item.postprocess is not None:
            value = apply_postprocess(
                value, item.postprocess, strict=self.strict_postprocess
            )
        return value

    async def _http_get(self, params: Mapping[str, Any]) -> str:
        url = params.get("url")
        if not url:
            raise InvalidParams('http-get requires a "url" parameter')
        if not isinstance(url, str):
            raise InvalidParams(f"http-get url must be a string, got {url!r}")
        try:
            return await self.http.get_text(url)
        except FetcherError as e:
            raise ResolutionFailed("send GET request", url, e) from e

    async def _http_post(self, params: Mapping[str, Any]) -> str:
        url = params.get("url")
        body = params.get("body")
        if not url or body is None:
            raise InvalidParams('http-post requires "url" and "body" parameters')
        if not isinstance(url, str):
            raise InvalidParams(f"http-post url must be a string, got {url!r}")
        try:
            return await self.http.post_json(url, body)
        except FetcherError as e:
            raise ResolutionFailed("send POST request", url, e) from e

    async def _binance(self, params: Mapping[str, Any]) -> str:
        symbol = params.get("symbol")
        if not symbol:
            raise InvalidParams('binance requires a "symbol" parameter')
        try:
            return await self.binance.fetch_price(symbol)
        except FetcherError as e:
            raise ResolutionFailed("fetch binance price", symbol, e) from e

    async def _call(self, params: Mapping[str, Any]) -> CallResult:
        chain_id = chain_param(params)
        if not chain_id or not params.get("contract") or not params.get("data"):
            raise InvalidParams('call requires "chainId", "contract" and "data" parameters')

        client = self.chains.get(chain_id)
        contract = require_address(params, "contract", "call")
        data = normalize_call_data(params["data"])

        try:
            raw_result = await client.call(contract, data)
        except Exception as e:
            raise ResolutionFailed(
                "call contract", f"contract {contract} on chain {chain_id}", e
            ) from e

        return CallResult(
            contract=contract,
            chainId=chain_id,
            callData=data,
            rawResult=raw_result,
        )
