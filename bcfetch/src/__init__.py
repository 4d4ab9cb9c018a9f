"""
bcfetch - concurrent batch fetching of off-chain and on-chain values

This module provides:
- OperationDispatcher: Concurrent batch execution with ordered results
- BalanceResolver: EVM token and Bitcoin address balances
- AmmPriceResolver: v2 reserve and v3 sqrtPriceX96 pool prices
- Pipeline: Post-processing mini-language (json:, object:, toNumber, arithmetic)
- fixed_point: Exact integer ratio to decimal string conversion
- fetchers: HTTP collaborators (generic, Binance, Blockstream)
"""

from .AmmPriceResolver import AmmPriceResolver
from .BalanceResolver import BalanceResolver
from .ChainClient import DEFAULT_RPC_URLS, UTXO_CHAIN_ID, ChainClient, ChainRegistry
from .errors import (
    BcFetchError,
    InvalidBatch,
    InvalidOperation,
    InvalidParams,
    PipelineError,
    ResolutionFailed,
    UnsupportedChain,
    UnsupportedOperationKind,
)
from .fixed_point import format_fixed, format_units, ratio_to_decimal_string
from .Operation import Operation, OperationKind
from .OperationDispatcher import CallResult, OperationDispatcher
from .Pipeline import Pipeline, apply

__all__ = [
    "AmmPriceResolver",
    "BalanceResolver",
    "BcFetchError",
    "CallResult",
    "ChainClient",
    "ChainRegistry",
    "DEFAULT_RPC_URLS",
    "InvalidBatch",
    "InvalidOperation",
    "InvalidParams",
    "Operation",
    "OperationDispatcher",
    "OperationKind",
    "Pipeline",
    "PipelineError",
    "ResolutionFailed",
    "UTXO_CHAIN_ID",
    "UnsupportedChain",
    "UnsupportedOperationKind",
    "apply",
    "format_fixed",
    "format_units",
    "ratio_to_decimal_string",
]
