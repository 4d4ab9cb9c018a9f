#!/usr/bin/env python3
"""bcfetch command line.

Executes a batch of fetch operations read as a JSON array and prints the
JSON array of results in the same order.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any

from .src.ChainClient import ChainRegistry
from .src.errors import BcFetchError
from .src.fetchers import BaseFetcher
from .src.OperationDispatcher import OperationDispatcher

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def env_flag(name: str) -> bool:
    """Read a boolean environment variable ("1", "true", "yes")."""
    return (os.environ.get(name) or "").strip().lower() in ("1", "true", "yes")


def load_batch(path: str) -> Any:
    """Load the operation batch from a JSON file, or stdin for ``-``.

    :param path: File path or ``-``.
    :returns: Parsed JSON value.
    """
    if path == "-":
        return json.load(sys.stdin)
    with open(path, "r") as file:
        return json.load(file)


async def run(batch: Any, dispatcher: OperationDispatcher) -> list[Any]:
    """Execute the batch and release the shared HTTP client."""
    try:
        return await dispatcher.execute(batch)
    finally:
        await BaseFetcher.close_shared_client()


def main() -> None:
    """Main entry point for the bcfetch CLI."""
    parser = argparse.ArgumentParser(
        description="bcfetch: concurrent batch fetching of HTTP, price and on-chain values",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Operation kinds:
  http-get, http-post, balanceOf, binance, lpPrice, call

Examples:
  # Run a batch file
  python -m bcfetch.main --batch ops.json

  # Keyed mode, batch from stdin
  echo '[{"name": "btc", "kind": "binance", "params": {"symbol": "BTCUSDT"}}]' \\
      | python -m bcfetch.main --batch - --keyed

Environment variables (CLI args take precedence):
  BATCH_FILE, KEYED, STRICT_POSTPROCESS, FETCH_TIMEOUT,
  RPC_URL_<chainId> (e.g. RPC_URL_1, RPC_URL_56, RPC_URL_137)
""",
    )

    parser.add_argument(
        "--batch",
        type=str,
        help="Path to a JSON array of operations, or - for stdin",
        default=os.environ.get("BATCH_FILE") or "-",
    )

    parser.add_argument(
        "--keyed",
        action="store_true",
        help="Require a name on every operation and return [{name: value}] records",
        default=env_flag("KEYED"),
    )

    parser.add_argument(
        "--strict-postprocess",
        dest="strict_postprocess",
        action="store_true",
        help="Fail the batch when a postprocess step fails instead of returning the raw value",
        default=env_flag("STRICT_POSTPROCESS"),
    )

    parser.add_argument(
        "--fetch-timeout",
        dest="fetch_timeout",
        type=float,
        help="Timeout for HTTP requests in seconds (default: 10.0)",
        default=float(os.environ.get("FETCH_TIMEOUT") or "10.0"),
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.fetch_timeout <= 0:
        parser.error("--fetch-timeout must be positive")

    try:
        batch = load_batch(args.batch)
    except (OSError, json.JSONDecodeError) as e:
        parser.error(f"Cannot read batch {args.batch}: {e}")

    chains = ChainRegistry.from_rpc_urls()
    logger.debug(f"Chains: {', '.join(str(c) for c in chains.chain_ids)}")

    dispatcher = OperationDispatcher(
        chains,
        keyed=args.keyed,
        strict_postprocess=args.strict_postprocess,
        fetch_timeout=args.fetch_timeout,
    )

    try:
        results = asyncio.run(run(batch, dispatcher))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(130)
    except BcFetchError as e:
        logger.error(f"Batch failed: {e}")
        sys.exit(1)

    json.dump(results, sys.stdout, indent=2)
    sys.stdout.write("\n")


if __name__ == "__main__":
    main()
