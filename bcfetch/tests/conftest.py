"""Shared fixtures: mocked chain clients and an in-memory HTTP transport."""

from unittest.mock import MagicMock

import httpx
import pytest

from bcfetch.src.ChainClient import ChainRegistry
from bcfetch.src.fetchers import BaseFetcher

from ._chain_helpers import make_chain_client


@pytest.fixture
def chain_client() -> MagicMock:
    """Mocked client for chain 1."""
    return make_chain_client(1)


@pytest.fixture
def registry(chain_client: MagicMock) -> ChainRegistry:
    """Registry with chains 1 (mocked), 56 and 137."""
    return ChainRegistry(
        {1: chain_client, 56: make_chain_client(56), 137: make_chain_client(137)}
    )


@pytest.fixture
def mock_transport():
    """Route the shared fetcher client through an httpx.MockTransport.

    Usage: ``mock_transport(handler)`` where handler maps a request to a response.
    """

    def install(handler) -> None:
        BaseFetcher._shared_client = httpx.AsyncClient(
            transport=httpx.MockTransport(handler)
        )

    yield install
    BaseFetcher._shared_client = None
