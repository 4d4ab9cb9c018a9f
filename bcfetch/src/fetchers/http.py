"""Generic HTTP fetcher backing the http-get and http-post operations.

Both operations return the raw response body as text; any structure is
extracted afterwards by the post-processing pipeline (e.g. ``json:data.price``).
"""

import logging
from typing import Any

from .base import BaseFetcher, register_fetcher

logger = logging.getLogger(__name__)


@register_fetcher
class HttpFetcher(BaseFetcher):
    """Plain GET/POST returning the response body."""

    name = "http"

    async def get_text(self, url: str) -> str:
        """GET ``url`` and return the body.

        :param url: Request URL.
        :returns: Response body text.
        :raises FetcherError: On network errors or non-2xx status.
        """
        response = await self._get(url)
        logger.debug(f"[http] GET {url} -> {response.status_code}")
        return response.text

    async def post_json(self, url: str, body: Any) -> str:
        """POST ``body`` as JSON to ``url`` and return the body.

        :param url: Request URL.
        :param body: JSON-serializable request body.
        :returns: Response body text.
        :raises FetcherError: On network errors or non-2xx status.
        """
        response = await self._post(
            url, json=body, headers={"Content-Type": "application/json"}
        )
        logger.debug(f"[http] POST {url} -> {response.status_code}")
        return response.text
