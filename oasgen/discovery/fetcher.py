"""Async HTTP fetching of example bodies and API metadata.

Outbound requests optionally go through a proxy prefix (``fetch.proxy_url``)
and carry a bearer token when one is configured.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from ..utils.config import get_auth_headers, resolve_hostname
from .errors import BodyDecodeError, ExampleFetchError
from .metadata import MetadataSource

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "text/plain"


@dataclass(frozen=True)
class FetchedBody:
    """Body of an example response and its media type."""

    content_type: str
    body: str


def media_type(header: str | None) -> str:
    """Strip parameters from a Content-Type header value."""
    if not header:
        return DEFAULT_CONTENT_TYPE
    return header.split(";")[0].strip() or DEFAULT_CONTENT_TYPE


class ExampleFetcher:
    """Fetches example responses and metadata over httpx.

    Usage::

        async with ExampleFetcher(config) as fetcher:
            meta = await fetcher.fetch_metadata("templates.do")
            body = await fetcher.fetch("https://templates.do/worker")
    """

    def __init__(
        self,
        config: dict[str, Any],
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            config: Loaded oasgen configuration
            client: Optional preconfigured client (closed by the caller)
        """
        self.config = config
        fetch_config = config.get("fetch", {})
        self.proxy_url: str = fetch_config.get("proxy_url") or ""
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers=get_auth_headers(config),
            timeout=fetch_config.get("timeout_seconds", 30),
            follow_redirects=fetch_config.get("follow_redirects", True),
        )

    async def __aenter__(self) -> ExampleFetcher:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()

    def request_url(self, url: str) -> str:
        """Apply the proxy prefix to a target URL."""
        if not self.proxy_url:
            return url
        return self.proxy_url.format(url=url)

    async def _get(self, url: str) -> httpx.Response:
        """GET a URL, raising ExampleFetchError on transport or status failure."""
        target = self.request_url(url)
        logger.debug("Fetching %s", target)

        try:
            response = await self._client.get(target)
        except httpx.TimeoutException as e:
            raise ExampleFetchError(url, "request timed out") from e
        except httpx.RequestError as e:
            raise ExampleFetchError(url, str(e) or type(e).__name__) from e

        if not response.is_success:
            raise ExampleFetchError(
                url,
                f"unexpected status {response.status_code}",
                status_code=response.status_code,
            )
        return response

    async def fetch(self, url: str) -> FetchedBody:
        """Fetch an example response body."""
        response = await self._get(url)
        return FetchedBody(
            content_type=media_type(response.headers.get("content-type")),
            body=response.text,
        )

    async def fetch_metadata(self, hostname: str) -> MetadataSource:
        """Fetch the ``/api`` metadata document of a host.

        Raises:
            ExampleFetchError: If the request fails
            BodyDecodeError: If the response is not JSON
            MetadataError: If the document lacks the expected sections
        """
        host = resolve_hostname(hostname, self.config)
        url = f"https://{host}/api"
        response = await self._get(url)

        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise BodyDecodeError(f"Invalid metadata JSON: {e}", url=url) from e

        logger.info("Loaded metadata for %s", host)
        return MetadataSource.from_dict(data)
