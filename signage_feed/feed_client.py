"""
Async GTFS-Realtime feed client.

Thin wrapper around httpx. Downloads the raw protobuf payload.
Raises FeedError on failures.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class FeedError(Exception):
    """Raised when the realtime feed cannot be fetched."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class FeedClient:
    """Async client for a single GTFS-Realtime feed URL."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        feed_url: str,
        timeout: float = 10.0,
    ) -> None:
        self._http = http_client
        self._feed_url = feed_url
        self._timeout = timeout

    @property
    def feed_url(self) -> str:
        return self._feed_url

    async def fetch_feed(self) -> bytes:
        """
        Fetch the raw feed payload.

        Returns the response body as bytes.
        Raises FeedError on HTTP or connection failures.
        """
        try:
            response = await self._http.get(self._feed_url, timeout=self._timeout)
        except httpx.HTTPError as exc:
            logger.error("Feed request failed: %s %s -> %s", "GET", self._feed_url, exc)
            raise FeedError(f"Failed to fetch feed: {exc}") from exc

        if response.status_code != 200:
            raise FeedError(
                f"Feed returned {response.status_code}",
                status_code=response.status_code,
            )

        logger.debug("Fetched %d bytes from %s", len(response.content), self._feed_url)
        return response.content
