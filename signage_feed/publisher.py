"""
Async catalog publisher.

Pushes a catalog item mapping to the signage catalog API:

    POST {base_url}/catalog/items/{group}
    X-API-KEY: <key>
    {"data": {"queens_1": {"minutesAway": "2 min"}, ...}}

One request per call, no retries. Raises CatalogError subclasses on failure.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from signage_feed.formatter import catalog_payload
from signage_feed.models import CatalogItem, PublishResult

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Raised when a catalog push fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RemoteRejection(CatalogError):
    """The catalog API answered with a non-success status."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(
            f"Catalog API error ({status_code}): {detail}", status_code=status_code
        )
        self.detail = detail


class TransportFailure(CatalogError):
    """No response was received (timeout, DNS, connection reset)."""


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class CatalogPublisher:
    """Async client for the catalog items endpoint."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        api_key: Optional[str],
        default_group: str,
        timeout: float = 10.0,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._default_group = default_group
        self._timeout = timeout

    def url_for(self, group: Optional[str] = None) -> str:
        return f"{self._base_url}/catalog/items/{group or self._default_group}"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["X-API-KEY"] = self._api_key
        return headers

    async def publish(
        self, items: dict[str, CatalogItem], group: Optional[str] = None
    ) -> PublishResult:
        """
        Push items to the catalog group (default: the configured group).

        Returns a PublishResult on any 2xx response.
        Raises RemoteRejection on a non-2xx status, TransportFailure when
        no response arrives.
        """
        url = self.url_for(group)
        logger.info("Publishing %d items to %s: %s", len(items), url, ", ".join(items))

        try:
            response = await self._http.post(
                url,
                json={"data": catalog_payload(items)},
                headers=self._headers(),
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.error("Catalog request failed: %s %s -> %s", "POST", url, exc)
            raise TransportFailure(f"Failed to push to catalog: {exc}") from exc

        body = _response_body(response)
        if not response.is_success:
            detail = body.get("message") if isinstance(body, dict) else None
            if not detail:
                detail = body if isinstance(body, str) and body else response.reason_phrase
            logger.error(
                "Catalog API rejected push: status=%d details=%s",
                response.status_code,
                body,
            )
            raise RemoteRejection(response.status_code, str(detail))

        return PublishResult(
            success=True,
            items_updated=len(items),
            timestamp=datetime.now(timezone.utc),
            response=body,
        )
