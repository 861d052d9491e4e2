"""
D&D 5e API client.

Fetches spells, equipment and magic items from the public D&D 5e rules
API (https://www.dnd5eapi.co) and serves them to the resolution engine
as ContentItem values.

Usage:
    async with Dnd5eApiClient() as client:
        item = await client.get_content(EntryKind.SPELL, "fireball")
        print(item.name, item.description_text())
"""

import logging
from typing import Any, Optional

import httpx

from rolltables.tables.errors import LookupFailureError
from rolltables.tables.table_types import ContentItem, EntryKind


logger = logging.getLogger(__name__)


DEFAULT_BASE_URL = "https://www.dnd5eapi.co/api"
DEFAULT_TIMEOUT = 10.0

ENDPOINTS = {
    EntryKind.SPELL: "spells",
    EntryKind.EQUIPMENT: "equipment",
    EntryKind.MAGIC_ITEM: "magic-items",
}


def endpoint_for(kind: EntryKind) -> str:
    """
    API path segment for a content kind.

    Raises:
        ValueError: If the kind is not served by the API
    """
    try:
        return ENDPOINTS[EntryKind(kind)]
    except (KeyError, ValueError):
        raise ValueError(f"No D&D 5e API endpoint for content kind {kind!r}") from None


class Dnd5eApiClient:
    """
    Async client for the D&D 5e rules API.

    Successful content lookups are cached per client. Failed requests are
    not retried.

    Args:
        base_url: API root, without a trailing slash
        timeout: HTTP request timeout in seconds
        client: Pre-built AsyncClient to use instead of creating one
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client
        self._cache: dict[tuple[EntryKind, str], ContentItem] = {}

    async def __aenter__(self) -> "Dnd5eApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def _get_json(self, kind: EntryKind, content_id: str, url: str) -> Any:
        client = await self._get_client()
        logger.debug(f"GET {url}")
        try:
            response = await client.get(url)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"D&D 5e API returned {status} for {url}")
            raise LookupFailureError(
                kind.value,
                content_id,
                e.response.reason_phrase or "request failed",
                status_code=status,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"D&D 5e API request to {url} failed: {e}")
            raise LookupFailureError(kind.value, content_id, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise LookupFailureError(kind.value, content_id, f"invalid JSON: {e}") from e

    async def get_content(self, kind: EntryKind, content_id: str) -> ContentItem:
        """
        Fetch one spell, equipment or magic item by its API index.

        Raises:
            ValueError: If the kind is not a content kind
            LookupFailureError: On transport errors or non-success status
        """
        kind = EntryKind(kind)
        endpoint = endpoint_for(kind)

        cached = self._cache.get((kind, content_id))
        if cached is not None:
            return cached

        data = await self._get_json(kind, content_id, f"{self.base_url}/{endpoint}/{content_id}")
        item = _parse_content(data, content_id)
        self._cache[(kind, content_id)] = item
        return item

    async def list_options(self, kind: EntryKind) -> list[tuple[str, str]]:
        """
        List the (index, name) pairs the API offers for a content kind.

        Raises:
            ValueError: If the kind is not a content kind
            LookupFailureError: On transport errors or non-success status
        """
        kind = EntryKind(kind)
        endpoint = endpoint_for(kind)
        data = await self._get_json(kind, "", f"{self.base_url}/{endpoint}")

        results = data.get("results", []) if isinstance(data, dict) else []
        options = [
            (entry.get("index", ""), entry.get("name", ""))
            for entry in results
            if isinstance(entry, dict)
        ]
        logger.debug(f"Fetched {len(options)} {endpoint} options")
        return options

    def clear_cache(self) -> None:
        """Forget all cached content."""
        self._cache.clear()


def _parse_content(data: Any, content_id: str) -> ContentItem:
    if not isinstance(data, dict):
        data = {}
    desc = data.get("desc")
    if desc is None:
        description = []
    elif isinstance(desc, str):
        description = [desc]
    else:
        description = [str(part) for part in desc]
    return ContentItem(name=data.get("name") or content_id, description=description)
