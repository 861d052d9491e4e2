"""
Lookup capability consumed by the resolution engine.

The engine never reads files or talks to the network itself. It asks a
LookupService for nested tables by id and for rules content by kind and id.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional, Protocol
import asyncio
import logging

from rolltables.tables.errors import LookupFailureError
from rolltables.tables.table_types import ContentItem, EntryKind, RollTable

if TYPE_CHECKING:
    from rolltables.storage.table_store import TableStore


logger = logging.getLogger(__name__)


class ContentSource(Protocol):
    """Provider of rules content, e.g. the D&D 5e API client."""

    async def get_content(self, kind: EntryKind, content_id: str) -> ContentItem:
        ...


class LookupService(ABC):
    """
    Tables by id/name and rules content by kind + id.

    Implementations raise TableNotFoundError for unknown tables and
    LookupFailureError when content cannot be fetched.
    """

    @abstractmethod
    async def table(self, table_id: str) -> RollTable:
        """Fetch a table by id."""

    @abstractmethod
    async def table_by_name(self, name: str) -> RollTable:
        """Fetch a table by display name."""

    @abstractmethod
    async def content(self, kind: EntryKind, content_id: str) -> ContentItem:
        """Fetch a rules-content item."""


class StoreLookupService(LookupService):
    """
    LookupService backed by a TableStore and a content source.

    Store reads run in a worker thread so the event loop is not blocked
    by file I/O.
    """

    def __init__(self, store: "TableStore", content_source: Optional[ContentSource] = None):
        self._store = store
        self._content_source = content_source

    async def table(self, table_id: str) -> RollTable:
        logger.debug(f"Loading nested table {table_id}")
        return await asyncio.to_thread(self._store.get_table, table_id)

    async def table_by_name(self, name: str) -> RollTable:
        return await asyncio.to_thread(self._store.get_table_by_name, name)

    async def content(self, kind: EntryKind, content_id: str) -> ContentItem:
        if self._content_source is None:
            raise LookupFailureError(kind.value, content_id, "no content source configured")
        return await self._content_source.get_content(kind, content_id)
