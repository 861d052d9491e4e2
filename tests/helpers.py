"""
Test helpers for the roll table test suite.

Provides deterministic stand-ins for the engine's collaborators:
- FixedRandom, a RandomSource replaying preset values
- StubLookup, an in-memory LookupService
- Builders for tables and raw table files
"""

import json
from pathlib import Path
from typing import Optional

from rolltables.tables.errors import LookupFailureError, TableNotFoundError
from rolltables.tables.lookup import LookupService
from rolltables.tables.table_types import (
    ContentItem,
    EntryKind,
    RollTable,
    TableEntry,
)


class FixedRandom:
    """RandomSource that replays a list of values."""

    def __init__(self, *values: int):
        self.values = list(values)
        self.calls: list[tuple[int, int]] = []

    def randint(self, a: int, b: int) -> int:
        self.calls.append((a, b))
        return self.values.pop(0)


class StubLookup(LookupService):
    """In-memory LookupService for engine tests."""

    def __init__(
        self,
        tables: Optional[list[RollTable]] = None,
        content: Optional[dict[tuple[EntryKind, str], ContentItem]] = None,
    ):
        self.tables = {t.table_id: t for t in tables or []}
        self.content_items = dict(content or {})
        self.table_requests: list[str] = []
        self.content_requests: list[tuple[EntryKind, str]] = []

    def add_table(self, table: RollTable) -> None:
        self.tables[table.table_id] = table

    async def table(self, table_id: str) -> RollTable:
        self.table_requests.append(table_id)
        if table_id not in self.tables:
            raise TableNotFoundError(table_id=table_id)
        return self.tables[table_id]

    async def table_by_name(self, name: str) -> RollTable:
        for table in self.tables.values():
            if table.name == name:
                return table
        raise TableNotFoundError(name=name)

    async def content(self, kind: EntryKind, content_id: str) -> ContentItem:
        self.content_requests.append((kind, content_id))
        item = self.content_items.get((kind, content_id))
        if item is None:
            raise LookupFailureError(kind.value, content_id, "Not Found", status_code=404)
        return item


def make_table(
    table_id: str,
    name: str,
    entries: list[TableEntry],
    formula: str = "1d20",
) -> RollTable:
    """Build a table with the given entries."""
    return RollTable(table_id=table_id, name=name, formula=formula, results=entries)


def table_document(table_id: str, name: str, results: list[dict], formula: str = "1d20") -> dict:
    """Build a raw stored table document."""
    return {
        "_id": table_id,
        "name": name,
        "description": "",
        "formula": formula,
        "results": results,
        "replacement": True,
        "displayRoll": True,
    }


def write_table_file(directory: Path, filename: str, data) -> Path:
    """Write a raw JSON document into a directory."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path
