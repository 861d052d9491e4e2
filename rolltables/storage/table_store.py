"""
JSON directory store for roll tables.

Each table is one pretty-printed JSON document named "<_id>.json" inside
a single directory. The directory is always passed in explicitly.

Usage:
    store = TableStore(Path("~/.dnd-roll-tables/json").expanduser())
    store.ensure_directory()

    for table in store.list_tables():
        print(table.name)

    path = store.save_table(store.create_table(name="Loot"))
"""

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from rolltables.tables.errors import InvalidTableDataError, TableNotFoundError
from rolltables.tables.table_types import RollTable


logger = logging.getLogger(__name__)


DEFAULT_TABLE_NAME = "New Roll Table"
DEFAULT_FORMULA = "1d20"


@dataclass
class StoredTable:
    """A table together with the file it was loaded from."""
    path: Path
    table: RollTable


def new_table_id(prefix: str = "roll-table") -> str:
    """Generate a time-based id such as 'roll-table-1700000000000'."""
    return f"{prefix}-{int(time.time() * 1000)}"


def is_safe_table_id(table_id: str) -> bool:
    """True if the id can be used as a file name inside the store directory."""
    return (
        bool(table_id)
        and table_id not in (".", "..")
        and "/" not in table_id
        and "\\" not in table_id
        and "\0" not in table_id
    )


class TableStore:
    """
    Create, read, update and delete roll tables in a directory.

    Index-based operations address the display order returned by
    list_tables(), i.e. tables sorted case-insensitively by name.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def ensure_directory(self) -> Path:
        """Create the store directory if needed and return it."""
        self.directory.mkdir(parents=True, exist_ok=True)
        return self.directory

    def _json_files(self) -> list[Path]:
        if not self.directory.exists():
            return []
        return sorted(p for p in self.directory.glob("*.json") if p.is_file())

    def _read(self, path: Path) -> RollTable:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return RollTable.from_json(data, default_id=path.stem)

    def _write(self, path: Path, table: RollTable) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(table.to_json(), f, indent=2)

    def load_all(self) -> list[StoredTable]:
        """
        Load every readable table in the directory.

        Files that are not valid table documents are logged and skipped.
        """
        stored = []
        for path in self._json_files():
            try:
                stored.append(StoredTable(path=path, table=self._read(path)))
            except (OSError, json.JSONDecodeError, InvalidTableDataError) as e:
                logger.error(f"Error parsing JSON file {path.name}: {e}")
        return stored

    def _sorted(self) -> list[StoredTable]:
        return sorted(self.load_all(), key=lambda s: (s.table.name or "").casefold())

    def list_tables(self) -> list[RollTable]:
        """All tables, sorted by name."""
        return [s.table for s in self._sorted()]

    def list_summaries(self) -> list[tuple[str, str]]:
        """(id, name) pairs in display order, for nested-table pickers."""
        return [(t.table_id, t.name) for t in self.list_tables()]

    def _path_for(self, table_id: str) -> Path:
        """
        File for a table id inside the store directory.

        Raises:
            InvalidTableDataError: If the id could name a file elsewhere
        """
        if not is_safe_table_id(table_id):
            raise InvalidTableDataError(f"Invalid roll table id: {table_id!r}")
        return self.directory / f"{table_id}.json"

    def _find(self, table_id: str) -> Optional[StoredTable]:
        path = self.directory / f"{table_id}.json"
        if is_safe_table_id(table_id) and path.is_file():
            try:
                return StoredTable(path=path, table=self._read(path))
            except (OSError, json.JSONDecodeError, InvalidTableDataError) as e:
                logger.error(f"Error parsing JSON file {path.name}: {e}")

        for stored in self.load_all():
            if stored.table.table_id == table_id:
                return stored
        return None

    def get_table(self, table_id: str) -> RollTable:
        """
        Load a table by id.

        Raises:
            TableNotFoundError: If no table has this id
        """
        stored = self._find(table_id)
        if stored is None:
            raise TableNotFoundError(table_id=table_id)
        return stored.table

    def get_table_by_name(self, name: str) -> RollTable:
        """
        Load the first table (in display order) with this name.

        Raises:
            TableNotFoundError: If no table has this name
        """
        for table in self.list_tables():
            if table.name == name:
                return table
        raise TableNotFoundError(name=name)

    def index_of(self, table_id: str) -> int:
        """
        Display index of the table with this id.

        Raises:
            TableNotFoundError: If no table has this id
        """
        for index, stored in enumerate(self._sorted()):
            if stored.table.table_id == table_id:
                return index
        raise TableNotFoundError(table_id=table_id)

    def _stored_at(self, index: int) -> StoredTable:
        tables = self._sorted()
        if not 0 <= index < len(tables):
            raise TableNotFoundError(index=index)
        return tables[index]

    def save_table(self, table: RollTable) -> Path:
        """
        Write a table to "<_id>.json", assigning an id if it has none.

        Returns:
            Path of the written file
        """
        self.ensure_directory()
        if not table.table_id:
            table.table_id = self._unused_id("roll-table")

        path = self._path_for(table.table_id)
        self._write(path, table)
        logger.info(f"Saved roll table '{table.name}' to {path}")
        return path

    def _unused_id(self, prefix: str) -> str:
        table_id = new_table_id(prefix)
        suffix = 1
        while self._path_for(table_id).exists():
            table_id = f"{new_table_id(prefix)}-{suffix}"
            suffix += 1
        return table_id

    def save_document(self, data: dict[str, Any], prefix: str) -> Path:
        """
        Save a raw table document under a fresh "<prefix>-<ms>.json" name.

        The document's "_id" is set to the file stem.
        """
        self.ensure_directory()
        table_id = self._unused_id(prefix)
        table = RollTable.from_json({**data, "_id": table_id})
        path = self._path_for(table_id)
        self._write(path, table)
        logger.info(f"Saved roll table '{table.name}' to {path}")
        return path

    def update_table(self, index: int, table: RollTable) -> Path:
        """
        Overwrite the table at a display index.

        Raises:
            TableNotFoundError: If the index is out of range
        """
        stored = self._stored_at(index)
        if not table.table_id:
            table.table_id = stored.path.stem
        self._write(stored.path, table)
        logger.info(f"Updated roll table '{table.name}' in {stored.path}")
        return stored.path

    def delete_table(self, index: int) -> Path:
        """
        Delete the table at a display index.

        Raises:
            TableNotFoundError: If the index is out of range
        """
        stored = self._stored_at(index)
        stored.path.unlink()
        logger.info(f"Deleted roll table '{stored.table.name}' ({stored.path.name})")
        return stored.path

    def delete_table_by_name(self, name: str) -> Path:
        """
        Delete the first table (in display order) with this name.

        Raises:
            TableNotFoundError: If no table has this name
        """
        for stored in self._sorted():
            if stored.table.name == name:
                stored.path.unlink()
                logger.info(f"Deleted roll table '{name}' ({stored.path.name})")
                return stored.path
        raise TableNotFoundError(name=name)

    def create_table(
        self,
        name: str = DEFAULT_TABLE_NAME,
        formula: str = DEFAULT_FORMULA,
        description: str = "",
    ) -> RollTable:
        """Build a new, empty, unsaved table."""
        return RollTable(table_id="", name=name, formula=formula, description=description)

    def clone_table(self, table: RollTable) -> RollTable:
        """Build an unsaved copy named '<name> (Clone)' with a fresh id."""
        return table.copy(
            table_id=self._unused_id("roll-table"),
            name=f"{table.name} (Clone)",
        )
