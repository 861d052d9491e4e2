"""
Table management for the roll table application.

Ties the table store to the resolution engine: tables are found by id or
name, rolled automatically or looked up for a given value, and every
result is kept in a session history.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional
import logging

from rolltables.tables.errors import (
    EntryNotFoundError,
    RollOutOfRangeError,
    TableNotFoundError,
)
from rolltables.tables.formula import parse_formula
from rolltables.tables.resolution_engine import ResolutionEngine
from rolltables.tables.table_types import (
    AUTOMATIC,
    ResolvedResult,
    RollMode,
    RollTable,
    TableEntry,
)

if TYPE_CHECKING:
    from rolltables.storage.table_store import TableStore


logger = logging.getLogger(__name__)


DEFAULT_HISTORY_SIZE = 100


@dataclass
class HistoryEntry:
    """One resolved roll, as remembered by the manager."""
    table_id: str
    table_name: str
    mode: RollMode
    result: ResolvedResult


class RollTableManager:
    """
    Central access point for rolling on stored tables.

    Args:
        store: Where tables are read from and written to
        engine: Engine used to resolve rolls
        history_size: Number of recent results kept in the history
    """

    def __init__(
        self,
        store: TableStore,
        engine: ResolutionEngine,
        history_size: int = DEFAULT_HISTORY_SIZE,
    ):
        self.store = store
        self.engine = engine
        self._history: deque[HistoryEntry] = deque(maxlen=history_size)

    @property
    def history(self) -> list[HistoryEntry]:
        """Most recent results of this session, oldest first."""
        return list(self._history)

    def clear_history(self) -> None:
        self._history.clear()

    def find_table(self, table_ref: str) -> RollTable:
        """
        Find a table by id, falling back to its name.

        Raises:
            TableNotFoundError: If neither an id nor a name matches
        """
        try:
            return self.store.get_table(table_ref)
        except TableNotFoundError:
            pass
        try:
            return self.store.get_table_by_name(table_ref)
        except TableNotFoundError:
            raise TableNotFoundError(table_id=table_ref) from None

    async def roll(self, table_ref: str) -> ResolvedResult:
        """Roll automatically on a table given by id or name."""
        return await self.roll_table(self.find_table(table_ref))

    async def roll_value(self, table_ref: str, value: int) -> ResolvedResult:
        """
        Look up what a given roll produces on a table.

        Raises:
            RollOutOfRangeError: If the value lies outside the table's ranges
        """
        return await self.roll_table(self.find_table(table_ref), RollMode.manual(value))

    async def roll_table(
        self,
        table: RollTable,
        mode: RollMode = AUTOMATIC,
    ) -> ResolvedResult:
        """
        Resolve a roll on an already loaded table and record it.

        Manual values are checked against the table's lowest and highest
        authored roll before the engine is called.

        Raises:
            RollOutOfRangeError: Manual value outside the table's ranges
        """
        if mode.is_manual:
            self.check_manual_value(table, mode.value)

        result = await self.engine.resolve_roll(table, mode)
        logger.debug(f"{table.name} [{mode}]: {result.text}")

        self._history.append(HistoryEntry(
            table_id=table.table_id,
            table_name=table.name,
            mode=mode,
            result=result,
        ))
        return result

    @staticmethod
    def check_manual_value(table: RollTable, value: int) -> None:
        """
        Raise RollOutOfRangeError unless value is within the table's ranges.

        Gaps between entries are not checked; a value in a gap is a miss.
        """
        minimum, maximum = table.get_min_roll(), table.get_max_roll()
        if minimum is None or maximum is None or not minimum <= value <= maximum:
            raise RollOutOfRangeError(value, minimum, maximum)

    def add_result(self, table_ref: str, entry: TableEntry) -> RollTable:
        """
        Append an entry to a stored table and save it.

        Returns:
            The updated table
        """
        table = self.find_table(table_ref)
        table.results.append(entry)
        self._update(table)
        logger.info(f"Added result {entry.text!r} to '{table.name}'")
        return table

    def edit_table(
        self,
        table_ref: str,
        name: Optional[str] = None,
        formula: Optional[str] = None,
        description: Optional[str] = None,
    ) -> RollTable:
        """
        Change a stored table's name, formula or description.

        Arguments left as None keep their current value.

        Raises:
            MalformedFormulaError: If the new formula is unusable
        """
        table = self.find_table(table_ref)
        if formula is not None:
            parse_formula(formula)
            table.formula = formula
        if name is not None:
            table.name = name
        if description is not None:
            table.description = description
        self._update(table)
        logger.info(f"Edited roll table '{table.name}' ({table.table_id})")
        return table

    def remove_result(self, table_ref: str, position: int) -> TableEntry:
        """
        Remove the entry at a 1-based position from a stored table.

        Returns:
            The removed entry

        Raises:
            EntryNotFoundError: If the table has no entry at that position
        """
        table = self.find_table(table_ref)
        if not 1 <= position <= len(table.results):
            raise EntryNotFoundError(table.name, position, len(table.results))
        entry = table.results.pop(position - 1)
        self._update(table)
        logger.info(f"Removed result {entry.text!r} from '{table.name}'")
        return entry

    def _update(self, table: RollTable) -> None:
        self.store.update_table(self.store.index_of(table.table_id), table)

    def delete_table(self, table_ref: str) -> RollTable:
        """
        Delete a stored table given by id, falling back to its name.

        Returns:
            The deleted table
        """
        try:
            table = self.store.get_table(table_ref)
        except TableNotFoundError:
            table = self.store.get_table_by_name(table_ref)
            self.store.delete_table_by_name(table_ref)
        else:
            self.store.delete_table(self.store.index_of(table.table_id))
        logger.info(f"Deleted roll table '{table.name}' ({table.table_id})")
        return table
