"""
Roll resolution engine.

Turns a table plus a roll mode into a displayable ResolvedResult:

1. Obtain a roll (drawn from the table formula, or supplied by the caller)
2. Map it to an entry with the range resolver (a miss is a normal outcome)
3. Dispatch on the entry kind: nested table, spell, equipment, magic item
   or plain text. Nested tables recurse; content kinds call the lookup
   service.

Resolution is async so each lookup can suspend. The engine keeps no state
between calls and never mutates its inputs; the chain of table ids on the
current recursion path guards against cyclic references.
"""

import logging
from typing import Optional

from rolltables.tables.dice_rng_adapter import DiceRngAdapter, RandomSource
from rolltables.tables.errors import CyclicReferenceError, ResolutionDepthError
from rolltables.tables.formula import parse_formula
from rolltables.tables.lookup import LookupService
from rolltables.tables.range_resolver import resolve_range
from rolltables.tables.table_types import (
    AUTOMATIC,
    MISS,
    NO_RESULT_TEXT,
    EntryKind,
    ResolvedResult,
    RollMode,
    RollTable,
    TableEntry,
)


logger = logging.getLogger(__name__)


DEFAULT_MAX_DEPTH = 10


class ResolutionEngine:
    """
    Resolves rolls against roll tables.

    Args:
        lookup: Source of nested tables and rules content
        rng: Random source; defaults to a DiceRoller-backed adapter
        max_depth: Maximum number of tables on one nested chain
    """

    def __init__(
        self,
        lookup: LookupService,
        rng: Optional[RandomSource] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        if max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")
        self._lookup = lookup
        self._rng = rng if rng is not None else DiceRngAdapter()
        self._max_depth = max_depth

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def draw(self, table: RollTable) -> int:
        """
        Draw an automatic roll for a table.

        A single value in [1, sides] is drawn; the die count in the
        formula is parsed but does not widen the range.

        Raises:
            MalformedFormulaError: If the formula has no usable side count
        """
        _count, sides = parse_formula(table.formula)
        return self._rng.randint(1, sides)

    async def resolve_roll(
        self,
        table: RollTable,
        mode: RollMode = AUTOMATIC,
    ) -> ResolvedResult:
        """
        Resolve a roll against a table.

        Args:
            table: The table to roll on
            mode: AUTOMATIC, or RollMode.manual(value) for a given roll.
                Manual values are not range-checked here.

        Returns:
            ResolvedResult for the deepest table reached

        Raises:
            MalformedFormulaError: Automatic roll on an unparsable formula
            TableNotFoundError: A nested table id does not exist
            LookupFailureError: Rules content could not be fetched
            CyclicReferenceError: Nested tables loop or nest too deeply
        """
        return await self._resolve(table, mode, [])

    async def _resolve(
        self,
        table: RollTable,
        mode: RollMode,
        chain: list[str],
    ) -> ResolvedResult:
        key = _table_key(table)
        if key in chain:
            raise CyclicReferenceError(chain + [key])
        chain = chain + [key]
        if len(chain) > self._max_depth:
            raise ResolutionDepthError(chain, self._max_depth)

        roll = mode.value if mode.is_manual else self.draw(table)
        entry = resolve_range(roll, table.results)

        if entry is MISS:
            logger.debug(f"Roll {roll} on '{table.name}' matched no entry")
            result = ResolvedResult(
                text=NO_RESULT_TEXT,
                roll=roll,
                table_name=table.name,
                missed=True,
            )
            self._log_table_lookup(table, roll, result.text, len(chain))
            return result

        if entry.kind == EntryKind.NESTED_TABLE:
            return await self._resolve_nested(table, entry, roll, chain)

        if entry.kind.is_content:
            text = await self._describe_content(entry)
        else:
            text = f"Roll Table: {entry.text} (Roll: {roll})"

        self._log_table_lookup(table, roll, text, len(chain))
        return ResolvedResult(
            text=text,
            roll=roll,
            table_name=table.name,
            kind=entry.kind,
        )

    async def _resolve_nested(
        self,
        table: RollTable,
        entry: TableEntry,
        roll: int,
        chain: list[str],
    ) -> ResolvedResult:
        nested_id = entry.nested_table_id
        if nested_id in chain:
            raise CyclicReferenceError(chain + [nested_id])

        self._log_table_lookup(table, roll, f"-> nested table {nested_id}", len(chain))
        nested_table = await self._lookup.table(nested_id)
        logger.debug(f"'{table.name}' roll {roll} nests into '{nested_table.name}'")

        nested = await self._resolve(nested_table, AUTOMATIC, chain)
        return ResolvedResult(
            text=nested.text,
            roll=nested.roll,
            table_name=nested.table_name or nested_table.name,
            kind=nested.kind,
            missed=nested.missed,
        )

    async def _describe_content(self, entry: TableEntry) -> str:
        content_id = entry.reference_id
        try:
            item = await self._lookup.content(entry.kind, content_id)
        except Exception:
            self._log_content_lookup(entry.kind, content_id, "", success=False)
            raise
        self._log_content_lookup(entry.kind, content_id, item.name, success=True)
        return f"{entry.kind.label}: {item.name} - {item.description_text()}"

    def _log_table_lookup(
        self,
        table: RollTable,
        roll: int,
        result_text: str,
        depth: int,
    ) -> None:
        """Log a table lookup to the observability RunLog."""
        try:
            from rolltables.observability.run_log import get_run_log

            get_run_log().log_table_lookup(
                table_id=table.table_id,
                table_name=table.name,
                roll_total=roll,
                result_text=result_text,
                depth=depth,
            )
        except ImportError:
            pass  # Observability module not available

    def _log_content_lookup(
        self,
        kind: EntryKind,
        content_id: str,
        name: str,
        success: bool,
    ) -> None:
        """Log a content lookup to the observability RunLog."""
        try:
            from rolltables.observability.run_log import get_run_log

            get_run_log().log_content_lookup(
                kind=kind.value,
                content_id=content_id,
                name=name,
                success=success,
            )
        except ImportError:
            pass  # Observability module not available


def _table_key(table: RollTable) -> str:
    return table.table_id or f"name:{table.name}"


async def resolve_roll(
    table: RollTable,
    mode: RollMode,
    rng: RandomSource,
    lookup: LookupService,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ResolvedResult:
    """Resolve a single roll without keeping an engine around."""
    engine = ResolutionEngine(lookup, rng=rng, max_depth=max_depth)
    return await engine.resolve_roll(table, mode)
