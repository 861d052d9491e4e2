"""
Range resolution: map a roll value onto a table entry.
"""

from typing import Iterable, Union

from rolltables.tables.table_types import MISS, Miss, TableEntry


def resolve_range(value: int, entries: Iterable[TableEntry]) -> Union[TableEntry, Miss]:
    """
    Find the entry whose inclusive range contains value.

    Entries are scanned in order and the first match wins, so overlapping
    ranges resolve to whichever entry was authored first.

    Args:
        value: The roll value
        entries: Table entries in authored order

    Returns:
        The matching TableEntry, or MISS when no range contains value
    """
    for entry in entries:
        if entry.matches_roll(value):
            return entry
    return MISS
