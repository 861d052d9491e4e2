"""
Table type definitions for the roll table application.

Tables are authored as JSON documents (one per table) and mapped onto
these dataclasses when loaded. The entry kind is decided once, at load
time, from whichever reference field is populated.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
import logging

from rolltables.tables.errors import InvalidTableDataError


logger = logging.getLogger(__name__)


NO_RESULT_TEXT = "No result"
NO_DESCRIPTION_TEXT = "No description available."

# Value of "documentCollection" marking a nested table reference
ROLL_TABLE_COLLECTION = "RollTable"


# =============================================================================
# ENUMS
# =============================================================================


class EntryKind(str, Enum):
    """What a table entry resolves to, in dispatch priority order."""
    NESTED_TABLE = "nested_table"
    SPELL = "spell"
    EQUIPMENT = "equipment"
    MAGIC_ITEM = "magic_item"
    PLAIN = "plain"

    @property
    def label(self) -> str:
        """Display label used when composing result text."""
        return _KIND_LABELS[self]

    @property
    def is_content(self) -> bool:
        """True for kinds resolved through the content lookup service."""
        return self in CONTENT_KINDS


_KIND_LABELS = {
    EntryKind.NESTED_TABLE: "Roll Table",
    EntryKind.SPELL: "Spell",
    EntryKind.EQUIPMENT: "Equipment",
    EntryKind.MAGIC_ITEM: "Magic Item",
    EntryKind.PLAIN: "Roll Table",
}

CONTENT_KINDS = (EntryKind.SPELL, EntryKind.EQUIPMENT, EntryKind.MAGIC_ITEM)


# =============================================================================
# TABLE ENTRIES
# =============================================================================


@dataclass
class TableEntry:
    """
    A single row of a roll table.

    The row matches a roll when roll_min <= roll <= roll_max. At most one
    reference id should be set; when several are, the first in dispatch
    order (nested table, spell, equipment, magic item) wins.
    """
    # Roll range (inclusive)
    roll_min: int
    roll_max: int

    # Result content
    text: str = ""
    weight: int = 1                       # Authoring metadata, never used for selection
    drawn: bool = False                   # Caller-side bookkeeping

    # References
    nested_table_id: Optional[str] = None
    spell_id: Optional[str] = None
    equipment_id: Optional[str] = None
    magic_item_id: Optional[str] = None

    kind: EntryKind = field(init=False)

    def __post_init__(self):
        if self.roll_min > self.roll_max:
            logger.warning(
                f"Entry {self.text!r} has inverted range "
                f"[{self.roll_min}, {self.roll_max}]; swapping bounds"
            )
            self.roll_min, self.roll_max = self.roll_max, self.roll_min

        populated = [kind for kind, ref in self._references() if ref]
        if len(populated) > 1:
            logger.warning(
                f"Entry {self.text!r} has several references set "
                f"({', '.join(k.value for k in populated)}); using {populated[0].value}"
            )
        self.kind = populated[0] if populated else EntryKind.PLAIN

    def _references(self) -> list[tuple[EntryKind, Optional[str]]]:
        return [
            (EntryKind.NESTED_TABLE, self.nested_table_id),
            (EntryKind.SPELL, self.spell_id),
            (EntryKind.EQUIPMENT, self.equipment_id),
            (EntryKind.MAGIC_ITEM, self.magic_item_id),
        ]

    @property
    def reference_id(self) -> Optional[str]:
        """The id the entry's kind resolves through, or None for plain text."""
        for kind, ref in self._references():
            if kind == self.kind:
                return ref
        return None

    def matches_roll(self, roll: int) -> bool:
        """Check if a roll value falls within this entry's range."""
        return self.roll_min <= roll <= self.roll_max

    @classmethod
    def from_json(cls, json_data: dict[str, Any]) -> "TableEntry":
        """
        Create a TableEntry from a stored result document.

        Raises:
            InvalidTableDataError: If the range is missing numbers
        """
        roll_min, roll_max = _parse_range_value(json_data.get("range", [1, 1]))

        nested_id = json_data.get("nestedTableId")
        if not nested_id and json_data.get("documentCollection") == ROLL_TABLE_COLLECTION:
            nested_id = json_data.get("documentId")

        return cls(
            roll_min=roll_min,
            roll_max=roll_max,
            text=json_data.get("text") or "",
            weight=json_data.get("weight", 1),
            drawn=bool(json_data.get("drawn", False)),
            nested_table_id=nested_id or None,
            spell_id=json_data.get("spellId") or None,
            equipment_id=json_data.get("equipmentId") or None,
            magic_item_id=json_data.get("magicItemId") or None,
        )

    def to_json(self) -> dict[str, Any]:
        """Convert to the stored result document shape."""
        return {
            "text": self.text,
            "range": [self.roll_min, self.roll_max],
            "weight": self.weight,
            "drawn": self.drawn,
            "documentCollection": ROLL_TABLE_COLLECTION if self.nested_table_id else "",
            "documentId": self.nested_table_id,
            "spellId": self.spell_id,
            "equipmentId": self.equipment_id,
            "magicItemId": self.magic_item_id,
        }


def _parse_range_value(value: Any) -> tuple[int, int]:
    if isinstance(value, str):
        return parse_range_text(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value), int(value)
    if isinstance(value, (list, tuple)) and value:
        try:
            low = int(value[0])
            high = int(value[1]) if len(value) > 1 else low
        except (TypeError, ValueError) as e:
            raise InvalidTableDataError(f"Invalid range {value!r}: {e}") from e
        return low, high
    raise InvalidTableDataError(f"Invalid range {value!r}")


def parse_range_text(text: str) -> tuple[int, int]:
    """
    Parse an authored range such as "1-5" or "7".

    Returns:
        Tuple of (low, high)

    Raises:
        InvalidTableDataError: If either bound is not an integer
    """
    parts = [p.strip() for p in text.strip().split("-")]
    try:
        if len(parts) == 1:
            low = high = int(parts[0])
        elif len(parts) == 2:
            low, high = int(parts[0]), int(parts[1])
        else:
            raise ValueError("expected 'low-high'")
    except ValueError as e:
        raise InvalidTableDataError(f"Invalid range {text!r}: {e}") from e
    return low, high


# =============================================================================
# TABLES
# =============================================================================


@dataclass
class RollTable:
    """
    A named roll table: a dice formula plus ordered, ranged entries.

    Entries keep insertion order; they need not be sorted by range.
    Unknown document keys are kept in `extra` so saving a loaded table
    does not drop them.
    """
    table_id: str
    name: str
    formula: str = "1d20"
    description: str = ""                  # Free-form HTML, opaque here
    results: list[TableEntry] = field(default_factory=list)

    replacement: bool = True
    display_roll: bool = True

    extra: dict[str, Any] = field(default_factory=dict, repr=False)

    def get_min_roll(self) -> Optional[int]:
        """Lowest value covered by any entry, or None without entries."""
        if not self.results:
            return None
        return min(entry.roll_min for entry in self.results)

    def get_max_roll(self) -> Optional[int]:
        """Highest value covered by any entry, or None without entries."""
        if not self.results:
            return None
        return max(entry.roll_max for entry in self.results)

    def copy(self, **changes: Any) -> "RollTable":
        """Deep-enough copy with selected fields replaced."""
        data = self.to_json()
        table = RollTable.from_json(data)
        for key, value in changes.items():
            setattr(table, key, value)
        return table

    @classmethod
    def from_json(cls, json_data: dict[str, Any], default_id: str = "") -> "RollTable":
        """
        Create a RollTable from a stored table document.

        Args:
            json_data: Parsed JSON document
            default_id: Id to use when the document has no "_id"

        Raises:
            InvalidTableDataError: If the document is not a table
        """
        if not isinstance(json_data, dict):
            raise InvalidTableDataError("Table document must be a JSON object")

        results_data = json_data.get("results", [])
        if not isinstance(results_data, list):
            raise InvalidTableDataError("Table 'results' must be a list")

        known = {"_id", "name", "description", "formula", "results", "replacement", "displayRoll"}
        return cls(
            table_id=json_data.get("_id") or default_id,
            name=json_data.get("name") or default_id,
            formula=json_data.get("formula") or "1d20",
            description=json_data.get("description") or "",
            results=[TableEntry.from_json(r) for r in results_data],
            replacement=json_data.get("replacement", True),
            display_roll=json_data.get("displayRoll", True),
            extra={k: v for k, v in json_data.items() if k not in known},
        )

    def to_json(self) -> dict[str, Any]:
        """Convert to the stored table document shape."""
        data = dict(self.extra)
        data.update({
            "_id": self.table_id,
            "name": self.name,
            "description": self.description,
            "formula": self.formula,
            "results": [e.to_json() for e in self.results],
            "replacement": self.replacement,
            "displayRoll": self.display_roll,
        })
        return data


# =============================================================================
# RESOLUTION INPUTS AND OUTPUTS
# =============================================================================


@dataclass(frozen=True)
class RollMode:
    """
    How the roll value is obtained.

    Automatic mode draws from the table's formula; manual mode uses a value
    supplied by the caller ("what does a 7 give?").
    """
    value: Optional[int] = None

    @property
    def is_manual(self) -> bool:
        return self.value is not None

    @classmethod
    def automatic(cls) -> "RollMode":
        return cls()

    @classmethod
    def manual(cls, value: int) -> "RollMode":
        return cls(value=int(value))

    def __str__(self) -> str:
        return f"Manual({self.value})" if self.is_manual else "Automatic"


AUTOMATIC = RollMode.automatic()


class Miss:
    """Sentinel returned by the range resolver when nothing matches."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISS"


MISS = Miss()


@dataclass
class ContentItem:
    """A rules-content item returned by the content lookup service."""
    name: str
    description: list[str] = field(default_factory=list)

    def description_text(self) -> str:
        """Joined description, or the fixed fallback when there is none."""
        text = " ".join(part for part in self.description if part)
        return text or NO_DESCRIPTION_TEXT


@dataclass
class ResolvedResult:
    """
    Final, displayable outcome of resolving a roll.

    For nested tables, text/roll/table_name come from the deepest table.
    """
    text: str
    roll: int
    table_name: str
    kind: Optional[EntryKind] = None
    missed: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display or serialization."""
        return {
            "text": self.text,
            "roll": self.roll,
            "tableName": self.table_name,
            "kind": self.kind.value if self.kind else None,
            "missed": self.missed,
        }

    def __str__(self) -> str:
        return self.text
