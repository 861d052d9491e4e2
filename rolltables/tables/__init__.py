"""
Roll tables and their resolution.

This module provides:
- Table and entry types mapped from the stored JSON documents
- Formula parsing and range resolution
- The async resolution engine with nested-table and rules-content lookups
- The table manager used by the command line
"""

from rolltables.tables.errors import (
    RollTableError,
    MalformedFormulaError,
    TableNotFoundError,
    LookupFailureError,
    CyclicReferenceError,
    ResolutionDepthError,
    InvalidTableDataError,
    RollOutOfRangeError,
    EntryNotFoundError,
    ConfigurationError,
)

from rolltables.tables.table_types import (
    # Constants
    NO_RESULT_TEXT,
    NO_DESCRIPTION_TEXT,
    ROLL_TABLE_COLLECTION,
    # Enums
    EntryKind,
    CONTENT_KINDS,
    # Data classes
    TableEntry,
    RollTable,
    RollMode,
    AUTOMATIC,
    Miss,
    MISS,
    ContentItem,
    ResolvedResult,
    # Functions
    parse_range_text,
)

from rolltables.tables.formula import parse_formula
from rolltables.tables.range_resolver import resolve_range
from rolltables.tables.dice_rng_adapter import DiceRngAdapter, RandomSource
from rolltables.tables.lookup import ContentSource, LookupService, StoreLookupService
from rolltables.tables.resolution_engine import (
    DEFAULT_MAX_DEPTH,
    ResolutionEngine,
    resolve_roll,
)
from rolltables.tables.table_manager import HistoryEntry, RollTableManager

__all__ = [
    # Errors
    "RollTableError",
    "MalformedFormulaError",
    "TableNotFoundError",
    "LookupFailureError",
    "CyclicReferenceError",
    "ResolutionDepthError",
    "InvalidTableDataError",
    "RollOutOfRangeError",
    "EntryNotFoundError",
    "ConfigurationError",
    # Types
    "NO_RESULT_TEXT",
    "NO_DESCRIPTION_TEXT",
    "ROLL_TABLE_COLLECTION",
    "EntryKind",
    "CONTENT_KINDS",
    "TableEntry",
    "RollTable",
    "RollMode",
    "AUTOMATIC",
    "Miss",
    "MISS",
    "ContentItem",
    "ResolvedResult",
    "parse_range_text",
    # Resolution
    "parse_formula",
    "resolve_range",
    "DiceRngAdapter",
    "RandomSource",
    "ContentSource",
    "LookupService",
    "StoreLookupService",
    "DEFAULT_MAX_DEPTH",
    "ResolutionEngine",
    "resolve_roll",
    # Management
    "HistoryEntry",
    "RollTableManager",
]
