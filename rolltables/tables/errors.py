"""
Exceptions raised while parsing, storing and resolving roll tables.
"""

from typing import Optional


class RollTableError(Exception):
    """Base class for all roll table errors."""


class MalformedFormulaError(RollTableError):
    """A formula does not yield a usable die count and side count."""

    def __init__(self, formula: str, reason: str = ""):
        self.formula = formula
        self.reason = reason or "expected a die count and a side count, e.g. '1d20'"
        super().__init__(f"Malformed formula {formula!r}: {self.reason}")


class TableNotFoundError(RollTableError):
    """A table id, name or display index does not exist in the store."""

    def __init__(
        self,
        table_id: Optional[str] = None,
        name: Optional[str] = None,
        index: Optional[int] = None,
    ):
        self.table_id = table_id
        self.name = name
        self.index = index
        if table_id is not None:
            message = f"Roll table with ID {table_id} not found"
        elif name is not None:
            message = f"Roll table named {name!r} not found"
        elif index is not None:
            message = f"Roll table at index {index} not found"
        else:
            message = "Roll table not found"
        super().__init__(message)


class LookupFailureError(RollTableError):
    """The content service could not provide an item."""

    def __init__(
        self,
        kind: str,
        content_id: str,
        reason: str = "",
        status_code: Optional[int] = None,
    ):
        self.kind = kind
        self.content_id = content_id
        self.reason = reason
        self.status_code = status_code
        status = f" ({status_code})" if status_code is not None else ""
        super().__init__(f"Failed to fetch {kind}/{content_id}{status}: {reason}")


class CyclicReferenceError(RollTableError):
    """A chain of nested table references loops back on itself."""

    def __init__(self, chain: list[str], message: Optional[str] = None):
        self.chain = list(chain)
        super().__init__(
            message or f"Cyclic nested table reference: {' -> '.join(self.chain)}"
        )


class ResolutionDepthError(CyclicReferenceError):
    """A chain of nested table references is deeper than allowed."""

    def __init__(self, chain: list[str], max_depth: int):
        self.max_depth = max_depth
        super().__init__(
            chain,
            f"Nested table chain exceeds maximum depth {max_depth}: {' -> '.join(chain)}",
        )


class InvalidTableDataError(RollTableError):
    """A stored or imported document cannot be mapped onto a table."""


class RollOutOfRangeError(RollTableError):
    """A manually supplied roll lies outside the table's authored ranges."""

    def __init__(self, value: int, minimum: Optional[int], maximum: Optional[int]):
        self.value = value
        self.minimum = minimum
        self.maximum = maximum
        if minimum is None or maximum is None:
            message = f"Roll {value} cannot be looked up: table has no results"
        else:
            message = f"Roll {value} is outside the table range {minimum}-{maximum}"
        super().__init__(message)


class EntryNotFoundError(RollTableError):
    """A result position does not exist in a table."""

    def __init__(self, table_name: str, position: int, count: int):
        self.table_name = table_name
        self.position = position
        self.count = count
        super().__init__(
            f"Roll table {table_name!r} has no result {position} "
            f"(it has {count} result{'s' if count != 1 else ''})"
        )


class ConfigurationError(RollTableError):
    """A configuration value cannot be used."""

    def __init__(self, setting: str, value, reason: str):
        self.setting = setting
        self.value = value
        super().__init__(f"Invalid {setting} {value!r}: {reason}")
