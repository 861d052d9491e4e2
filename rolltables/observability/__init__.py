"""
Observability for roll table sessions.

Provides structured logging of dice rolls, table lookups and rules-content
lookups.
"""

from rolltables.observability.run_log import (
    RunLog,
    LogEvent,
    EventType,
    RollEvent,
    TableLookupEvent,
    ContentLookupEvent,
    get_run_log,
    reset_run_log,
)

__all__ = [
    "RunLog",
    "LogEvent",
    "EventType",
    "RollEvent",
    "TableLookupEvent",
    "ContentLookupEvent",
    "get_run_log",
    "reset_run_log",
]
