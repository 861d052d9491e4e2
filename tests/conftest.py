"""
Pytest fixtures for the roll table test suite.

Provides reusable fixtures for dice, the run log, in-memory lookups and
temporary table stores.
"""

import pytest

from rolltables.data_models import DiceRoller
from rolltables.observability.run_log import reset_run_log
from rolltables.storage.table_store import TableStore
from rolltables.tables.table_types import TableEntry

from helpers import StubLookup, make_table


# =============================================================================
# DICE FIXTURES
# =============================================================================


@pytest.fixture
def seeded_dice():
    """Provide a seeded DiceRoller for reproducible tests."""
    DiceRoller.clear_roll_log()
    DiceRoller.set_seed(42)
    yield DiceRoller()
    DiceRoller.clear_roll_log()


@pytest.fixture
def run_log():
    """Provide a freshly reset RunLog."""
    log = reset_run_log()
    yield log
    log.reset()


# =============================================================================
# LOOKUP FIXTURES
# =============================================================================


@pytest.fixture
def stub_lookup():
    """Provide an empty in-memory lookup."""
    return StubLookup()


# =============================================================================
# TABLE FIXTURES
# =============================================================================


@pytest.fixture
def gold_table():
    """A d20 table whose every roll gives 'Gold'."""
    return make_table("table-y", "Loot", [TableEntry(1, 20, "Gold")])


@pytest.fixture
def store(tmp_path):
    """Provide a TableStore on an empty temporary directory."""
    store = TableStore(tmp_path / "json")
    store.ensure_directory()
    return store
