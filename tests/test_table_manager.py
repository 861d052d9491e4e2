"""
Tests for RollTableManager and the store-backed lookup service.
"""

import pytest
from unittest.mock import AsyncMock

from rolltables.tables.errors import (
    EntryNotFoundError,
    LookupFailureError,
    MalformedFormulaError,
    RollOutOfRangeError,
    TableNotFoundError,
)
from rolltables.tables.lookup import StoreLookupService
from rolltables.tables.resolution_engine import ResolutionEngine
from rolltables.tables.table_manager import RollTableManager
from rolltables.tables.table_types import ContentItem, EntryKind, RollTable, TableEntry

from helpers import FixedRandom


@pytest.fixture
def saved_tables(store):
    """Store holding a treasure table that nests into a gem table."""
    store.save_table(RollTable("gems", "Gemstones", formula="1d4", results=[
        TableEntry(1, 2, "Azurite"),
        TableEntry(3, 4, "Diamond"),
    ]))
    store.save_table(RollTable("treasure", "Treasure Hoard", formula="1d6", results=[
        TableEntry(1, 3, "Coins"),
        TableEntry(4, 5, "Gems", nested_table_id="gems"),
        TableEntry(6, 6, "Scroll", spell_id="fireball"),
    ]))
    return store


def _manager(store, *values, content_source=None):
    lookup = StoreLookupService(store, content_source)
    return RollTableManager(store, ResolutionEngine(lookup, rng=FixedRandom(*values)))


class TestStoreLookupService:
    """Tests for StoreLookupService."""

    @pytest.mark.asyncio
    async def test_table_by_id_and_name(self, saved_tables):
        lookup = StoreLookupService(saved_tables)
        assert (await lookup.table("gems")).name == "Gemstones"
        assert (await lookup.table_by_name("Treasure Hoard")).table_id == "treasure"

    @pytest.mark.asyncio
    async def test_missing_table(self, saved_tables):
        with pytest.raises(TableNotFoundError):
            await StoreLookupService(saved_tables).table("nope")

    @pytest.mark.asyncio
    async def test_content_delegates(self, saved_tables):
        source = AsyncMock()
        source.get_content = AsyncMock(return_value=ContentItem("Fireball", ["desc"]))
        lookup = StoreLookupService(saved_tables, source)

        item = await lookup.content(EntryKind.SPELL, "fireball")

        assert item.name == "Fireball"
        source.get_content.assert_awaited_once_with(EntryKind.SPELL, "fireball")

    @pytest.mark.asyncio
    async def test_content_without_source(self, saved_tables):
        with pytest.raises(LookupFailureError, match="no content source"):
            await StoreLookupService(saved_tables).content(EntryKind.SPELL, "fireball")


class TestFindTable:
    """Tests for table lookup by id or name."""

    def test_by_id(self, saved_tables):
        assert _manager(saved_tables).find_table("gems").name == "Gemstones"

    def test_by_name(self, saved_tables):
        assert _manager(saved_tables).find_table("Treasure Hoard").table_id == "treasure"

    def test_not_found(self, saved_tables):
        with pytest.raises(TableNotFoundError):
            _manager(saved_tables).find_table("Dragons")


class TestRolling:
    """Tests for automatic and manual rolls through the manager."""

    @pytest.mark.asyncio
    async def test_roll_plain(self, saved_tables):
        result = await _manager(saved_tables, 2).roll("treasure")
        assert result.text == "Roll Table: Coins (Roll: 2)"

    @pytest.mark.asyncio
    async def test_roll_nested_through_store(self, saved_tables):
        result = await _manager(saved_tables, 4, 3).roll("Treasure Hoard")
        assert result.table_name == "Gemstones"
        assert result.text == "Roll Table: Diamond (Roll: 3)"

    @pytest.mark.asyncio
    async def test_roll_value(self, saved_tables):
        result = await _manager(saved_tables).roll_value("treasure", 1)
        assert result.roll == 1
        assert "Coins" in result.text

    @pytest.mark.asyncio
    async def test_roll_value_spell(self, saved_tables):
        source = AsyncMock()
        source.get_content = AsyncMock(return_value=ContentItem("Fireball", ["desc"]))
        manager = _manager(saved_tables, content_source=source)

        result = await manager.roll_value("treasure", 6)

        assert result.text == "Spell: Fireball - desc"

    @pytest.mark.asyncio
    async def test_roll_value_out_of_range(self, saved_tables):
        manager = _manager(saved_tables)
        with pytest.raises(RollOutOfRangeError) as exc_info:
            await manager.roll_value("treasure", 7)
        assert (exc_info.value.minimum, exc_info.value.maximum) == (1, 6)
        assert manager.history == []

    @pytest.mark.asyncio
    async def test_roll_value_on_empty_table(self, store):
        store.save_table(RollTable("empty", "Empty"))
        with pytest.raises(RollOutOfRangeError):
            await _manager(store).roll_value("empty", 1)

    @pytest.mark.asyncio
    async def test_roll_value_in_gap_is_a_miss(self, store):
        store.save_table(RollTable("gappy", "Gappy", results=[
            TableEntry(1, 5, "Low"),
            TableEntry(10, 20, "High"),
        ]))
        result = await _manager(store).roll_value("gappy", 7)
        assert result.missed


class TestHistory:
    """Tests for the session history."""

    @pytest.mark.asyncio
    async def test_history_records_rolls(self, saved_tables):
        manager = _manager(saved_tables, 2)
        await manager.roll("treasure")
        await manager.roll_value("gems", 4)

        history = manager.history
        assert [h.table_id for h in history] == ["treasure", "gems"]
        assert history[1].mode.value == 4
        assert "Diamond" in history[1].result.text

    @pytest.mark.asyncio
    async def test_clear_history(self, saved_tables):
        manager = _manager(saved_tables, 2)
        await manager.roll("treasure")
        manager.clear_history()
        assert manager.history == []

    @pytest.mark.asyncio
    async def test_history_keeps_most_recent(self, saved_tables):
        lookup = StoreLookupService(saved_tables)
        manager = RollTableManager(
            saved_tables,
            ResolutionEngine(lookup, rng=FixedRandom()),
            history_size=2,
        )
        for value in (1, 3, 4):
            await manager.roll_value("gems", value)
        assert [h.mode.value for h in manager.history] == [3, 4]

    @pytest.mark.asyncio
    async def test_history_is_a_copy(self, saved_tables):
        manager = _manager(saved_tables, 2)
        await manager.roll("treasure")
        manager.history.clear()
        assert len(manager.history) == 1


class TestAddResult:
    """Tests for appending entries to stored tables."""

    def test_add_result_saves(self, saved_tables):
        manager = _manager(saved_tables)
        manager.add_result("Gemstones", TableEntry(5, 5, "Ruby", magic_item_id="ring-of-warmth"))

        table = saved_tables.get_table("gems")
        assert [e.text for e in table.results] == ["Azurite", "Diamond", "Ruby"]
        assert table.results[-1].kind == EntryKind.MAGIC_ITEM


class TestEditing:
    """Tests for changing and trimming stored tables."""

    def test_edit_table(self, saved_tables):
        manager = _manager(saved_tables)
        manager.edit_table("Gemstones", name="Gems", formula="1d6", description="Shiny")

        table = saved_tables.get_table("gems")
        assert (table.name, table.formula, table.description) == ("Gems", "1d6", "Shiny")
        assert [e.text for e in table.results] == ["Azurite", "Diamond"]
        assert len(saved_tables.list_tables()) == 2

    def test_edit_keeps_unset_fields(self, saved_tables):
        _manager(saved_tables).edit_table("gems", description="Shiny")
        table = saved_tables.get_table("gems")
        assert (table.name, table.formula) == ("Gemstones", "1d4")

    def test_edit_rejects_bad_formula(self, saved_tables):
        with pytest.raises(MalformedFormulaError):
            _manager(saved_tables).edit_table("gems", formula="lots")
        assert saved_tables.get_table("gems").formula == "1d4"

    def test_remove_result(self, saved_tables):
        removed = _manager(saved_tables).remove_result("treasure", 2)

        assert removed.text == "Gems"
        table = saved_tables.get_table("treasure")
        assert [e.text for e in table.results] == ["Coins", "Scroll"]

    @pytest.mark.parametrize("position", [0, 4])
    def test_remove_result_bad_position(self, saved_tables, position):
        with pytest.raises(EntryNotFoundError) as exc_info:
            _manager(saved_tables).remove_result("treasure", position)
        assert exc_info.value.count == 3
        assert len(saved_tables.get_table("treasure").results) == 3

    def test_delete_by_id(self, saved_tables):
        deleted = _manager(saved_tables).delete_table("gems")
        assert deleted.name == "Gemstones"
        assert [t.table_id for t in saved_tables.list_tables()] == ["treasure"]

    def test_delete_by_name(self, saved_tables):
        _manager(saved_tables).delete_table("Treasure Hoard")
        assert [t.table_id for t in saved_tables.list_tables()] == ["gems"]

    def test_delete_unknown(self, saved_tables):
        with pytest.raises(TableNotFoundError):
            _manager(saved_tables).delete_table("Dragons")
        assert len(saved_tables.list_tables()) == 2
