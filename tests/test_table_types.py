"""
Tests for roll table data types and their JSON document mapping.
"""

import logging

import pytest

from rolltables.tables.errors import InvalidTableDataError
from rolltables.tables.table_types import (
    AUTOMATIC,
    NO_DESCRIPTION_TEXT,
    ContentItem,
    EntryKind,
    ResolvedResult,
    RollMode,
    RollTable,
    TableEntry,
    parse_range_text,
)


class TestEntryKind:
    """Tests for entry kind detection."""

    def test_plain_entry(self):
        assert TableEntry(1, 1, "Gold").kind == EntryKind.PLAIN

    @pytest.mark.parametrize(
        "field_name,kind",
        [
            ("nested_table_id", EntryKind.NESTED_TABLE),
            ("spell_id", EntryKind.SPELL),
            ("equipment_id", EntryKind.EQUIPMENT),
            ("magic_item_id", EntryKind.MAGIC_ITEM),
        ],
    )
    def test_single_reference(self, field_name, kind):
        entry = TableEntry(1, 1, "x", **{field_name: "ref"})
        assert entry.kind == kind
        assert entry.reference_id == "ref"

    def test_several_references_use_priority_order(self, caplog):
        with caplog.at_level(logging.WARNING):
            entry = TableEntry(1, 1, "x", spell_id="fireball", magic_item_id="wand")
        assert entry.kind == EntryKind.SPELL
        assert entry.reference_id == "fireball"
        assert "several references" in caplog.text

        entry = TableEntry(1, 1, "x", nested_table_id="t", equipment_id="rope")
        assert entry.kind == EntryKind.NESTED_TABLE

    def test_labels(self):
        assert EntryKind.SPELL.label == "Spell"
        assert EntryKind.EQUIPMENT.label == "Equipment"
        assert EntryKind.MAGIC_ITEM.label == "Magic Item"
        assert EntryKind.SPELL.is_content
        assert not EntryKind.NESTED_TABLE.is_content
        assert not EntryKind.PLAIN.is_content


class TestTableEntry:
    """Tests for TableEntry ranges and JSON mapping."""

    def test_inverted_range_is_swapped(self, caplog):
        with caplog.at_level(logging.WARNING):
            entry = TableEntry(10, 3, "Backwards")
        assert (entry.roll_min, entry.roll_max) == (3, 10)
        assert "inverted range" in caplog.text

    def test_matches_roll(self):
        entry = TableEntry(3, 5, "x")
        assert entry.matches_roll(3)
        assert entry.matches_roll(5)
        assert not entry.matches_roll(6)

    def test_from_json_nested_via_document_collection(self):
        entry = TableEntry.from_json({
            "text": "Gems",
            "range": [7, 11],
            "documentCollection": "RollTable",
            "documentId": "roll-table-gems",
        })
        assert entry.kind == EntryKind.NESTED_TABLE
        assert entry.nested_table_id == "roll-table-gems"

    def test_from_json_document_id_without_collection_is_plain(self):
        entry = TableEntry.from_json({
            "text": "Gems",
            "range": [1, 1],
            "documentCollection": "Item",
            "documentId": "abc",
        })
        assert entry.kind == EntryKind.PLAIN

    def test_from_json_nested_table_id_key(self):
        entry = TableEntry.from_json({"text": "x", "range": [1, 2], "nestedTableId": "other"})
        assert entry.nested_table_id == "other"

    def test_from_json_content_ids(self):
        entry = TableEntry.from_json({"text": "Scroll", "range": [1, 1], "spellId": "fireball"})
        assert entry.kind == EntryKind.SPELL
        assert entry.spell_id == "fireball"

    def test_from_json_defaults(self):
        entry = TableEntry.from_json({"text": "Anything"})
        assert (entry.roll_min, entry.roll_max) == (1, 1)
        assert entry.weight == 1
        assert entry.drawn is False

    def test_from_json_string_range(self):
        entry = TableEntry.from_json({"text": "x", "range": "4-6"})
        assert (entry.roll_min, entry.roll_max) == (4, 6)

    def test_from_json_bad_range(self):
        with pytest.raises(InvalidTableDataError):
            TableEntry.from_json({"text": "x", "range": ["a", "b"]})

    def test_to_json_shape(self):
        data = TableEntry(2, 4, "Gems", nested_table_id="gems").to_json()
        assert data["range"] == [2, 4]
        assert data["documentCollection"] == "RollTable"
        assert data["documentId"] == "gems"
        assert data["spellId"] is None


class TestParseRangeText:
    """Tests for authored range text."""

    def test_span(self):
        assert parse_range_text("1-5") == (1, 5)
        assert parse_range_text(" 7 - 9 ") == (7, 9)

    def test_single_value(self):
        assert parse_range_text("7") == (7, 7)

    @pytest.mark.parametrize("text", ["", "a-b", "1-2-3", "x"])
    def test_invalid(self, text):
        with pytest.raises(InvalidTableDataError):
            parse_range_text(text)


class TestRollTable:
    """Tests for RollTable."""

    def test_min_max_roll(self):
        table = RollTable("t", "T", results=[TableEntry(5, 8, "a"), TableEntry(1, 3, "b")])
        assert table.get_min_roll() == 1
        assert table.get_max_roll() == 8

    def test_min_max_without_entries(self):
        table = RollTable("t", "T")
        assert table.get_min_roll() is None
        assert table.get_max_roll() is None

    def test_from_json_keeps_unknown_keys(self):
        table = RollTable.from_json({
            "_id": "t1",
            "name": "Loot",
            "formula": "1d6",
            "results": [],
            "img": "icons/loot.svg",
        })
        assert table.extra == {"img": "icons/loot.svg"}
        assert table.to_json()["img"] == "icons/loot.svg"

    def test_from_json_default_id(self):
        table = RollTable.from_json({"name": "Loot", "results": []}, default_id="loot-file")
        assert table.table_id == "loot-file"
        assert table.formula == "1d20"

    def test_from_json_rejects_non_list_results(self):
        with pytest.raises(InvalidTableDataError):
            RollTable.from_json({"name": "Loot", "results": "nope"})

    def test_from_json_rejects_non_object(self):
        with pytest.raises(InvalidTableDataError):
            RollTable.from_json(["not", "a", "table"])

    def test_to_json_fields(self):
        data = RollTable("t1", "Loot", results=[TableEntry(1, 20, "Gold")]).to_json()
        assert data["_id"] == "t1"
        assert data["displayRoll"] is True
        assert data["replacement"] is True
        assert data["results"][0]["text"] == "Gold"

    def test_copy_does_not_share_entries(self):
        original = RollTable("t1", "Loot", results=[TableEntry(1, 20, "Gold")])
        clone = original.copy(name="Loot (Clone)")
        clone.results.append(TableEntry(21, 21, "Extra"))
        assert clone.name == "Loot (Clone)"
        assert len(original.results) == 1


class TestResolutionTypes:
    """Tests for RollMode, ContentItem and ResolvedResult."""

    def test_roll_modes(self):
        assert not AUTOMATIC.is_manual
        manual = RollMode.manual(7)
        assert manual.is_manual
        assert manual.value == 7
        assert str(manual) == "Manual(7)"
        assert str(RollMode.automatic()) == "Automatic"

    def test_content_description_text(self):
        assert ContentItem("Fireball", ["A bright", "streak"]).description_text() == "A bright streak"
        assert ContentItem("Rope", []).description_text() == NO_DESCRIPTION_TEXT

    def test_resolved_result_to_dict(self):
        result = ResolvedResult("Spell: Fireball - desc", 12, "Loot", kind=EntryKind.SPELL)
        assert result.to_dict() == {
            "text": "Spell: Fireball - desc",
            "roll": 12,
            "tableName": "Loot",
            "kind": "spell",
            "missed": False,
        }
        assert str(result) == "Spell: Fireball - desc"
