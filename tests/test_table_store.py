"""
Tests for the table store.

INVARIANTS:
- Callers only ever receive snapshots of stored tables
- Unknown ids and entry indices raise NOT_FOUND errors
- Cost rolls are refused for tables that do not use costs
"""

import random
import threading
from pathlib import Path
from uuid import uuid4

import pytest

from rolltables.models.currency import Currency
from rolltables.models.failure import FailureKind
from rolltables.models.table import CostLimit, CountLimit, TableEntry
from rolltables.services.table_store import (
    CostRollUnavailableError,
    EntryNotFoundError,
    TableNotFoundError,
    TableStore,
    parse_entry_lines,
)


class TestParseEntryLines:
    def test_skips_blank_lines_and_trims(self) -> None:
        entries = parse_entry_lines("  Goblin \n\n   \nOrc\r\nTroll")
        assert [entry.name for entry in entries] == ["Goblin", "Orc", "Troll"]
        assert all(entry.cost == Currency() for entry in entries)


class TestTables:
    """Tests for creating, listing, editing and removing tables."""

    def test_new_table_sorts_entries(self, store: TableStore) -> None:
        table_id = store.new_table("Encounters", entries="troll\nGoblin\norc")

        table = store.get_table(table_id)

        assert table.name == "Encounters"
        assert [entry.name for entry in table.entries] == ["Goblin", "orc", "troll"]

    def test_new_table_from_entries(
        self, store: TableStore, market_entries: list[TableEntry]
    ) -> None:
        table_id = store.new_table("Market", use_cost=True, entries=reversed(market_entries))

        assert store.get_table(table_id).entries == market_entries

    def test_list_tables_in_order(self, store: TableStore) -> None:
        first = store.new_table("First")
        second = store.new_table("Second")

        pairs = store.list_tables()

        assert [(pair.id, pair.name) for pair in pairs] == [(first, "First"), (second, "Second")]
        assert store.get_table(second).order == 1

    def test_get_table_returns_snapshot(self, store: TableStore) -> None:
        table_id = store.new_table("Encounters", entries="Goblin")

        snapshot = store.get_table(table_id)
        snapshot.name = "Changed"
        snapshot.entries.clear()

        table = store.get_table(table_id)
        assert table.name == "Encounters"
        assert len(table) == 1

    def test_unknown_table(self, store: TableStore) -> None:
        with pytest.raises(TableNotFoundError) as exc_info:
            store.get_table(uuid4())

        assert exc_info.value.kind == FailureKind.NOT_FOUND
        assert exc_info.value.status_code == 404

    def test_remove_table(self, store: TableStore) -> None:
        table_id = store.new_table("Encounters")

        removed = store.remove_table(table_id)

        assert removed.id == table_id
        assert store.list_tables() == []
        with pytest.raises(TableNotFoundError):
            store.remove_table(table_id)

    def test_update_table_changes_only_given_fields(self, store: TableStore) -> None:
        table_id = store.new_table("Encounters", entries="Goblin")

        store.update_table(table_id, name="Road Encounters", use_weight=True)

        table = store.get_table(table_id)
        assert table.name == "Road Encounters"
        assert table.use_weight is True
        assert table.use_cost is False
        assert [entry.name for entry in table.entries] == ["Goblin"]

    def test_update_table_replaces_entries(self, store: TableStore) -> None:
        table_id = store.new_table("Shop", entries="Rope")

        store.update_table(table_id, entries=[TableEntry("Lamp", Currency.silver(2))])

        assert store.get_table(table_id).entries == [TableEntry("Lamp", Currency.silver(2))]

    def test_update_unknown_table(self, store: TableStore) -> None:
        with pytest.raises(TableNotFoundError):
            store.update_table(uuid4(), name="Nope")


class TestEntries:
    """Tests for adding and removing entries."""

    def test_add_entries_resorts(self, store: TableStore) -> None:
        table_id = store.new_table("Encounters", entries="Goblin\nTroll")

        store.add_entries(table_id, "Orc\n\nbandit")

        names = [entry.name for entry in store.get_table(table_id).entries]
        assert names == ["bandit", "Goblin", "Orc", "Troll"]

    def test_remove_entry(self, store: TableStore) -> None:
        table_id = store.new_table("Encounters", entries="Goblin\nOrc")

        removed = store.remove_entry(table_id, 0)

        assert removed.name == "Goblin"
        assert [entry.name for entry in store.get_table(table_id).entries] == ["Orc"]

    def test_remove_entry_out_of_range(self, store: TableStore) -> None:
        table_id = store.new_table("Encounters", entries="Goblin")

        with pytest.raises(EntryNotFoundError) as exc_info:
            store.remove_entry(table_id, 3)

        assert exc_info.value.status_code == 404
        assert exc_info.value.index == 3


class TestRolls:
    """Tests for rolling through the store."""

    def test_roll_by_count(self, store: TableStore, rng: random.Random) -> None:
        table_id = store.new_table("Encounters", entries="Goblin\nOrc\nTroll")

        results = store.roll(table_id, CountLimit(5), rng=rng)

        assert sum(result.count for result in results) == 5

    def test_roll_by_cost_requires_costs(self, store: TableStore, rng: random.Random) -> None:
        table_id = store.new_table("Encounters", entries="Goblin")

        with pytest.raises(CostRollUnavailableError) as exc_info:
            store.roll(table_id, CostLimit(Currency.gold(1)), rng=rng)

        assert exc_info.value.kind == FailureKind.FEATURE_DISABLED
        assert exc_info.value.status_code == 409

    def test_roll_by_cost(
        self, store: TableStore, market_entries: list[TableEntry], rng: random.Random
    ) -> None:
        table_id = store.new_table("Market", use_cost=True, entries=market_entries)
        budget = Currency.gold(2)

        results = store.roll(table_id, CostLimit(budget), rng=rng)

        spent = sum((result.total_cost() for result in results), Currency())
        assert spent <= budget
        assert results

    def test_roll_uses_table_weights(self, store: TableStore, rng: random.Random) -> None:
        entries = [TableEntry("Common", weight=100), TableEntry("Rare", weight=1)]
        table_id = store.new_table("Loot", use_weight=True, entries=entries)

        results = store.roll(table_id, CountLimit(200), rng=rng)

        assert {result.entry.name: result.count for result in results}["Common"] > 150

    def test_roll_ignores_weights_when_disabled(
        self, store: TableStore, rng: random.Random
    ) -> None:
        entries = [TableEntry("Common", weight=100), TableEntry("Rare", weight=1)]
        table_id = store.new_table("Loot", entries=entries)

        results = store.roll(table_id, CountLimit(200), rng=rng)

        assert 60 < {result.entry.name: result.count for result in results}["Common"] < 140

    def test_roll_one(self, store: TableStore, rng: random.Random) -> None:
        table_id = store.new_table("Encounters", entries="Goblin")

        entry = store.roll_one(table_id, rng=rng)

        assert entry is not None
        assert entry.name == "Goblin"

    def test_roll_one_empty_table(self, store: TableStore, rng: random.Random) -> None:
        table_id = store.new_table("Empty")
        assert store.roll_one(table_id, rng=rng) is None


class TestFiles:
    """Tests for saving and opening tables."""

    def test_save_then_open(
        self, store: TableStore, market_entries: list[TableEntry], tmp_path: Path
    ) -> None:
        table_id = store.new_table("Market", use_cost=True, entries=market_entries)
        store.new_table("Other")
        path = tmp_path / "market.json"

        store.save_table(table_id, path)
        opened_id = store.open_table(path)

        saved = store.get_table(table_id)
        opened = store.get_table(opened_id)
        assert saved.path == path
        assert opened_id != table_id
        assert opened.name == "Market"
        assert opened.entries == market_entries
        assert opened.order == 2

    def test_save_unknown_table(self, store: TableStore, tmp_path: Path) -> None:
        with pytest.raises(TableNotFoundError):
            store.save_table(uuid4(), tmp_path / "missing.json")


class TestConcurrency:
    def test_concurrent_edits_are_not_lost(self, store: TableStore) -> None:
        table_id = store.new_table("Busy")

        def add_many() -> None:
            for _ in range(100):
                store.add_entries(table_id, "Goblin")

        threads = [threading.Thread(target=add_many) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(store.get_table(table_id)) == 800
