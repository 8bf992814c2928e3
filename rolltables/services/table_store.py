"""
Table Store — The In-Memory Collection of Open Tables.

Holds every open table keyed by id. Each command takes the store lock to
find a table, then holds that table's own lock for the whole operation
through `lease()`.

INVARIANTS:
- A table is only read or mutated while its lease is held
- Callers never receive live tables; `get_table` returns snapshots
- Tab order is assigned on insert as the current number of tables
"""

import logging
import random
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock
from uuid import UUID

from rolltables.config import settings
from rolltables.models.currency_codec import CurrencyEncoding
from rolltables.models.failure import FailureKind, KnownError, RefusalError
from rolltables.models.table import (
    CostLimit,
    IdNamePair,
    RollLimit,
    RollResult,
    Table,
    TableEntry,
)
from rolltables.persistence.table_file import read_table_file, write_table_file
from rolltables.services.sampler import roll_one, sample

logger = logging.getLogger(__name__)


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class TableNotFoundError(KnownError):
    """Raised when no open table has the requested id."""

    def __init__(self, table_id: UUID):
        self.table_id = table_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Could not find table with id '{table_id}'",
            detail="id",
            status_code=404,
        )


class EntryNotFoundError(KnownError):
    """Raised when an entry index is outside the table."""

    def __init__(self, table_id: UUID, index: int):
        self.table_id = table_id
        self.index = index
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Could not find entry with index '{index}'",
            detail=f"index (table '{table_id}')",
            status_code=404,
        )


class CostRollUnavailableError(RefusalError):
    """Raised when a cost-limited roll targets a table without costs."""

    def __init__(self, table_id: UUID):
        self.table_id = table_id
        super().__init__(
            kind=FailureKind.FEATURE_DISABLED,
            message="This table does not use costs, so it cannot be rolled by cost.",
            detail=f"use_cost is false for table '{table_id}'",
            suggestion="Enable costs for the table or roll by count.",
        )


# =============================================================================
# STORE
# =============================================================================


def parse_entry_lines(text: str) -> list[TableEntry]:
    """One zero-cost entry per non-blank line, trimmed."""
    return [TableEntry(name=line.strip()) for line in text.splitlines() if line.strip()]


@dataclass
class _Slot:
    table: Table
    lock: Lock = field(default_factory=Lock)


@dataclass
class TableStore:
    """
    Thread-safe store of open tables.

    Attributes:
        encoding: Currency encoding used when saving table files
    """

    encoding: CurrencyEncoding = CurrencyEncoding.FIXED
    _slots: dict[UUID, _Slot] = field(default_factory=dict, repr=False)
    _lock: Lock = field(default_factory=Lock, repr=False)

    @contextmanager
    def lease(self, table_id: UUID) -> Iterator[Table]:
        """
        Exclusive access to one table for the duration of the block.

        Raises:
            TableNotFoundError: If no table has this id
        """
        with self._lock:
            slot = self._slots.get(table_id)
        if slot is None:
            raise TableNotFoundError(table_id)

        with slot.lock:
            yield slot.table

    def _insert(self, table: Table) -> UUID:
        with self._lock:
            table.order = len(self._slots)
            self._slots[table.id] = _Slot(table)
        return table.id

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    def list_tables(self) -> list[IdNamePair]:
        """Id/name pairs of every open table, in tab order."""
        logger.info("Getting tables...")
        with self._lock:
            slots = list(self._slots.values())

        pairs: list[tuple[int, IdNamePair]] = []
        for slot in slots:
            with slot.lock:
                pairs.append((slot.table.order, IdNamePair(slot.table.id, slot.table.name)))

        return [pair for _, pair in sorted(pairs, key=lambda item: item[0])]

    def get_table(self, table_id: UUID) -> Table:
        logger.info("Getting table with id '%s'...", table_id)
        with self.lease(table_id) as table:
            return table.snapshot()

    def new_table(
        self,
        name: str,
        use_cost: bool = False,
        use_weight: bool = False,
        entries: Iterable[TableEntry] | str | None = None,
    ) -> UUID:
        """
        Create a table and return its id.

        `entries` may be TableEntry values or newline-separated names.
        Entries are sorted by name.
        """
        logger.info("Adding new table with name '%s'...", name)
        table = Table(name=name, use_cost=use_cost, use_weight=use_weight)

        if isinstance(entries, str):
            table.extend(parse_entry_lines(entries))
        elif entries is not None:
            table.extend(entries)
        table.sort()

        return self._insert(table)

    def remove_table(self, table_id: UUID) -> Table:
        logger.info("Removing table with id '%s'...", table_id)
        with self._lock:
            slot = self._slots.pop(table_id, None)
        if slot is None:
            raise TableNotFoundError(table_id)

        with slot.lock:
            return slot.table

    def update_table(
        self,
        table_id: UUID,
        name: str | None = None,
        use_cost: bool | None = None,
        use_weight: bool | None = None,
        entries: Iterable[TableEntry] | None = None,
    ) -> None:
        """Change the given fields; None leaves a field as it is."""
        logger.info("Updating table with id '%s'...", table_id)
        with self.lease(table_id) as table:
            if name is not None:
                table.name = name
            if use_cost is not None:
                table.use_cost = use_cost
            if use_weight is not None:
                table.use_weight = use_weight
            if entries is not None:
                table.entries = list(entries)

    # -------------------------------------------------------------------------
    # Entries
    # -------------------------------------------------------------------------

    def add_entries(self, table_id: UUID, text: str) -> None:
        """Add one entry per non-blank line, then re-sort the table."""
        logger.info("Adding %r to table with id '%s'...", text, table_id)
        with self.lease(table_id) as table:
            table.extend(parse_entry_lines(text))
            table.sort()

    def remove_entry(self, table_id: UUID, index: int) -> TableEntry:
        logger.info("Removing entry %d from table with id '%s'...", index, table_id)
        with self.lease(table_id) as table:
            entry = table.remove(index)
        if entry is None:
            raise EntryNotFoundError(table_id, index)
        return entry

    # -------------------------------------------------------------------------
    # Rolls
    # -------------------------------------------------------------------------

    def roll_one(self, table_id: UUID, rng: random.Random | None = None) -> TableEntry | None:
        logger.info("Getting random entry from table with id '%s'...", table_id)
        with self.lease(table_id) as table:
            return roll_one(table.entries, use_weights=table.use_weight, rng=rng)

    def roll(
        self,
        table_id: UUID,
        limit: RollLimit,
        allow_duplicates: bool = True,
        rng: random.Random | None = None,
    ) -> list[RollResult]:
        """
        Roll a set of entries from a table.

        Weights apply when the table uses weights.

        Raises:
            TableNotFoundError: If no table has this id
            CostRollUnavailableError: For a cost limit on a table without costs
        """
        logger.info(
            "Getting random entries from table with id '%s' (%s)...",
            table_id,
            limit.roll_type.value,
        )
        with self.lease(table_id) as table:
            if isinstance(limit, CostLimit) and not table.use_cost:
                raise CostRollUnavailableError(table_id)

            results = sample(
                table.entries,
                limit,
                allow_duplicates=allow_duplicates,
                use_weights=table.use_weight,
                rng=rng,
            )

        logger.info("Random rolls: %s", results)
        return results

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    def save_table(self, table_id: UUID, path: Path) -> None:
        logger.info("Saving table with id '%s' to %s...", table_id, path)
        with self.lease(table_id) as table:
            write_table_file(table, path, self.encoding)
            table.path = path

    def open_table(self, path: Path) -> UUID:
        logger.info("Opening table from %s...", path)
        table = read_table_file(path)
        return self._insert(table)


# Shared store for the running app
store = TableStore(encoding=settings.currency_encoding)


def get_store() -> TableStore:
    """
    Dependency that provides the table store.

    Usage in FastAPI:
        @router.get("/tables")
        async def list_tables(store: TableStore = Depends(get_store)):
            ...
    """
    return store
