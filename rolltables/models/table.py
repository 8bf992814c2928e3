"""
Random tables, their entries, and roll outcomes.

A Table owns an ordered list of TableEntry values. Entry order is insertion
order until `Table.sort()` is called, which orders entries case-insensitively
by name.
"""

import copy
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from uuid import UUID, uuid4

from rolltables.models.currency import Currency

# =============================================================================
# ENTRY LIMITS (Constants — NOT Configurable)
# =============================================================================

MIN_ENTRY_WEIGHT = 1
MAX_ENTRY_WEIGHT = 100


def clamp_weight(weight: int) -> int:
    """Clamp an entry weight into [MIN_ENTRY_WEIGHT, MAX_ENTRY_WEIGHT]."""
    return max(MIN_ENTRY_WEIGHT, min(MAX_ENTRY_WEIGHT, weight))


def entry_sort_key(entry: "TableEntry") -> str:
    """Case-insensitive name ordering used for tables and roll results."""
    return entry.name.lower()


@dataclass
class TableEntry:
    """
    A single row of a random table.

    Attributes:
        name: Text shown when the entry is rolled
        cost: Price of the entry, used by cost-limited rolls
        weight: Relative likelihood (1-100) when the table uses weights
    """

    name: str = ""
    cost: Currency = field(default_factory=Currency)
    weight: int = MIN_ENTRY_WEIGHT

    def __post_init__(self) -> None:
        self.weight = clamp_weight(self.weight)

    def set_weight(self, weight: int) -> None:
        self.weight = clamp_weight(weight)

    def __lt__(self, other: "TableEntry") -> bool:
        if not isinstance(other, TableEntry):
            return NotImplemented
        return entry_sort_key(self) < entry_sort_key(other)


@dataclass
class Table:
    """
    A named random table.

    Attributes:
        name: Display name of the table
        use_cost: Whether entries carry costs (enables cost-limited rolls)
        use_weight: Whether entry weights affect roll likelihood
        entries: Ordered entries owned by this table
        id: Unique identifier, regenerated whenever a table is opened
        order: Tab position in the UI (not persisted)
        path: File the table was last saved to or opened from
    """

    name: str
    use_cost: bool = False
    use_weight: bool = False
    entries: list[TableEntry] = field(default_factory=list)
    id: UUID = field(default_factory=uuid4)
    order: int = 0
    path: Path | None = None

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[TableEntry]:
        return iter(self.entries)

    def push(self, entry: TableEntry | str) -> None:
        """Append an entry. A bare string becomes a zero-cost entry."""
        if isinstance(entry, str):
            entry = TableEntry(name=entry)
        self.entries.append(entry)

    def extend(self, entries: Iterable[TableEntry | str]) -> None:
        for entry in entries:
            self.push(entry)

    def get(self, index: int) -> TableEntry | None:
        if 0 <= index < len(self.entries):
            return self.entries[index]
        return None

    def remove(self, index: int) -> TableEntry | None:
        """Remove and return the entry at `index`, or None if out of range."""
        if 0 <= index < len(self.entries):
            return self.entries.pop(index)
        return None

    def sort(self) -> None:
        """Sort entries case-insensitively by name (stable)."""
        self.entries.sort(key=entry_sort_key)

    def total_cost(self) -> Currency:
        """Sum of all entry costs."""
        return sum((entry.cost for entry in self.entries), Currency())

    def snapshot(self) -> "Table":
        """Deep copy, independent of later mutation."""
        return copy.deepcopy(self)


# =============================================================================
# ROLLS
# =============================================================================


class RollType(str, Enum):
    """Stopping rule selected by the user."""

    COUNT = "count"
    COST = "cost"


@dataclass(frozen=True)
class CountLimit:
    """Stop after `count` draws."""

    count: int

    @property
    def roll_type(self) -> RollType:
        return RollType.COUNT


@dataclass(frozen=True)
class CostLimit:
    """Keep drawing while an entry fits in the remaining `budget`."""

    budget: Currency

    @property
    def roll_type(self) -> RollType:
        return RollType.COST


RollLimit = CountLimit | CostLimit


@dataclass(frozen=True)
class RollResult:
    """
    How many times one entry was drawn in a single roll.

    `entry` is a snapshot taken at draw time; later edits to the table do
    not affect it.
    """

    count: int
    entry: TableEntry

    def total_cost(self) -> Currency:
        return self.entry.cost * self.count


@dataclass(frozen=True)
class IdNamePair:
    """Listing item for an open table."""

    id: UUID
    name: str
