"""
Sampling Engine — Weighted Draws Under a Stopping Rule.

Draws a random subset of table entries until a stopping rule is met:

- CountLimit(n): up to n draws
- CostLimit(budget): draws while some legal entry still fits the budget

Every draw picks a uniformly random slot of a pool of entry indices. When
weights are used, an entry occupies `weight` slots, so its chance is
proportional to its weight. When duplicates are disallowed, entries that
were already drawn are left out of the pool.

INVARIANTS:
- Stateless: a call depends only on its arguments and its random source
- Each call gets its own generator seeded from OS entropy unless the caller
  injects one
- The loop stops as soon as the pool is empty, so it always terminates
- With duplicates allowed, zero-cost entries never enter a cost-limited
  pool (they would never exhaust the budget)
- Results are aggregated per entry and sorted case-insensitively by name,
  ties keeping table order
"""

import dataclasses
import logging
import os
import random
from collections.abc import Sequence

from rolltables.models.currency import Currency
from rolltables.models.failure import FailureKind, KnownError
from rolltables.models.table import (
    CostLimit,
    CountLimit,
    RollLimit,
    RollResult,
    TableEntry,
    entry_sort_key,
)

logger = logging.getLogger(__name__)

ENTROPY_BYTES = 32


class RandomnessUnavailableError(KnownError):
    """
    Raised when the operating system cannot provide entropy for a roll.

    The roll is aborted. Nothing was drawn, so retrying is safe.
    """

    def __init__(self, reason: str):
        super().__init__(
            kind=FailureKind.SERVICE_UNAVAILABLE,
            message="Could not gather randomness for the roll.",
            detail=reason,
            suggestion="Try rolling again.",
            status_code=503,
        )


def create_rng() -> random.Random:
    """
    Create a generator seeded with fresh OS entropy.

    Raises:
        RandomnessUnavailableError: If the entropy source fails
    """
    try:
        seed = os.urandom(ENTROPY_BYTES)
    except (OSError, NotImplementedError) as e:
        raise RandomnessUnavailableError(str(e)) from e
    return random.Random(int.from_bytes(seed, "big"))


def _build_pool(
    entries: Sequence[TableEntry],
    use_weights: bool,
    drawn: dict[int, int] | None = None,
    budget: Currency | None = None,
    skip_free: bool = False,
) -> list[int]:
    """
    Expand eligible entry indices into a draw pool.

    Args:
        entries: Table entries
        use_weights: Repeat each index `weight` times instead of once
        drawn: Indices to leave out (already drawn, duplicates disallowed)
        budget: When set, only entries with cost <= budget are eligible
        skip_free: Also leave out zero-cost entries
    """
    pool: list[int] = []
    for index, entry in enumerate(entries):
        if drawn is not None and index in drawn:
            continue
        if skip_free and entry.cost.copper_amount == 0:
            continue
        if budget is not None and entry.cost > budget:
            continue
        pool.extend([index] * (entry.weight if use_weights else 1))
    return pool


def _draw_by_count(
    entries: Sequence[TableEntry],
    count: int,
    allow_duplicates: bool,
    use_weights: bool,
    rng: random.Random,
) -> dict[int, int]:
    hits: dict[int, int] = {}

    for _ in range(count):
        pool = _build_pool(entries, use_weights, drawn=None if allow_duplicates else hits)
        if not pool:
            break

        roll = pool[rng.randrange(len(pool))]
        hits[roll] = hits.get(roll, 0) + 1

    return hits


def _draw_by_cost(
    entries: Sequence[TableEntry],
    budget: Currency,
    allow_duplicates: bool,
    use_weights: bool,
    rng: random.Random,
) -> dict[int, int]:
    hits: dict[int, int] = {}
    remaining = budget

    while pool := _build_pool(
        entries,
        use_weights,
        drawn=None if allow_duplicates else hits,
        budget=remaining,
        skip_free=allow_duplicates,
    ):
        roll = pool[rng.randrange(len(pool))]
        remaining -= entries[roll].cost
        hits[roll] = hits.get(roll, 0) + 1

    return hits


def _aggregate(entries: Sequence[TableEntry], hits: dict[int, int]) -> list[RollResult]:
    ordered = sorted(hits.items(), key=lambda hit: (entry_sort_key(entries[hit[0]]), hit[0]))
    return [
        RollResult(count=count, entry=dataclasses.replace(entries[index]))
        for index, count in ordered
    ]


def sample(
    entries: Sequence[TableEntry],
    limit: RollLimit,
    allow_duplicates: bool = True,
    use_weights: bool = False,
    rng: random.Random | None = None,
) -> list[RollResult]:
    """
    Draw a random set of entries.

    An empty table, a zero count, or a budget below every entry cost
    yields an empty list.

    Args:
        entries: Entries to draw from (read only)
        limit: CountLimit or CostLimit stopping rule
        allow_duplicates: Whether an entry may be drawn more than once
        use_weights: Whether entry weights affect likelihood
        rng: Random source; a fresh entropy-seeded generator when None

    Returns:
        One RollResult per distinct drawn entry, sorted by name

    Raises:
        RandomnessUnavailableError: If no random source could be created
    """
    if rng is None:
        rng = create_rng()

    if isinstance(limit, CountLimit):
        hits = _draw_by_count(entries, limit.count, allow_duplicates, use_weights, rng)
    elif isinstance(limit, CostLimit):
        hits = _draw_by_cost(entries, limit.budget, allow_duplicates, use_weights, rng)
    else:
        raise TypeError(f"Unsupported roll limit: {limit!r}")

    results = _aggregate(entries, hits)

    logger.info(
        "roll_complete",
        extra={
            "roll_type": limit.roll_type.value,
            "entries": len(entries),
            "draws": sum(hits.values()),
            "distinct": len(results),
            "allow_duplicates": allow_duplicates,
            "use_weights": use_weights,
        },
    )

    return results


def roll_one(
    entries: Sequence[TableEntry],
    use_weights: bool = False,
    rng: random.Random | None = None,
) -> TableEntry | None:
    """Draw a single entry, or None when there are no entries."""
    pool = _build_pool(entries, use_weights)
    if not pool:
        return None

    if rng is None:
        rng = create_rng()
    return dataclasses.replace(entries[pool[rng.randrange(len(pool))]])
