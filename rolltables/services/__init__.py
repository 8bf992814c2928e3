"""
Services: the sampling engine and the table store.
"""

from rolltables.services.sampler import (
    RandomnessUnavailableError,
    create_rng,
    roll_one,
    sample,
)
from rolltables.services.table_store import (
    CostRollUnavailableError,
    EntryNotFoundError,
    TableNotFoundError,
    TableStore,
    get_store,
)

__all__ = [
    "CostRollUnavailableError",
    "EntryNotFoundError",
    "RandomnessUnavailableError",
    "TableNotFoundError",
    "TableStore",
    "create_rng",
    "get_store",
    "roll_one",
    "sample",
]
