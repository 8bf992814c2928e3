from rolltables.models.currency import (
    MAX_CURRENCY_COPPER,
    Currency,
    CurrencyOverflowError,
    CurrencyParseError,
    CurrencyUnderflowError,
    Denomination,
)
from rolltables.models.currency_codec import (
    CurrencyEncoding,
    decode_currency,
    encode_currency,
)
from rolltables.models.failure import (
    STANDARD_MESSAGES,
    ApiResponse,
    FailureDetail,
    FailureKind,
    KnownError,
    OutcomeType,
    RefusalError,
)
from rolltables.models.table import (
    MAX_ENTRY_WEIGHT,
    MIN_ENTRY_WEIGHT,
    CostLimit,
    CountLimit,
    IdNamePair,
    RollLimit,
    RollResult,
    RollType,
    Table,
    TableEntry,
)

__all__ = [
    "ApiResponse",
    "CostLimit",
    "CountLimit",
    "Currency",
    "CurrencyEncoding",
    "CurrencyOverflowError",
    "CurrencyParseError",
    "CurrencyUnderflowError",
    "Denomination",
    "FailureDetail",
    "FailureKind",
    "IdNamePair",
    "KnownError",
    "MAX_CURRENCY_COPPER",
    "MAX_ENTRY_WEIGHT",
    "MIN_ENTRY_WEIGHT",
    "OutcomeType",
    "RefusalError",
    "RollLimit",
    "RollResult",
    "RollType",
    "STANDARD_MESSAGES",
    "Table",
    "TableEntry",
    "decode_currency",
    "encode_currency",
]
