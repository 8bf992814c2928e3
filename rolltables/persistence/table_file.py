"""
Table files — JSON persistence for a single table.

File layout:

    {
      "name": "Market Stall",
      "use_cost": true,
      "use_weight": false,
      "entries": [{"name": "Rope", "cost": "AAAAAAAAAAAAAAAAAAAACg==", "weight": 1}]
    }

Costs are written in the configured CurrencyEncoding and always read with
the HYBRID rules, which accept every encoding that has been written.
Older files are accepted: missing flags default to false, a missing weight
defaults to 1, and an entry may be a bare string (zero cost).

Table ids and tab order are not stored; an opened table gets a new id.
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    FieldSerializationInfo,
    ValidationError,
    field_serializer,
    field_validator,
)

from rolltables.models.currency import Currency
from rolltables.models.currency_codec import CurrencyEncoding, decode_currency, encode_currency
from rolltables.models.failure import FailureKind, KnownError
from rolltables.models.table import MIN_ENTRY_WEIGHT, Table, TableEntry, clamp_weight

logger = logging.getLogger(__name__)


class TableFileError(KnownError):
    """Raised when a table file cannot be read or written."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message=f"Could not use table file '{path}'.",
            detail=reason,
            suggestion="Check that the path exists and holds a saved table.",
            status_code=400,
        )


class EntryFile(BaseModel):
    """One entry as stored on disk."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="ignore")

    name: str
    cost: Currency = Field(default_factory=Currency)
    weight: int = MIN_ENTRY_WEIGHT

    @field_validator("cost", mode="before")
    @classmethod
    def _decode_cost(cls, value: Any) -> Currency:
        if isinstance(value, Currency):
            return value
        return decode_currency(value, CurrencyEncoding.HYBRID)

    @field_validator("weight")
    @classmethod
    def _clamp_weight(cls, value: int) -> int:
        return clamp_weight(value)

    @field_serializer("cost")
    def _encode_cost(self, cost: Currency, info: FieldSerializationInfo) -> int | str:
        encoding = (info.context or {}).get("encoding", CurrencyEncoding.FIXED)
        return encode_currency(cost, encoding)


class TableFile(BaseModel):
    """A table as stored on disk."""

    model_config = ConfigDict(extra="ignore")

    name: str
    use_cost: bool = False
    use_weight: bool = False
    entries: list[EntryFile] = Field(default_factory=list)

    @field_validator("entries", mode="before")
    @classmethod
    def _upgrade_bare_entries(cls, value: Any) -> Any:
        # Earliest files stored entries as plain strings
        if isinstance(value, list):
            return [{"name": item} if isinstance(item, str) else item for item in value]
        return value

    @classmethod
    def from_table(cls, table: Table) -> "TableFile":
        return cls(
            name=table.name,
            use_cost=table.use_cost,
            use_weight=table.use_weight,
            entries=[
                EntryFile(name=entry.name, cost=entry.cost, weight=entry.weight)
                for entry in table.entries
            ],
        )

    def to_table(self, order: int = 0, path: Path | None = None) -> Table:
        return Table(
            name=self.name,
            use_cost=self.use_cost,
            use_weight=self.use_weight,
            entries=[
                TableEntry(name=entry.name, cost=entry.cost, weight=entry.weight)
                for entry in self.entries
            ],
            order=order,
            path=path,
        )


def write_table_file(table: Table, path: Path, encoding: CurrencyEncoding) -> None:
    """
    Write a table to `path`, creating missing parent directories.

    Raises:
        TableFileError: If the file cannot be written
    """
    document = TableFile.from_table(table).model_dump(
        mode="json", context={"encoding": encoding}
    )

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(document, indent=2), encoding="utf-8")
    except OSError as e:
        raise TableFileError(path, str(e)) from e

    logger.info("Saved table '%s' to %s", table.name, path)


def read_table_file(path: Path, order: int = 0) -> Table:
    """
    Read a table from `path`.

    Raises:
        TableFileError: If the file is missing, not UTF-8 JSON, or not a table
        CurrencyParseError: If an entry cost is malformed
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TableFileError(path, str(e)) from e

    try:
        table_file = TableFile.model_validate_json(text)
    except ValidationError as e:
        raise TableFileError(path, f"{e.error_count()} validation error(s)") from e

    logger.info("Opened table '%s' from %s", table_file.name, path)
    return table_file.to_table(order=order, path=path)
