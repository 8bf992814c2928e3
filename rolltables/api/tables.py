"""
Table API endpoints.

One endpoint per table command: listing, creating, editing, rolling,
saving and opening tables. Currency values travel in their formatted form
("150 gp").
"""

from pathlib import Path
from typing import Annotated, Self
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, model_validator

from rolltables.models.currency import Currency
from rolltables.models.table import (
    MAX_ENTRY_WEIGHT,
    MIN_ENTRY_WEIGHT,
    CostLimit,
    CountLimit,
    RollLimit,
    RollResult,
    RollType,
    Table,
    TableEntry,
)
from rolltables.services.table_store import TableStore, get_store

router = APIRouter(prefix="/tables", tags=["tables"])

Store = Annotated[TableStore, Depends(get_store)]


class EntryModel(BaseModel):
    """A table entry as sent over the API."""

    name: str
    cost: str = Field(
        default="0 cp",
        description="Formatted cost: '<amount> <unit>' with unit pp, gp, sp or cp",
        examples=["150 gp"],
    )
    weight: int = Field(default=MIN_ENTRY_WEIGHT, ge=MIN_ENTRY_WEIGHT, le=MAX_ENTRY_WEIGHT)

    @classmethod
    def from_entry(cls, entry: TableEntry) -> "EntryModel":
        return cls(name=entry.name, cost=str(entry.cost), weight=entry.weight)

    def to_entry(self) -> TableEntry:
        return TableEntry(name=self.name, cost=Currency.parse(self.cost), weight=self.weight)


class TableResponse(BaseModel):
    """Response model for a full table."""

    id: UUID
    name: str
    use_cost: bool
    use_weight: bool
    order: int
    entries: list[EntryModel] = Field(default_factory=list)
    path: str | None = None
    total_cost: str

    @classmethod
    def from_table(cls, table: Table) -> "TableResponse":
        return cls(
            id=table.id,
            name=table.name,
            use_cost=table.use_cost,
            use_weight=table.use_weight,
            order=table.order,
            entries=[EntryModel.from_entry(entry) for entry in table.entries],
            path=str(table.path) if table.path is not None else None,
            total_cost=str(table.total_cost()),
        )


class TableSummary(BaseModel):
    id: UUID
    name: str


class TableListResponse(BaseModel):
    """Response model for the list of open tables."""

    tables: list[TableSummary]
    count: int


class TableIdResponse(BaseModel):
    id: UUID


class NewTableRequest(BaseModel):
    """Request model for creating a table."""

    name: str = Field(..., min_length=1)
    use_cost: bool = False
    use_weight: bool = False
    entries: list[EntryModel] | str = Field(
        default_factory=list,
        description="Entry objects, or names separated by newlines",
        examples=["Goblin\nOrc\nTroll"],
    )


class UpdateTableRequest(BaseModel):
    """Request model for editing a table. Omitted fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1)
    use_cost: bool | None = None
    use_weight: bool | None = None
    entries: list[EntryModel] | None = None


class AddEntriesRequest(BaseModel):
    entries: str = Field(..., description="Entry names separated by newlines")


class EntryResponse(BaseModel):
    entry: EntryModel | None = None


class RollRequest(BaseModel):
    """Request model for rolling a set of entries."""

    roll_type: RollType
    count: int | None = Field(default=None, ge=1)
    cost: str | None = Field(default=None, examples=["5 gp"])
    allow_duplicates: bool = True

    @model_validator(mode="after")
    def _check_limit(self) -> Self:
        if self.roll_type is RollType.COUNT and self.count is None:
            raise ValueError("count is required when rolling by count")
        if self.roll_type is RollType.COST and self.cost is None:
            raise ValueError("cost is required when rolling by cost")
        return self

    def to_limit(self) -> RollLimit:
        if self.roll_type is RollType.COUNT and self.count is not None:
            return CountLimit(self.count)
        if self.roll_type is RollType.COST and self.cost is not None:
            return CostLimit(Currency.parse(self.cost))
        raise ValueError(f"No {self.roll_type.value} limit given")


class RollResultModel(BaseModel):
    count: int
    entry: EntryModel
    total_cost: str

    @classmethod
    def from_result(cls, result: RollResult) -> "RollResultModel":
        return cls(
            count=result.count,
            entry=EntryModel.from_entry(result.entry),
            total_cost=str(result.total_cost()),
        )


class RollResponse(BaseModel):
    """Response model for a roll."""

    results: list[RollResultModel]
    total_draws: int


class PathRequest(BaseModel):
    path: Path


@router.get("", response_model=TableListResponse)
def list_tables(store: Store) -> TableListResponse:
    """List open tables in tab order."""
    pairs = store.list_tables()
    return TableListResponse(
        tables=[TableSummary(id=pair.id, name=pair.name) for pair in pairs],
        count=len(pairs),
    )


@router.post("", response_model=TableIdResponse, status_code=status.HTTP_201_CREATED)
def create_table(request: NewTableRequest, store: Store) -> TableIdResponse:
    """
    Create a table.

    Entries may be given as objects or as newline-separated names
    (zero cost). Entries are sorted by name.
    """
    if isinstance(request.entries, str):
        entries: list[TableEntry] | str = request.entries
    else:
        entries = [model.to_entry() for model in request.entries]

    table_id = store.new_table(
        request.name,
        use_cost=request.use_cost,
        use_weight=request.use_weight,
        entries=entries,
    )
    return TableIdResponse(id=table_id)


@router.post("/open", response_model=TableIdResponse, status_code=status.HTTP_201_CREATED)
def open_table(request: PathRequest, store: Store) -> TableIdResponse:
    """Open a saved table file. The opened table gets a new id."""
    return TableIdResponse(id=store.open_table(request.path))


@router.get("/{table_id}", response_model=TableResponse)
def get_table(table_id: UUID, store: Store) -> TableResponse:
    return TableResponse.from_table(store.get_table(table_id))


@router.patch("/{table_id}", response_model=TableResponse)
def update_table(
    table_id: UUID,
    request: UpdateTableRequest,
    store: Store,
) -> TableResponse:
    """Edit a table. Returns the table after the edit."""
    entries = None
    if request.entries is not None:
        entries = [model.to_entry() for model in request.entries]

    store.update_table(
        table_id,
        name=request.name,
        use_cost=request.use_cost,
        use_weight=request.use_weight,
        entries=entries,
    )
    return TableResponse.from_table(store.get_table(table_id))


@router.delete("/{table_id}", response_model=TableResponse)
def remove_table(table_id: UUID, store: Store) -> TableResponse:
    """Close a table. Returns the removed table."""
    return TableResponse.from_table(store.remove_table(table_id))


@router.post("/{table_id}/entries", response_model=TableResponse)
def add_entries(
    table_id: UUID,
    request: AddEntriesRequest,
    store: Store,
) -> TableResponse:
    store.add_entries(table_id, request.entries)
    return TableResponse.from_table(store.get_table(table_id))


@router.delete("/{table_id}/entries/{index}", response_model=EntryResponse)
def remove_entry(table_id: UUID, index: int, store: Store) -> EntryResponse:
    """Remove the entry at `index`. Returns the removed entry."""
    return EntryResponse(entry=EntryModel.from_entry(store.remove_entry(table_id, index)))


@router.get("/{table_id}/random", response_model=EntryResponse)
def get_random_entry(table_id: UUID, store: Store) -> EntryResponse:
    """Roll a single entry. `entry` is null for an empty table."""
    entry = store.roll_one(table_id)
    return EntryResponse(entry=EntryModel.from_entry(entry) if entry is not None else None)


@router.post("/{table_id}/roll", response_model=RollResponse)
def roll_table(table_id: UUID, request: RollRequest, store: Store) -> RollResponse:
    """
    Roll a set of entries by count or by cost.

    Results are grouped per entry and sorted by name.
    """
    results = store.roll(table_id, request.to_limit(), allow_duplicates=request.allow_duplicates)
    return RollResponse(
        results=[RollResultModel.from_result(result) for result in results],
        total_draws=sum(result.count for result in results),
    )


@router.post("/{table_id}/save", status_code=status.HTTP_204_NO_CONTENT)
def save_table(table_id: UUID, request: PathRequest, store: Store) -> None:
    store.save_table(table_id, request.path)
