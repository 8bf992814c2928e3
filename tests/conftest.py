import random

import pytest
from httpx import ASGITransport, AsyncClient

from rolltables.main import app
from rolltables.models.currency import Currency
from rolltables.models.currency_codec import CurrencyEncoding
from rolltables.models.table import TableEntry
from rolltables.services.table_store import TableStore, get_store


@pytest.fixture
def rng() -> random.Random:
    """Deterministic random source so rolls are reproducible."""
    return random.Random(1234)


@pytest.fixture
def market_entries() -> list[TableEntry]:
    """A small priced table, already in name order."""
    return [
        TableEntry(name="Lantern", cost=Currency.silver(5)),
        TableEntry(name="Rations", cost=Currency.copper(30)),
        TableEntry(name="Rope", cost=Currency.copper(10)),
        TableEntry(name="Torch", cost=Currency.copper(1)),
    ]


@pytest.fixture
def store() -> TableStore:
    """An empty store, independent of the app-wide one."""
    return TableStore(encoding=CurrencyEncoding.FIXED)


@pytest.fixture
async def client(store: TableStore):
    """Provide an async test client backed by a fresh table store."""
    app.dependency_overrides[get_store] = lambda: store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
