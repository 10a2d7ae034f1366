"""
Test fixtures for the ledger test suite.

This module provides shared fixtures used across all test files:

  - database_url / engine: a fresh file-backed SQLite database per test
  - durable_store: DurableStore on that database (schema NOT created)
  - volatile_store: a fresh in-memory store
  - ledger: LedgerService with both stores (durable first)
  - memory_ledger: LedgerService with no durable store configured
  - client / second_client: HTTP clients authenticated as two different owners

Key design decisions:
  - File-backed SQLite (in tmp_path) rather than :memory:, so every session
    gets its own connection and concurrent units of work really contend
    for the database lock.
  - The schema is deliberately left missing; tests that need it call
    ensure_schema(), and the healing tests rely on its absence.
  - Bearer tokens are minted here with python-jose; token issuance is not
    part of the ledger.
"""

import os
import uuid

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from jose import jwt

from ledger.config import settings
from ledger.database import build_engine
from ledger.dependencies import get_ledger_service
from ledger.main import app
from ledger.services.ledger_service import LedgerService
from ledger.stores.durable import DurableStore
from ledger.stores.volatile import VolatileStore


def make_token(owner_id: uuid.UUID) -> str:
    """A bearer token for owner_id, signed the way the auth service signs them."""
    return jwt.encode({"sub": str(owner_id)}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


@pytest.fixture
def auth_headers():
    """Factory: Authorization headers for any owner id."""
    return lambda owner_id: {"Authorization": f"Bearer {make_token(owner_id)}"}


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}"


@pytest_asyncio.fixture
async def engine(database_url):
    engine = build_engine(database_url)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def durable_store(engine):
    """Durable store on an empty database — no tables yet."""
    return DurableStore(engine)


@pytest_asyncio.fixture
async def ready_durable_store(durable_store):
    """Durable store with the ledger schema already provisioned."""
    await durable_store.ensure_schema()
    return durable_store


@pytest.fixture
def volatile_store():
    return VolatileStore(default_currency="NZD", default_account_type="Checking")


@pytest.fixture
def ledger(durable_store, volatile_store):
    """LedgerService with a configured durable store (schema missing at start)."""
    return LedgerService(volatile=volatile_store, durable=durable_store, timeout=10)


@pytest.fixture
def memory_ledger(volatile_store):
    """LedgerService with no durable store configured."""
    return LedgerService(volatile=volatile_store)


@pytest.fixture
def owner_id():
    return uuid.uuid4()


@pytest.fixture
def other_owner_id():
    return uuid.uuid4()


@pytest_asyncio.fixture
async def http_ledger(ledger):
    """
    Install `ledger` as the app's LedgerService.

    Overrides the get_ledger_service dependency (and app.state for the
    health check), the same way the app wires it during startup.
    """
    app.dependency_overrides[get_ledger_service] = lambda: ledger
    app.state.ledger = ledger
    yield ledger
    app.dependency_overrides.clear()
    del app.state.ledger


@pytest_asyncio.fixture
async def anonymous_client(http_ledger):
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def client(http_ledger, owner_id):
    """HTTP client authenticated as `owner_id`."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Authorization": f"Bearer {make_token(owner_id)}"},
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def second_client(http_ledger, other_owner_id):
    """
    HTTP client authenticated as a different owner.

    Use alongside `client` to verify that owner B cannot reach owner A's data.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Authorization": f"Bearer {make_token(other_owner_id)}"},
    ) as ac:
        yield ac
