"""
Tests for store selection and the volatile fallback.

These tests verify:
  - No DATABASE_URL means every call is served by the volatile store
  - An unreachable or slow database degrades to the volatile store for that call
  - Business errors are never masked by a fallback
  - When the fallback fails too, callers get StorageUnavailableError (HTTP 503)
"""

import asyncio
import uuid
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from ledger.config import Settings
from ledger.database import build_engine
from ledger.dependencies import get_ledger_service
from ledger.exceptions import AccountNotFoundError, InsufficientFundsError, StorageUnavailableError
from ledger.main import app
from ledger.services.ledger_service import LedgerService, build_ledger_service
from ledger.stores.durable import DurableStore
from ledger.stores.volatile import VolatileStore


@pytest_asyncio.fixture
async def unreachable_ledger(tmp_path, volatile_store):
    """Durable store pointing at a database file that can never be opened."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing-dir' / 'ledger.db'}")
    ledger = LedgerService(volatile=volatile_store, durable=DurableStore(engine), timeout=5)
    yield ledger
    await ledger.close()


class TestStoreSelection:
    """build_ledger_service() wires stores from configuration."""

    def test_no_database_url_is_volatile(self):
        ledger = build_ledger_service(Settings(SECRET_KEY="x", DATABASE_URL=""))
        assert ledger.durable is None
        assert ledger.storage_mode == "volatile"

    async def test_database_url_is_durable(self, database_url):
        ledger = build_ledger_service(Settings(SECRET_KEY="x", DATABASE_URL=database_url))
        try:
            assert ledger.durable is not None
            assert ledger.storage_mode == "durable"
        finally:
            await ledger.close()


class TestVolatileOnly:
    """A ledger with no durable store."""

    async def test_round_trip(self, memory_ledger, owner_id):
        account = await memory_ledger.create_account(owner_id, initial_deposit=Decimal("20"))
        await memory_ledger.apply_transaction(owner_id, account.id, Decimal("5"), "debit")

        accounts = await memory_ledger.list_accounts(owner_id)
        assert accounts[0].balance == Decimal("15")
        assert len(await memory_ledger.list_transactions(owner_id)) == 2

    async def test_volatile_failure_is_unavailable(self, memory_ledger, volatile_store, owner_id, monkeypatch):
        async def broken(owner):
            raise RuntimeError("memory corrupted")

        monkeypatch.setattr(volatile_store, "list_accounts", broken)
        with pytest.raises(StorageUnavailableError):
            await memory_ledger.list_accounts(owner_id)


class TestFallback:
    """Durable failures other than a missing schema fall back to memory."""

    async def test_unreachable_database_falls_back(self, unreachable_ledger, owner_id):
        """The owner still gets a usable ledger, served from memory."""
        accounts = await unreachable_ledger.list_accounts(owner_id)
        assert len(accounts) == 1
        assert accounts[0].account_type == "Checking"

        txn = await unreachable_ledger.apply_transaction(
            owner_id, accounts[0].id, Decimal("10"), "credit",
        )
        assert txn.currency == "NZD"
        assert (await unreachable_ledger.list_accounts(owner_id))[0].balance == Decimal("10")

    async def test_business_errors_survive_fallback(self, unreachable_ledger, owner_id):
        with pytest.raises(AccountNotFoundError):
            await unreachable_ledger.apply_transaction(owner_id, uuid.uuid4(), Decimal("1"), "credit")

        account = (await unreachable_ledger.list_accounts(owner_id))[0]
        with pytest.raises(InsufficientFundsError):
            await unreachable_ledger.apply_transaction(owner_id, account.id, Decimal("1"), "debit")

    async def test_slow_database_times_out_to_fallback(self, durable_store, volatile_store, owner_id, monkeypatch):
        async def hang(owner):
            await asyncio.sleep(10)

        monkeypatch.setattr(durable_store, "list_accounts", hang)
        ledger = LedgerService(volatile=volatile_store, durable=durable_store, timeout=0.05)

        accounts = await ledger.list_accounts(owner_id)
        assert len(accounts) == 1  # the volatile default account

    async def test_double_failure_is_unavailable(self, unreachable_ledger, volatile_store, owner_id, monkeypatch):
        async def broken(owner):
            raise RuntimeError("memory corrupted")

        monkeypatch.setattr(volatile_store, "list_payees", broken)
        with pytest.raises(StorageUnavailableError):
            await unreachable_ledger.list_payees(owner_id)

    async def test_double_failure_is_503(
        self, unreachable_ledger, volatile_store, owner_id, auth_headers, monkeypatch
    ):
        async def broken(owner):
            raise RuntimeError("memory corrupted")

        monkeypatch.setattr(volatile_store, "list_accounts", broken)
        app.dependency_overrides[get_ledger_service] = lambda: unreachable_ledger
        try:
            async with AsyncClient(
                transport=ASGITransport(app=app),
                base_url="http://test",
                headers=auth_headers(owner_id),
            ) as ac:
                response = await ac.get("/accounts")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 503
        assert response.json()["error_type"] == "storage_unavailable"


class TestVolatileHealth:
    async def test_health_reports_volatile(self):
        app.state.ledger = LedgerService(volatile=VolatileStore())
        try:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
                response = await ac.get("/health")
        finally:
            del app.state.ledger

        assert response.json()["storage"] == "volatile"
