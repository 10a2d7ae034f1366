"""
Tests for payments and saved payees.

These tests verify:
  - A payment is a debit in the account's currency with a derived description
  - Payments obey the same insufficient-funds rule as any debit
  - Payees can be saved, listed and cleared, once per account number per owner
"""

from decimal import Decimal

import pytest

from ledger.exceptions import DuplicatePayeeError, InsufficientFundsError, InvalidRequestError
from ledger.services.applier import payment_description


class TestPaymentDescription:
    """payment_description() picks the most specific text available."""

    def test_explicit_description_wins(self):
        assert payment_description("Rent", "Landlord", "123") == "Rent"

    def test_derived_from_payee(self):
        assert payment_description(None, "Power Co", "0123456789") == "Payment to Power Co (0123456789)"

    def test_blank_description_ignored(self):
        assert payment_description("  ", "Power Co", "42") == "Payment to Power Co (42)"

    def test_no_payee(self):
        assert payment_description(None, None, None) == "Payment"
        assert payment_description("", " ", "42") == "Payment"


class TestMakePayment:

    async def test_payment_is_debit_in_account_currency(self, ledger, owner_id):
        account = await ledger.create_account(owner_id, currency="AUD", initial_deposit=Decimal("100"))

        txn = await ledger.make_payment(
            owner_id, account.id, Decimal("40"),
            payee_name="Water Board", payee_account_number="998877",
        )

        assert txn.type == "debit"
        assert txn.currency == "AUD"
        assert txn.description == "Payment to Water Board (998877)"
        assert (await ledger.list_accounts(owner_id))[0].balance == Decimal("60")

    async def test_payment_cannot_overdraw(self, ledger, owner_id):
        account = await ledger.create_account(owner_id, initial_deposit=Decimal("10"))

        with pytest.raises(InsufficientFundsError):
            await ledger.make_payment(owner_id, account.id, Decimal("10.01"), payee_name="Shop")

        assert (await ledger.list_accounts(owner_id))[0].balance == Decimal("10")


class TestPayees:
    """Payee operations against the durable store."""

    async def test_create_and_list(self, ledger, owner_id):
        first = await ledger.create_payee(owner_id, "Alice", "111")
        second = await ledger.create_payee(owner_id, " Bob ", " 222 ")

        assert second.name == "Bob"
        assert second.account_number == "222"
        payees = await ledger.list_payees(owner_id)
        assert {p.id for p in payees} == {first.id, second.id}

    async def test_duplicate_account_number_rejected(self, ledger, owner_id, other_owner_id):
        await ledger.create_payee(owner_id, "Alice", "111")

        with pytest.raises(DuplicatePayeeError):
            await ledger.create_payee(owner_id, "Alice again", "111")

        # Another owner may save the same number
        await ledger.create_payee(other_owner_id, "Alice", "111")

    @pytest.mark.parametrize("name,number", [("", "111"), ("Alice", "  "), (None, None)])
    async def test_blank_fields_rejected(self, ledger, owner_id, name, number):
        with pytest.raises(InvalidRequestError):
            await ledger.create_payee(owner_id, name, number)

    async def test_delete_removes_only_own_payees(self, ledger, owner_id, other_owner_id):
        await ledger.create_payee(owner_id, "Alice", "111")
        await ledger.create_payee(owner_id, "Bob", "222")
        await ledger.create_payee(other_owner_id, "Carol", "333")

        assert await ledger.delete_payees(owner_id) == 2
        assert await ledger.list_payees(owner_id) == []
        assert len(await ledger.list_payees(other_owner_id)) == 1

    async def test_durable_store_has_no_demo_payee(self, ledger, owner_id):
        assert await ledger.list_payees(owner_id) == []


class TestPaymentEndpoints:
    """HTTP tests for /payments and /payees."""

    async def test_pay_with_derived_description(self, client):
        account = (await client.post("/accounts", json={"initial_deposit": "50"})).json()

        response = await client.post(
            "/payments",
            json={
                "account_id": account["id"],
                "amount": "20",
                "payee_name": "Gym",
                "payee_account_number": "555",
            },
        )
        assert response.status_code == 201
        assert response.json()["type"] == "debit"
        assert response.json()["description"] == "Payment to Gym (555)"

    async def test_overdrawn_payment_is_422(self, client):
        account = (await client.post("/accounts", json={})).json()
        response = await client.post("/payments", json={"account_id": account["id"], "amount": "1"})
        assert response.status_code == 422
        assert response.json()["error_type"] == "insufficient_funds"

    async def test_payee_lifecycle(self, client):
        created = await client.post("/payees", json={"name": "Alice", "account_number": "111"})
        assert created.status_code == 201
        assert set(created.json()) == {"id", "name", "account_number"}

        duplicate = await client.post("/payees", json={"name": "Alice", "account_number": "111"})
        assert duplicate.status_code == 409
        assert duplicate.json()["error_type"] == "duplicate_payee"

        listing = await client.get("/payees")
        assert [p["name"] for p in listing.json()] == ["Alice"]

        deleted = await client.delete("/payees")
        assert deleted.json() == {"deleted": 1}
        assert (await client.get("/payees")).json() == []

    async def test_blank_payee_name_is_400(self, client):
        response = await client.post("/payees", json={"name": "   ", "account_number": "111"})
        assert response.status_code == 400
        assert response.json()["error_type"] == "invalid_request"

    async def test_payees_are_private(self, client, second_client):
        await client.post("/payees", json={"name": "Alice", "account_number": "111"})
        assert (await second_client.get("/payees")).json() == []
