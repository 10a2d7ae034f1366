"""
Store capability interface.

The ledger service talks to exactly one of two implementations per call:

  - DurableStore  (stores/durable.py)  — SQL via SQLAlchemy, survives restarts
  - VolatileStore (stores/volatile.py) — process memory, used when no database
                                          is configured or the database failed

Every operation is scoped by owner_id. An account or transaction that
belongs to someone else is indistinguishable from one that doesn't exist.
"""

import uuid
from abc import ABC, abstractmethod
from decimal import Decimal

from ledger.domain import Account, Payee, Transaction


class LedgerStore(ABC):
    """Abstract interface shared by the durable and volatile stores."""

    name: str = "store"

    @abstractmethod
    async def create_account(
        self,
        owner_id: uuid.UUID,
        account_type: str,
        currency: str,
        initial_credit: Decimal,
    ) -> Account:
        """Create an account; a positive initial_credit is recorded as a credit."""

    @abstractmethod
    async def list_accounts(self, owner_id: uuid.UUID) -> list[Account]:
        """All accounts owned by owner_id."""

    @abstractmethod
    async def list_transactions(
        self,
        owner_id: uuid.UUID,
        account_id: uuid.UUID | None = None,
    ) -> list[Transaction]:
        """Owner's transactions, newest first, optionally for one account."""

    @abstractmethod
    async def apply_transaction(
        self,
        owner_id: uuid.UUID,
        account_id: uuid.UUID,
        amount: Decimal,
        currency: str | None,
        txn_type: str,
        description: str,
    ) -> Transaction:
        """Validate funds, move the balance and append the record atomically."""

    @abstractmethod
    async def list_payees(self, owner_id: uuid.UUID) -> list[Payee]:
        """Owner's saved payees, newest first."""

    @abstractmethod
    async def create_payee(
        self,
        owner_id: uuid.UUID,
        name: str,
        account_number: str,
    ) -> Payee:
        """Save a payee; duplicates per owner raise DuplicatePayeeError."""

    @abstractmethod
    async def delete_payees(self, owner_id: uuid.UUID) -> int:
        """Remove all of the owner's payees and return how many were removed."""
