"""
Volatile store — the in-process ledger used when there is no database.

Serves the same operations as the durable store from per-owner maps in
process memory. It is used for every call when DATABASE_URL is unset, and
for single calls that the durable store failed to serve.

One instance is created at startup and lives for the whole process; it is
never reset, so degraded-mode data survives for as long as the process does.

Differences from the durable store:
  - Account numbers are unique only within this process
  - An owner with no accounts gets a default Checking account on first list
  - An owner with no payees gets a demo payee on first list

Atomicity:
  Every read-check-write runs under one store-wide lock, so concurrent
  debits against the same account are linearizable here too. Nothing awaits
  while the lock is held.
"""

import logging
import threading
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal

from ledger.config import settings
from ledger.domain import (
    INITIAL_DEPOSIT_DESCRIPTION,
    Account,
    Payee,
    Transaction,
    TransactionType,
    generate_account_number,
)
from ledger.exceptions import AccountNotFoundError, DuplicatePayeeError, StorageUnavailableError
from ledger.services.applier import resolve_currency, signed_delta
from ledger.stores.base import LedgerStore

logger = logging.getLogger(__name__)

DEMO_PAYEE_NAME = "Demo Payee"
DEMO_PAYEE_ACCOUNT_NUMBER = "DEMO1234567890"


@dataclass
class _OwnerLedger:
    accounts: list[Account]
    transactions: list[Transaction]
    payees: list[Payee]


class VolatileStore(LedgerStore):
    """In-memory ledger store keyed by owner id."""

    name = "volatile"

    def __init__(
        self,
        default_currency: str | None = None,
        default_account_type: str | None = None,
        account_number_attempts: int | None = None,
    ):
        self._owners: dict[uuid.UUID, _OwnerLedger] = {}
        self._account_numbers: set[str] = set()
        self._lock = threading.RLock()
        self._default_currency = default_currency or settings.DEFAULT_CURRENCY
        self._default_account_type = default_account_type or settings.DEFAULT_ACCOUNT_TYPE
        self._account_number_attempts = (
            account_number_attempts or settings.ACCOUNT_NUMBER_ATTEMPTS
        )

    def _ledger_for(self, owner_id: uuid.UUID) -> _OwnerLedger:
        ledger = self._owners.get(owner_id)
        if ledger is None:
            ledger = _OwnerLedger(accounts=[], transactions=[], payees=[])
            self._owners[owner_id] = ledger
        return ledger

    def _allocate_account_number(self) -> str:
        for _ in range(self._account_number_attempts):
            number = generate_account_number()
            if number not in self._account_numbers:
                self._account_numbers.add(number)
                return number
        raise StorageUnavailableError("Failed to generate a unique account number")

    def _new_account(
        self,
        owner_id: uuid.UUID,
        account_type: str,
        currency: str,
        balance: Decimal,
    ) -> Account:
        now = datetime.now(timezone.utc)
        return Account(
            id=uuid.uuid4(),
            owner_id=owner_id,
            account_number=self._allocate_account_number(),
            account_type=account_type,
            balance=balance,
            currency=currency,
            created_at=now,
            updated_at=now,
        )

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def create_account(
        self,
        owner_id: uuid.UUID,
        account_type: str,
        currency: str,
        initial_credit: Decimal,
    ) -> Account:
        with self._lock:
            ledger = self._ledger_for(owner_id)
            account = self._new_account(owner_id, account_type, currency, initial_credit)
            ledger.accounts.append(account)

            if initial_credit > 0:
                ledger.transactions.append(
                    Transaction(
                        id=uuid.uuid4(),
                        account_id=account.id,
                        owner_id=owner_id,
                        amount=initial_credit,
                        currency=currency,
                        type=TransactionType.CREDIT,
                        description=INITIAL_DEPOSIT_DESCRIPTION,
                        created_at=account.created_at,
                    )
                )
            return account

    async def list_accounts(self, owner_id: uuid.UUID) -> list[Account]:
        with self._lock:
            ledger = self._ledger_for(owner_id)
            if not ledger.accounts:
                ledger.accounts.append(
                    self._new_account(
                        owner_id,
                        self._default_account_type,
                        self._default_currency,
                        Decimal("0"),
                    )
                )
                logger.info("Provisioned default in-memory account for %s", owner_id)
            return list(ledger.accounts)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def list_transactions(
        self,
        owner_id: uuid.UUID,
        account_id: uuid.UUID | None = None,
    ) -> list[Transaction]:
        with self._lock:
            ledger = self._ledger_for(owner_id)
            if account_id is not None and not any(a.id == account_id for a in ledger.accounts):
                raise AccountNotFoundError(account_id)

            # Appended in time order, so reversed is newest first
            return [
                txn for txn in reversed(ledger.transactions)
                if account_id is None or txn.account_id == account_id
            ]

    async def apply_transaction(
        self,
        owner_id: uuid.UUID,
        account_id: uuid.UUID,
        amount: Decimal,
        currency: str | None,
        txn_type: str,
        description: str,
    ) -> Transaction:
        with self._lock:
            ledger = self._ledger_for(owner_id)
            position = next(
                (i for i, a in enumerate(ledger.accounts) if a.id == account_id),
                None,
            )
            if position is None:
                raise AccountNotFoundError(account_id)

            account = ledger.accounts[position]
            delta = signed_delta(account.id, account.balance, amount, txn_type)
            now = datetime.now(timezone.utc)

            txn = Transaction(
                id=uuid.uuid4(),
                account_id=account_id,
                owner_id=owner_id,
                amount=amount,
                currency=resolve_currency(currency, account.currency),
                type=txn_type,
                description=description,
                created_at=now,
            )
            ledger.accounts[position] = replace(
                account,
                balance=account.balance + delta,
                updated_at=now,
            )
            ledger.transactions.append(txn)
            return txn

    # ------------------------------------------------------------------
    # Payees
    # ------------------------------------------------------------------

    async def list_payees(self, owner_id: uuid.UUID) -> list[Payee]:
        with self._lock:
            ledger = self._ledger_for(owner_id)
            if not ledger.payees:
                ledger.payees.append(
                    Payee(
                        id=uuid.uuid4(),
                        owner_id=owner_id,
                        name=DEMO_PAYEE_NAME,
                        account_number=DEMO_PAYEE_ACCOUNT_NUMBER,
                        created_at=datetime.now(timezone.utc),
                    )
                )
            return list(reversed(ledger.payees))

    async def create_payee(
        self,
        owner_id: uuid.UUID,
        name: str,
        account_number: str,
    ) -> Payee:
        with self._lock:
            ledger = self._ledger_for(owner_id)
            if any(p.account_number == account_number for p in ledger.payees):
                raise DuplicatePayeeError(account_number)

            payee = Payee(
                id=uuid.uuid4(),
                owner_id=owner_id,
                name=name,
                account_number=account_number,
                created_at=datetime.now(timezone.utc),
            )
            ledger.payees.append(payee)
            return payee

    async def delete_payees(self, owner_id: uuid.UUID) -> int:
        with self._lock:
            ledger = self._ledger_for(owner_id)
            removed = len(ledger.payees)
            ledger.payees.clear()
            return removed
