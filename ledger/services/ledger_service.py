"""
Ledger service — the one entry point callers use.

Operations:
  - create_account / list_accounts
  - list_transactions / apply_transaction
  - make_payment (a debit whose description is derived from the payee)
  - list_payees / create_payee / delete_payees

Store selection (one decision point per call):

    no DATABASE_URL ─────────────────────────────────────────► volatile
    durable attempt ── ok ───────────────────────────────────► result
                    ├─ business error ───────────────────────► re-raised
                    ├─ SchemaMissingError ─► ensure_schema ─► durable retry
                    │                                          ├─ ok ► result
                    │                                          └─ fail ► StorageUnavailableError
                    └─ anything else ─► volatile (this call only)
                                          ├─ ok ► result
                                          └─ fail ► StorageUnavailableError

No call retries more than once. Falling back to memory instead of failing
the request trades durability for availability; the fallback is logged at
ERROR so it never goes unnoticed.

Every durable attempt runs under a deadline (DB_OPERATION_TIMEOUT_SECONDS).
When it expires the attempt is cancelled and its unit of work rolls back.
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import TypeVar

from ledger.config import Settings
from ledger.database import build_engine
from ledger.domain import Account, Payee, Transaction, TransactionType
from ledger.exceptions import (
    InvalidRequestError,
    LedgerBusinessError,
    SchemaMissingError,
    StorageUnavailableError,
)
from ledger.services.applier import normalize_type, payment_description, validate_money
from ledger.stores.base import LedgerStore
from ledger.stores.durable import DurableStore
from ledger.stores.volatile import VolatileStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LedgerService:
    """Facade over the durable and volatile stores."""

    def __init__(
        self,
        volatile: VolatileStore,
        durable: DurableStore | None = None,
        timeout: float | None = None,
        default_currency: str = "NZD",
        default_account_type: str = "Checking",
    ):
        self._volatile = volatile
        self._durable = durable
        self._timeout = timeout
        self._default_currency = default_currency
        self._default_account_type = default_account_type

    @property
    def durable(self) -> DurableStore | None:
        return self._durable

    @property
    def volatile(self) -> VolatileStore:
        return self._volatile

    @property
    def storage_mode(self) -> str:
        return "volatile" if self._durable is None else "durable"

    async def close(self) -> None:
        if self._durable is not None:
            await self._durable.dispose()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def _on_durable(self, call: Callable[[], Awaitable[T]]) -> T:
        return await asyncio.wait_for(call(), timeout=self._timeout)

    async def _dispatch(
        self,
        operation: str,
        call: Callable[[LedgerStore], Awaitable[T]],
    ) -> T:
        durable = self._durable
        if durable is None:
            logger.debug("No durable store configured, using volatile for %s", operation)
            return await self._fallback(operation, call)

        try:
            return await self._on_durable(lambda: call(durable))
        except LedgerBusinessError:
            raise
        except SchemaMissingError:
            logger.warning("Ledger schema missing during %s, provisioning and retrying once", operation)
            return await self._heal_and_retry(operation, durable, call)
        except Exception as exc:
            logger.error(
                "Durable store failed during %s, falling back to volatile store",
                operation,
                exc_info=exc,
            )
            return await self._fallback(operation, call)

    async def _heal_and_retry(
        self,
        operation: str,
        durable: DurableStore,
        call: Callable[[LedgerStore], Awaitable[T]],
    ) -> T:
        try:
            await self._on_durable(durable.ensure_schema)
            return await self._on_durable(lambda: call(durable))
        except LedgerBusinessError:
            raise
        except Exception as exc:
            logger.error("Ensure schema + retry failed during %s", operation, exc_info=exc)
            raise StorageUnavailableError(
                f"Ledger storage unavailable after schema repair ({operation})"
            ) from exc

    async def _fallback(
        self,
        operation: str,
        call: Callable[[LedgerStore], Awaitable[T]],
    ) -> T:
        try:
            return await call(self._volatile)
        except LedgerBusinessError:
            raise
        except Exception as exc:
            logger.error("Volatile fallback failed during %s", operation, exc_info=exc)
            raise StorageUnavailableError(f"Ledger storage unavailable ({operation})") from exc

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def create_account(
        self,
        owner_id: uuid.UUID,
        account_type: str | None = None,
        currency: str | None = None,
        initial_deposit: Decimal | None = None,
    ) -> Account:
        """
        Open an account for owner_id.

        Blank type/currency fall back to the configured defaults. A positive
        initial_deposit is recorded as an "Initial deposit" credit.
        """
        account_type = (account_type or "").strip() or self._default_account_type
        currency = (currency or "").strip().upper() or self._default_currency
        initial = Decimal("0")
        if initial_deposit is not None:
            initial = validate_money(initial_deposit, "Initial deposit", allow_zero=True)

        return await self._dispatch(
            "create_account",
            lambda store: store.create_account(owner_id, account_type, currency, initial),
        )

    async def list_accounts(self, owner_id: uuid.UUID) -> list[Account]:
        return await self._dispatch(
            "list_accounts",
            lambda store: store.list_accounts(owner_id),
        )

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def list_transactions(
        self,
        owner_id: uuid.UUID,
        account_id: uuid.UUID | None = None,
    ) -> list[Transaction]:
        """Owner's transactions, newest first; optionally for one of their accounts."""
        return await self._dispatch(
            "list_transactions",
            lambda store: store.list_transactions(owner_id, account_id),
        )

    async def apply_transaction(
        self,
        owner_id: uuid.UUID,
        account_id: uuid.UUID,
        amount: Decimal,
        txn_type: str,
        currency: str | None = None,
        description: str | None = None,
    ) -> Transaction:
        """
        Credit or debit an account and record the transaction.

        Raises:
            InvalidRequestError: amount not a positive whole-cent number,
                or type not credit/debit.
            AccountNotFoundError: owner_id has no such account.
            InsufficientFundsError: a debit exceeds the balance.
            UnauthorizedAccessError: the balance update matched no row.
        """
        amount = validate_money(amount)
        txn_type = normalize_type(txn_type)
        description = description or ""

        return await self._dispatch(
            "apply_transaction",
            lambda store: store.apply_transaction(
                owner_id, account_id, amount, currency, txn_type, description,
            ),
        )

    async def make_payment(
        self,
        owner_id: uuid.UUID,
        account_id: uuid.UUID,
        amount: Decimal,
        payee_name: str | None = None,
        payee_account_number: str | None = None,
        description: str | None = None,
    ) -> Transaction:
        """Pay a payee: a debit in the account's own currency."""
        return await self.apply_transaction(
            owner_id=owner_id,
            account_id=account_id,
            amount=amount,
            txn_type=TransactionType.DEBIT,
            description=payment_description(description, payee_name, payee_account_number),
        )

    # ------------------------------------------------------------------
    # Payees
    # ------------------------------------------------------------------

    async def list_payees(self, owner_id: uuid.UUID) -> list[Payee]:
        return await self._dispatch(
            "list_payees",
            lambda store: store.list_payees(owner_id),
        )

    async def create_payee(
        self,
        owner_id: uuid.UUID,
        name: str,
        account_number: str,
    ) -> Payee:
        name = (name or "").strip()
        account_number = (account_number or "").strip()
        if not name or not account_number:
            raise InvalidRequestError("Name and account number are required")

        return await self._dispatch(
            "create_payee",
            lambda store: store.create_payee(owner_id, name, account_number),
        )

    async def delete_payees(self, owner_id: uuid.UUID) -> int:
        return await self._dispatch(
            "delete_payees",
            lambda store: store.delete_payees(owner_id),
        )


def build_ledger_service(settings: Settings) -> LedgerService:
    """Wire the stores from configuration; no DATABASE_URL means volatile only."""
    volatile = VolatileStore(
        default_currency=settings.DEFAULT_CURRENCY,
        default_account_type=settings.DEFAULT_ACCOUNT_TYPE,
        account_number_attempts=settings.ACCOUNT_NUMBER_ATTEMPTS,
    )

    durable = None
    if settings.DATABASE_URL:
        logger.info("Configuring durable ledger store")
        durable = DurableStore(
            build_engine(settings.DATABASE_URL, echo=settings.DEBUG),
            account_number_attempts=settings.ACCOUNT_NUMBER_ATTEMPTS,
        )
    else:
        logger.warning("No DATABASE_URL configured, ledger runs on the volatile store only")

    return LedgerService(
        volatile=volatile,
        durable=durable,
        timeout=settings.DB_OPERATION_TIMEOUT_SECONDS,
        default_currency=settings.DEFAULT_CURRENCY,
        default_account_type=settings.DEFAULT_ACCOUNT_TYPE,
    )
