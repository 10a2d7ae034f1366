"""
Durable store — the SQL-backed ledger.

THIS IS WHERE BALANCES ARE PERSISTED. It handles:
  - Account creation (with unique account number generation)
  - Atomic credit/debit application against an account
  - Owner-scoped reads of accounts, transactions and payees
  - Provisioning its own schema on demand (ensure_schema)

Atomicity:
  Every public operation is one `session.begin()` unit of work. A balance
  change and the transaction row that explains it commit together or not at
  all, including when the calling task is cancelled mid-way.

Locking:
  apply_transaction reads the account with SELECT ... FOR UPDATE, so a
  concurrent debit on the same account waits for this one to commit and
  then sees the new balance. On SQLite FOR UPDATE is a no-op; the engine
  issues BEGIN IMMEDIATE instead (see ledger/database.py).

Error translation:
  The ledger service needs to tell two storage failures apart:
    - SchemaMissingError: a ledger table doesn't exist (PostgreSQL SQLSTATE
      42P01, SQLite "no such table"); healed by ensure_schema() + one retry
    - StorageUnavailableError: everything else the driver or network threw
  Business errors (AccountNotFoundError, InsufficientFundsError, ...) pass
  through untouched.
"""

import asyncio
import logging
import re
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.schema import CreateIndex, CreateTable, DropTable

from ledger.config import settings
from ledger.database import Base, build_sessionmaker
from ledger.domain import (
    INITIAL_DEPOSIT_DESCRIPTION,
    Account,
    Payee,
    Transaction,
    TransactionType,
    generate_account_number,
)
from ledger.exceptions import (
    AccountNotFoundError,
    DuplicatePayeeError,
    LedgerError,
    SchemaMissingError,
    StorageUnavailableError,
    UnauthorizedAccessError,
)
from ledger.models import LedgerAccount, LedgerPayee, LedgerTransaction
from ledger.services.applier import resolve_currency, signed_delta
from ledger.stores.base import LedgerStore

logger = logging.getLogger(__name__)

UNDEFINED_TABLE_SQLSTATE = "42P01"
UNIQUE_VIOLATION_SQLSTATE = "23505"
ACCOUNT_NUMBER_INDEX = "ix_ledger_accounts_account_number"

_MISSING_RELATION = re.compile(r'(?<!of )\brelation "[^"]+" does not exist')


class _AccountNumberTaken(LedgerError):
    """Internal signal: the generated account number collided."""


def is_missing_relation(exc: BaseException) -> bool:
    """
    True if a driver error means "this table does not exist".

    asyncpg exposes the SQLSTATE on the adapted DBAPI error (or on its
    cause); SQLite only has the message text.
    """
    orig = getattr(exc, "orig", None)
    for candidate in (exc, orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        for attr in ("sqlstate", "pgcode"):
            if getattr(candidate, attr, None) == UNDEFINED_TABLE_SQLSTATE:
                return True

    message = str(orig if orig is not None else exc)
    if "no such table" in message.lower():
        return True
    # Excludes 'column "x" of relation "y" does not exist'
    return _MISSING_RELATION.search(message) is not None


def is_account_number_collision(exc: IntegrityError) -> bool:
    """True if an IntegrityError is the unique account-number index firing."""
    orig = getattr(exc, "orig", None)
    message = str(orig if orig is not None else exc)

    lowered = message.lower()
    unique = "unique constraint failed" in lowered or "duplicate key" in lowered
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is not None and getattr(candidate, "sqlstate", None) == UNIQUE_VIOLATION_SQLSTATE:
            unique = True

    return unique and (
        ACCOUNT_NUMBER_INDEX in message or "ledger_accounts.account_number" in message
    )


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_account(row: LedgerAccount) -> Account:
    return Account(
        id=row.id,
        owner_id=row.owner_id,
        account_number=row.account_number,
        account_type=row.account_type,
        balance=Decimal(row.balance),
        currency=row.currency,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def _to_transaction(row: LedgerTransaction) -> Transaction:
    return Transaction(
        id=row.id,
        account_id=row.account_id,
        owner_id=row.owner_id,
        amount=Decimal(row.amount),
        currency=row.currency,
        type=row.type,
        description=row.description,
        created_at=_aware(row.created_at),
    )


def _to_payee(row: LedgerPayee) -> Payee:
    return Payee(
        id=row.id,
        owner_id=row.owner_id,
        name=row.name,
        account_number=row.account_number,
        created_at=_aware(row.created_at),
    )


class DurableStore(LedgerStore):
    """Ledger store backed by a relational database through SQLAlchemy."""

    name = "durable"

    def __init__(self, engine: AsyncEngine, account_number_attempts: int | None = None):
        self._engine = engine
        self._sessionmaker = build_sessionmaker(engine)
        self._schema_lock = asyncio.Lock()
        self._account_number_attempts = (
            account_number_attempts or settings.ACCOUNT_NUMBER_ATTEMPTS
        )

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @asynccontextmanager
    async def _unit_of_work(self):
        """
        One session, one database transaction, translated errors.

        Commits when the block exits normally and rolls back on any exception
        (cancellation included).
        """
        try:
            async with self._sessionmaker() as session:
                async with session.begin():
                    yield session
        except LedgerError:
            raise
        except (SQLAlchemyError, OSError) as exc:
            if is_missing_relation(exc):
                raise SchemaMissingError(f"Ledger schema is missing: {exc}") from exc
            raise StorageUnavailableError(f"Durable store failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Schema provisioning
    # ------------------------------------------------------------------

    async def ensure_schema(self) -> None:
        """
        Create the ledger tables and indexes if they are absent.

        Pure CREATE ... IF NOT EXISTS, so it is a no-op on an existing schema
        and safe to call repeatedly. The lock keeps concurrent callers in
        this process from racing each other's DDL.
        """
        async with self._schema_lock:
            try:
                async with self._engine.begin() as conn:
                    for table in Base.metadata.sorted_tables:
                        await conn.execute(CreateTable(table, if_not_exists=True))
                        for index in sorted(table.indexes, key=lambda i: i.name):
                            await conn.execute(CreateIndex(index, if_not_exists=True))
            except (SQLAlchemyError, OSError) as exc:
                raise StorageUnavailableError(f"Could not provision ledger schema: {exc}") from exc
        logger.info("Ensured ledger tables exist")

    async def drop_schema(self) -> None:
        """Drop every ledger table. Demo resets only."""
        async with self._schema_lock:
            try:
                async with self._engine.begin() as conn:
                    for table in reversed(Base.metadata.sorted_tables):
                        await conn.execute(DropTable(table, if_exists=True))
            except (SQLAlchemyError, OSError) as exc:
                raise StorageUnavailableError(f"Could not drop ledger schema: {exc}") from exc
        logger.warning("Dropped ledger tables")

    async def dispose(self) -> None:
        await self._engine.dispose()

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
        """
        Insert a new account, and its opening credit if there is one.

        The account row is written with its final balance and the "Initial
        deposit" credit goes in the same unit of work, so balance always
        equals the sum of the account's transactions.

        A unique-index violation on the account number retries with a fresh
        number; any other failure propagates.
        """
        for attempt in range(1, self._account_number_attempts + 1):
            try:
                return await self._insert_account(owner_id, account_type, currency, initial_credit)
            except _AccountNumberTaken:
                logger.warning(
                    "Account number collision for owner %s (attempt %d/%d)",
                    owner_id, attempt, self._account_number_attempts,
                )

        raise StorageUnavailableError("Failed to generate a unique account number")

    async def _insert_account(
        self,
        owner_id: uuid.UUID,
        account_type: str,
        currency: str,
        initial_credit: Decimal,
    ) -> Account:
        now = datetime.now(timezone.utc)
        async with self._unit_of_work() as session:
            row = LedgerAccount(
                id=uuid.uuid4(),
                owner_id=owner_id,
                account_number=generate_account_number(),
                account_type=account_type,
                balance=initial_credit,
                currency=currency,
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            try:
                await session.flush()
            except IntegrityError as exc:
                if not is_account_number_collision(exc):
                    raise
                raise _AccountNumberTaken(str(exc)) from exc

            if initial_credit > 0:
                session.add(
                    LedgerTransaction(
                        id=uuid.uuid4(),
                        account_id=row.id,
                        owner_id=owner_id,
                        amount=initial_credit,
                        currency=currency,
                        type=TransactionType.CREDIT,
                        description=INITIAL_DEPOSIT_DESCRIPTION,
                        created_at=now,
                    )
                )
                await session.flush()

        return _to_account(row)

    async def list_accounts(self, owner_id: uuid.UUID) -> list[Account]:
        async with self._unit_of_work() as session:
            result = await session.execute(
                select(LedgerAccount)
                .where(LedgerAccount.owner_id == owner_id)
                .order_by(LedgerAccount.created_at)
            )
            return [_to_account(row) for row in result.scalars().all()]

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def list_transactions(
        self,
        owner_id: uuid.UUID,
        account_id: uuid.UUID | None = None,
    ) -> list[Transaction]:
        async with self._unit_of_work() as session:
            query = (
                select(LedgerTransaction)
                .where(LedgerTransaction.owner_id == owner_id)
                .order_by(LedgerTransaction.created_at.desc())
            )

            if account_id is not None:
                owned = await session.execute(
                    select(LedgerAccount.id)
                    .where(LedgerAccount.id == account_id)
                    .where(LedgerAccount.owner_id == owner_id)
                )
                if owned.scalar_one_or_none() is None:
                    raise AccountNotFoundError(account_id)
                query = query.where(LedgerTransaction.account_id == account_id)

            result = await session.execute(query)
            return [_to_transaction(row) for row in result.scalars().all()]

    async def apply_transaction(
        self,
        owner_id: uuid.UUID,
        account_id: uuid.UUID,
        amount: Decimal,
        currency: str | None,
        txn_type: str,
        description: str,
    ) -> Transaction:
        """
        Apply a credit or debit in a single read-check-write unit of work.

        Raises:
            AccountNotFoundError: If owner_id has no account with this id.
            InsufficientFundsError: If a debit exceeds the balance.
            UnauthorizedAccessError: If the balance update matched no row.
        """
        async with self._unit_of_work() as session:
            result = await session.execute(
                select(LedgerAccount)
                .where(LedgerAccount.id == account_id)
                .where(LedgerAccount.owner_id == owner_id)
                .with_for_update()  # No-op on SQLite, locks row on PostgreSQL
            )
            account = result.scalar_one_or_none()

            if account is None:
                raise AccountNotFoundError(account_id)

            delta = signed_delta(account.id, Decimal(account.balance), amount, txn_type)
            txn_currency = resolve_currency(currency, account.currency)
            now = datetime.now(timezone.utc)

            updated = await session.execute(
                update(LedgerAccount)
                .where(LedgerAccount.id == account_id)
                .where(LedgerAccount.owner_id == owner_id)
                .values(balance=LedgerAccount.balance + delta, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if updated.rowcount == 0:
                # Never append a transaction the balance doesn't reflect
                raise UnauthorizedAccessError("You do not have access to this account")

            txn = LedgerTransaction(
                id=uuid.uuid4(),
                account_id=account_id,
                owner_id=owner_id,
                amount=amount,
                currency=txn_currency,
                type=txn_type,
                description=description,
                created_at=now,
            )
            session.add(txn)
            await session.flush()

        return _to_transaction(txn)

    # ------------------------------------------------------------------
    # Payees
    # ------------------------------------------------------------------

    async def list_payees(self, owner_id: uuid.UUID) -> list[Payee]:
        async with self._unit_of_work() as session:
            result = await session.execute(
                select(LedgerPayee)
                .where(LedgerPayee.owner_id == owner_id)
                .order_by(LedgerPayee.created_at.desc())
            )
            return [_to_payee(row) for row in result.scalars().all()]

    async def create_payee(
        self,
        owner_id: uuid.UUID,
        name: str,
        account_number: str,
    ) -> Payee:
        async with self._unit_of_work() as session:
            row = LedgerPayee(
                id=uuid.uuid4(),
                owner_id=owner_id,
                name=name,
                account_number=account_number,
                created_at=datetime.now(timezone.utc),
            )
            session.add(row)
            try:
                await session.flush()
            except IntegrityError as exc:
                raise DuplicatePayeeError(account_number) from exc

        return _to_payee(row)

    async def delete_payees(self, owner_id: uuid.UUID) -> int:
        async with self._unit_of_work() as session:
            result = await session.execute(
                delete(LedgerPayee)
                .where(LedgerPayee.owner_id == owner_id)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount
