"""
LedgerAccount model — a balance-carrying account owned by one user.

Each account has:
  - A unique 12-digit account number (random, generated at creation)
  - A free-form type label ("Checking", "Savings", ...)
  - A balance kept equal to the signed sum of its transactions
  - A 3-letter currency code

Balance management:
  `balance` is only ever written by the transaction applier, in the same
  database transaction that inserts the matching LedgerTransaction row.
  Numeric(18, 2) keeps values as Decimal on the Python side.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger.database import Base


class LedgerAccount(Base):
    __tablename__ = "ledger_accounts"

    __table_args__ = (
        Index("ix_ledger_accounts_account_number", "account_number", unique=True),
        Index("ix_ledger_accounts_owner_id", "owner_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(nullable=False)

    account_number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    account_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    balance: Mapped[Decimal] = mapped_column(
        Numeric(18, 2),
        nullable=False,
        default=Decimal("0"),
    )

    # ISO 4217 currency code
    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
