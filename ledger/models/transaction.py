"""
LedgerTransaction model — one append-only credit or debit.

Key fields:
  - type: "credit" or "debit" — the direction of money flow
  - amount: always positive (direction is carried by type)
  - owner_id: denormalized from the account so reads can be scoped by owner
    without a join
  - description: never NULL, empty string when the caller gave none

Rows are inserted once and never updated or deleted.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger.database import Base


class LedgerTransaction(Base):
    __tablename__ = "ledger_transactions"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_ledger_transactions_positive_amount"),
        Index("ix_ledger_transactions_account_id", "account_id"),
        Index("ix_ledger_transactions_owner_id", "owner_id"),
        # Listings are always newest first
        Index("ix_ledger_transactions_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("ledger_accounts.id"),
        nullable=False,
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(nullable=False)

    amount: Mapped[Decimal] = mapped_column(
        Numeric(18, 2),
        nullable=False,
    )

    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
    )

    # "credit" (money in) or "debit" (money out)
    type: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
    )

    description: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        default="",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
