"""
LedgerPayee model — a saved payment destination.

An owner can save each destination account number once; the composite
unique index enforces that at the database level.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger.database import Base


class LedgerPayee(Base):
    __tablename__ = "ledger_payees"

    __table_args__ = (
        Index(
            "ix_ledger_payees_owner_id_account_number",
            "owner_id",
            "account_number",
            unique=True,
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(nullable=False)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    account_number: Mapped[str] = mapped_column(String(50), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
