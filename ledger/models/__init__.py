"""
SQLAlchemy ORM models package.

All models are imported here so that Base.metadata knows every ledger table
before the durable store provisions the schema.
"""

from ledger.models.account import LedgerAccount  # noqa: F401
from ledger.models.transaction import LedgerTransaction  # noqa: F401
from ledger.models.payee import LedgerPayee  # noqa: F401
