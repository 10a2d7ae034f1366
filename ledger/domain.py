"""
Ledger data model — the entity shapes both stores hand back to callers.

These are plain frozen dataclasses rather than ORM rows so the durable and
volatile stores return exactly the same types, and so nothing outside a store
can mutate a balance by accident. The ORM mapping lives in ledger.models.

Money is Decimal throughout. Transaction amounts are always positive; the
direction is carried by `type`.
"""

import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


class TransactionType:
    CREDIT = "credit"
    DEBIT = "debit"

    ALL = (CREDIT, DEBIT)


INITIAL_DEPOSIT_DESCRIPTION = "Initial deposit"

# 12-digit account numbers: 100000000000 .. 999999999999
_ACCOUNT_NUMBER_FLOOR = 100_000_000_000
_ACCOUNT_NUMBER_SPAN = 900_000_000_000


def generate_account_number() -> str:
    """
    Generate a random 12-digit account number.

    Drawn from a CSPRNG so numbers can't be guessed from their neighbours.
    Uniqueness is enforced by the store that persists the number.
    """
    return str(secrets.randbelow(_ACCOUNT_NUMBER_SPAN) + _ACCOUNT_NUMBER_FLOOR)


@dataclass(frozen=True)
class Account:
    id: uuid.UUID
    owner_id: uuid.UUID
    account_number: str
    account_type: str
    balance: Decimal
    currency: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Transaction:
    id: uuid.UUID
    account_id: uuid.UUID
    owner_id: uuid.UUID
    amount: Decimal
    currency: str
    type: str
    description: str
    created_at: datetime


@dataclass(frozen=True)
class Payee:
    id: uuid.UUID
    owner_id: uuid.UUID
    name: str
    account_number: str
    created_at: datetime
