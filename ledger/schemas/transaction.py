"""
Pydantic schemas for transaction and payment endpoints.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from ledger.domain import TransactionType


class TransactionCreateRequest(BaseModel):
    """Request body for POST /transactions."""
    account_id: uuid.UUID
    amount: Decimal = Field(gt=0, decimal_places=2, description="Must be positive")
    type: str = Field(description="credit or debit (case-insensitive)")
    currency: str | None = Field(default=None, max_length=3)
    description: str | None = Field(default=None, max_length=500)

    @field_validator("type")
    @classmethod
    def type_must_be_credit_or_debit(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in TransactionType.ALL:
            raise ValueError("type must be 'credit' or 'debit'")
        return normalized


class TransactionResponse(BaseModel):
    """Public representation of a transaction."""
    id: uuid.UUID
    account_id: uuid.UUID
    amount: Decimal
    currency: str
    type: str
    description: str
    created_at: datetime

    model_config = {"from_attributes": True}


class PaymentRequest(BaseModel):
    """
    Request body for POST /payments.

    Without a description, one is derived from the payee:
    "Payment to {payee_name} ({payee_account_number})", or just "Payment".
    """
    account_id: uuid.UUID
    amount: Decimal = Field(gt=0, decimal_places=2, description="Must be positive")
    payee_name: str | None = Field(default=None, max_length=200)
    payee_account_number: str | None = Field(default=None, max_length=50)
    description: str | None = Field(default=None, max_length=500)
