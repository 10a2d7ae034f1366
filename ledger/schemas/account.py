"""
Pydantic schemas for account endpoints.

Monetary amounts are Decimal with two decimal places and serialize as
strings in JSON (e.g. "100.00") so no precision is lost in transit.
"""

import uuid
from decimal import Decimal

from pydantic import BaseModel, Field


class AccountCreateRequest(BaseModel):
    """Request body for POST /accounts. Every field is optional."""
    account_type: str | None = Field(
        default=None,
        max_length=50,
        description="Free-form label such as Checking or Savings (default: Checking)",
    )
    currency: str | None = Field(
        default=None,
        max_length=3,
        description="3-letter currency code (default: configured currency)",
    )
    initial_deposit: Decimal | None = Field(
        default=None,
        ge=0,
        decimal_places=2,
        description="Recorded as an 'Initial deposit' credit when positive",
    )


class AccountResponse(BaseModel):
    """Public representation of an account."""
    id: uuid.UUID
    account_number: str
    account_type: str
    balance: Decimal
    currency: str

    model_config = {"from_attributes": True}
