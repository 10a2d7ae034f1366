"""Pydantic schemas for payee endpoints."""

import uuid

from pydantic import BaseModel, Field


class PayeeCreateRequest(BaseModel):
    """Request body for POST /payees."""
    name: str = Field(min_length=1, max_length=200)
    account_number: str = Field(min_length=1, max_length=50)


class PayeeResponse(BaseModel):
    id: uuid.UUID
    name: str
    account_number: str

    model_config = {"from_attributes": True}


class PayeeDeleteResponse(BaseModel):
    deleted: int
