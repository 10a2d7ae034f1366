"""
Payees router — saved payment destinations.

  GET    /payees   — List own payees
  POST   /payees   — Save a payee
  DELETE /payees   — Remove all own payees
"""

import uuid

from fastapi import APIRouter, Depends, status

from ledger.dependencies import get_current_owner_id, get_ledger_service
from ledger.schemas.payee import PayeeCreateRequest, PayeeDeleteResponse, PayeeResponse
from ledger.services.ledger_service import LedgerService

router = APIRouter()


@router.get("", response_model=list[PayeeResponse], summary="List your payees")
async def list_payees(
    owner_id: uuid.UUID = Depends(get_current_owner_id),
    ledger: LedgerService = Depends(get_ledger_service),
):
    return await ledger.list_payees(owner_id)


@router.post(
    "",
    response_model=PayeeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save a payee",
)
async def create_payee(
    request: PayeeCreateRequest,
    owner_id: uuid.UUID = Depends(get_current_owner_id),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Save a payee. Each account number can be saved once per owner (409 otherwise)."""
    return await ledger.create_payee(owner_id, request.name, request.account_number)


@router.delete("", response_model=PayeeDeleteResponse, summary="Remove all your payees")
async def delete_payees(
    owner_id: uuid.UUID = Depends(get_current_owner_id),
    ledger: LedgerService = Depends(get_ledger_service),
):
    return {"deleted": await ledger.delete_payees(owner_id)}
