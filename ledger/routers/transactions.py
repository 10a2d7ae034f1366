"""
Transactions router — credits, debits and payments.

  GET  /transactions              — List own transactions, newest first
  POST /transactions              — Credit or debit one of own accounts
  POST /payments                  — Debit an account to pay a payee

Payments are ordinary debits; they only differ in how the description is
built. Both write paths go through the same atomic applier.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status

from ledger.dependencies import get_current_owner_id, get_ledger_service
from ledger.schemas.transaction import (
    PaymentRequest,
    TransactionCreateRequest,
    TransactionResponse,
)
from ledger.services.ledger_service import LedgerService

router = APIRouter()


@router.get(
    "/transactions",
    response_model=list[TransactionResponse],
    summary="List your transactions",
)
async def list_transactions(
    account_id: uuid.UUID | None = Query(None, description="Only this account's transactions"),
    owner_id: uuid.UUID = Depends(get_current_owner_id),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """List the caller's transactions, newest first."""
    return await ledger.list_transactions(owner_id, account_id)


@router.post(
    "/transactions",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a transaction (credit or debit)",
)
async def create_transaction(
    request: TransactionCreateRequest,
    owner_id: uuid.UUID = Depends(get_current_owner_id),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """
    Credit (money in) or debit (money out) one of the caller's accounts.

    Debits larger than the balance are rejected with 422 and change nothing.
    A blank **currency** falls back to the account's currency.
    """
    return await ledger.apply_transaction(
        owner_id=owner_id,
        account_id=request.account_id,
        amount=request.amount,
        txn_type=request.type,
        currency=request.currency,
        description=request.description,
    )


@router.post(
    "/payments",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Pay a payee",
)
async def create_payment(
    request: PaymentRequest,
    owner_id: uuid.UUID = Depends(get_current_owner_id),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Debit one of the caller's accounts to pay a payee."""
    return await ledger.make_payment(
        owner_id=owner_id,
        account_id=request.account_id,
        amount=request.amount,
        payee_name=request.payee_name,
        payee_account_number=request.payee_account_number,
        description=request.description,
    )
