"""
Accounts router — open and list the caller's accounts.

  POST /accounts   — Open an account (optionally with an initial deposit)
  GET  /accounts   — List own accounts

Both endpoints are scoped to the bearer token's owner id; there is no way
to name another user's accounts here.
"""

import uuid

from fastapi import APIRouter, Depends, status

from ledger.dependencies import get_current_owner_id, get_ledger_service
from ledger.schemas.account import AccountCreateRequest, AccountResponse
from ledger.services.ledger_service import LedgerService

router = APIRouter()


@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a new account",
)
async def create_account(
    request: AccountCreateRequest,
    owner_id: uuid.UUID = Depends(get_current_owner_id),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """
    Open an account for the authenticated caller.

    The account gets a random 12-digit account number. A positive
    **initial_deposit** becomes the account's first credit transaction.
    """
    return await ledger.create_account(
        owner_id=owner_id,
        account_type=request.account_type,
        currency=request.currency,
        initial_deposit=request.initial_deposit,
    )


@router.get(
    "",
    response_model=list[AccountResponse],
    summary="List your accounts",
)
async def list_accounts(
    owner_id: uuid.UUID = Depends(get_current_owner_id),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """List all accounts owned by the authenticated caller."""
    return await ledger.list_accounts(owner_id)
