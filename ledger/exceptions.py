"""
Custom exception classes and FastAPI exception handlers.

The ledger raises domain-specific errors without importing HTTP concepts;
the handler layer translates them into responses. Two families exist:

Business errors (callers must be able to tell them apart):
    LedgerError (base)
    ├── AccountNotFoundError     — no such account owned by the caller (404)
    ├── InsufficientFundsError   — debit exceeds balance, nothing changed (422)
    ├── UnauthorizedAccessError  — mutation hit a row the caller doesn't own (403)
    ├── InvalidRequestError      — caller-side validation failed (400)
    └── DuplicatePayeeError      — payee account number already saved (409)

Storage errors (recovered inside the ledger service, see ledger_service.py):
    LedgerError (base)
    ├── SchemaMissingError       — a ledger table does not exist yet
    └── StorageUnavailableError  — anything else the backing store threw (503)

SchemaMissingError never reaches the HTTP layer when healing succeeds, and
StorageUnavailableError only does once every fallback is exhausted.
"""

import uuid
from decimal import Decimal

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


# ---------------------------------------------------------------------------
# Base exceptions
# ---------------------------------------------------------------------------

class LedgerError(Exception):
    """Base exception for all ledger errors."""

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


class LedgerBusinessError(LedgerError):
    """Errors that carry meaning for the caller and are never retried."""


# ---------------------------------------------------------------------------
# Business errors
# ---------------------------------------------------------------------------

class AccountNotFoundError(LedgerBusinessError):
    """Raised when the caller owns no account with the requested id."""

    def __init__(self, account_id: uuid.UUID):
        self.account_id = account_id
        super().__init__(f"Account {account_id} not found")


class InsufficientFundsError(LedgerBusinessError):
    """
    Raised when a debit is larger than the current balance.

    Attributes:
        account_id: The account that lacks sufficient funds.
        requested: The amount the caller tried to debit.
        available: The balance at the moment of the check.
    """

    def __init__(self, account_id: uuid.UUID, requested: Decimal, available: Decimal):
        self.account_id = account_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient funds: requested {requested}, available {available}"
        )


class UnauthorizedAccessError(LedgerBusinessError):
    """Raised when a mutation targets a row the caller does not own."""

    def __init__(self, detail: str = "You do not have access to this resource"):
        super().__init__(detail)


class InvalidRequestError(LedgerBusinessError):
    """Raised for requests rejected before any store is touched."""


class DuplicatePayeeError(LedgerBusinessError):
    """Raised when an owner saves the same payee account number twice."""

    def __init__(self, account_number: str):
        self.account_number = account_number
        super().__init__(f"Payee with account number {account_number} already exists")


# ---------------------------------------------------------------------------
# Storage errors
# ---------------------------------------------------------------------------

class SchemaMissingError(LedgerError):
    """The backing store reported that a ledger table does not exist."""

    def __init__(self, detail: str = "Ledger schema is missing"):
        super().__init__(detail)


class StorageUnavailableError(LedgerError):
    """Any other backing-store failure."""

    def __init__(self, detail: str = "Ledger storage is unavailable"):
        super().__init__(detail)


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register ledger exception handlers with the FastAPI application.

    Every handler responds with {"detail": ..., "error_type": ...}.
    """

    @app.exception_handler(InsufficientFundsError)
    async def insufficient_funds_handler(
        request: Request, exc: InsufficientFundsError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "detail": exc.detail,
                "error_type": "insufficient_funds",
                "requested": str(exc.requested),
                "available": str(exc.available),
            },
        )

    @app.exception_handler(AccountNotFoundError)
    async def account_not_found_handler(
        request: Request, exc: AccountNotFoundError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"detail": exc.detail, "error_type": "account_not_found"},
        )

    @app.exception_handler(UnauthorizedAccessError)
    async def unauthorized_access_handler(
        request: Request, exc: UnauthorizedAccessError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=403,
            content={"detail": exc.detail, "error_type": "unauthorized_access"},
        )

    @app.exception_handler(InvalidRequestError)
    async def invalid_request_handler(
        request: Request, exc: InvalidRequestError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": exc.detail, "error_type": "invalid_request"},
        )

    @app.exception_handler(DuplicatePayeeError)
    async def duplicate_payee_handler(
        request: Request, exc: DuplicatePayeeError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={"detail": exc.detail, "error_type": "duplicate_payee"},
        )

    @app.exception_handler(StorageUnavailableError)
    async def storage_unavailable_handler(
        request: Request, exc: StorageUnavailableError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content={"detail": exc.detail, "error_type": "storage_unavailable"},
        )
