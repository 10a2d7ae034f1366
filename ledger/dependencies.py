"""
FastAPI dependencies for caller identity and the ledger service.

  get_current_owner_id  (Bearer JWT -> owner uuid)
  get_ledger_service    (app.state -> LedgerService)

Every ledger route declares both. The owner id is the only identity the
ledger ever sees; all store queries are scoped by it.
"""

import uuid

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from ledger.security import decode_access_token
from ledger.services.ledger_service import LedgerService


# Where to look for the token: the "Authorization: Bearer <token>" header.
# Tokens come from the auth service; tokenUrl only feeds Swagger UI.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


async def get_current_owner_id(token: str = Depends(oauth2_scheme)) -> uuid.UUID:
    """
    Validate the bearer token and return the caller's id.

    Raises:
        HTTPException 401: If the token is invalid or has no usable `sub`.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
        subject: str | None = payload.get("sub")
        if subject is None:
            raise credentials_exception
        return uuid.UUID(subject)
    except (JWTError, ValueError):
        raise credentials_exception


def get_ledger_service(request: Request) -> LedgerService:
    """The process-wide LedgerService built during app startup."""
    return request.app.state.ledger
