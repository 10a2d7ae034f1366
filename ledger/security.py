"""
Bearer token validation.

Tokens are issued by the auth service; the ledger only needs to verify the
signature and expiry and read the caller's id from the `sub` claim. The
token is signed with SECRET_KEY using ALGORITHM (HS256 by default).
"""

from jose import jwt

from ledger.config import settings


def decode_access_token(token: str) -> dict:
    """
    Decode and validate a JWT access token.

    Verifies the signature and expiry. Returns the payload dict.

    Raises:
        JWTError: If the token is invalid, expired, or tampered with.
    """
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
