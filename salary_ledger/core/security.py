"""
JWT helpers for identifying the authenticated caller.

Accounts and logins live in an external identity service that signs access
tokens with the shared ``SECRET_KEY``. ``create_access_token`` mints tokens in
the same format for that service and for test clients.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from salary_ledger.core.config import settings
from salary_ledger.core.exceptions import InvalidTokenError


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def verify_token(token: str, token_type: str = "access") -> dict:
    """Decode a JWT and check its type."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        raise InvalidTokenError()

    if payload.get("type") != token_type:
        raise InvalidTokenError(f"Expected {token_type} token")

    return payload


def get_user_id_from_token(token: str) -> str:
    payload = verify_token(token)
    user_id = payload.get("sub")
    if user_id is None:
        raise InvalidTokenError("Token has no subject")
    return user_id
