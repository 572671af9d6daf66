"""
TripMatch Backend — Bearer Token Authentication
=================================================

What:  Verifies HS256 JWTs and yields the caller's user ID.
How:   Tokens are issued by the identity provider with the user UUID in
       the `sub` claim. No user table lookup happens here; user IDs are
       opaque to this service.

    Authorization: Bearer <jwt>
        → decode with settings.jwt_secret_key / jwt_algorithm
        → uuid.UUID(payload["sub"])

Any failure (missing header, bad signature, expired, non-UUID subject)
raises AuthenticationError, which the global handler turns into a 401.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from tripmatch.config import settings
from tripmatch.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

# auto_error=False: a missing header becomes our own 401, not FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(user_id: uuid.UUID, expires_minutes: Optional[int] = None) -> str:
    """Issue a token for `user_id`. Used by tests and local tooling."""
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes or settings.jwt_access_token_minutes
    )
    return jwt.encode(
        {"sub": str(user_id), "exp": expire},
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> uuid.UUID:
    try:
        payload = jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
    except JWTError as e:
        logger.info("Rejected bearer token: %s", str(e))
        raise AuthenticationError(message="Invalid or expired token") from e

    subject = payload.get("sub")
    try:
        return uuid.UUID(str(subject))
    except ValueError as e:
        raise AuthenticationError(message="Token subject is not a valid user ID") from e


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> uuid.UUID:
    """FastAPI dependency for authenticated routes."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()
    return decode_token(credentials.credentials)


async def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[uuid.UUID]:
    """Like get_current_user_id, but anonymous callers yield None."""
    if credentials is None or not credentials.credentials:
        return None
    return decode_token(credentials.credentials)
