"""
Bearer token handling.

Access tokens are minted by the identity provider with the shared
``JWT_SECRET_KEY``. This service only verifies them; ``create_access_token``
mints the same shape for service-to-service calls and tests.

Claims: ``sub`` (user id), ``email``, ``name``, ``type="access"``, ``jti``,
``iat`` and ``exp``.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from mission_control.core.config import settings

ACCESS_TOKEN_TYPE = "access"


def create_access_token(
    user_id: str,
    email: str | None = None,
    name: str | None = None,
    expires_in: timedelta | None = None,
) -> str:
    issued_at = datetime.now(UTC)
    lifetime = expires_in or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    claims: dict[str, Any] = {
        "sub": user_id,
        "email": email,
        "name": name,
        "type": ACCESS_TOKEN_TYPE,
        "jti": uuid.uuid4().hex,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify signature and expiry, then check the token is an access token
    with a subject.

    Raises:
        JWTError: On any failure.
    """
    claims = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    if claims.get("type") != ACCESS_TOKEN_TYPE:
        raise JWTError("Not an access token")
    if not isinstance(claims.get("sub"), str) or not claims["sub"]:
        raise JWTError("Token has no subject")
    return claims
