"""Staff bearer tokens.

Tokens are issued elsewhere (the staff login flow); this service only needs
to verify them. ``create_access_token`` exists for scripts and tests.
"""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from app.config import settings

TOKEN_TYPE = "staff_access"


def create_access_token(
    subject: UUID | str,
    expires_delta: timedelta | None = None,
    **claims: Any,
) -> str:
    """
    Sign a staff access token for ``subject`` (the staff user id).

    Args:
        subject: Staff user ID placed in ``sub``
        expires_delta: Lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES
        claims: Extra claims, e.g. ``email``

    Returns:
        Encoded JWT
    """
    issued_at = datetime.now(UTC)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)

    payload = {
        **claims,
        "sub": str(subject),
        "iss": settings.jwt_issuer,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "type": TOKEN_TYPE,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """
    Verify signature, expiry, issuer and token type.

    Returns:
        Decoded claims, or None if the token is not a valid staff token
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except JWTError:
        return None

    if payload.get("type") != TOKEN_TYPE:
        return None

    return payload
