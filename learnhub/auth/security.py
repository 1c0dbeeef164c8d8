"""Security utilities for authentication.

Tokens are issued by the external identity service; this service only
verifies them, checking signature, expiry, token type and subject.
"""

from typing import Any

from jose import JWTError, jwt

from learnhub.config.settings import get_settings


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Validates:
    - JWT signature
    - Expiration time
    - Token type == "access"
    - Presence of the sub claim

    Args:
        token: JWT string

    Returns:
        Decoded payload dictionary

    Raises:
        JWTError: If token is invalid, expired, or wrong type
    """
    settings = get_settings()

    payload = jwt.decode(
        token,
        settings.auth_secret_key,
        algorithms=[settings.auth_algorithm],
    )

    if payload.get("type") != "access":
        msg = "Invalid token type: expected 'access'"
        raise JWTError(msg)

    if not payload.get("sub"):
        msg = "Access token missing sub claim"
        raise JWTError(msg)

    return payload
