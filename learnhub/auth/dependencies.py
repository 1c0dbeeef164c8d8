"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Bearer token extraction
- Current student from a verified JWT
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from learnhub.auth.schemas import StudentPrincipal
from learnhub.auth.security import decode_access_token
from learnhub.core.context import set_student_id


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header.

    Args:
        request: FastAPI request

    Returns:
        Token string or None if not present
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


async def get_current_student(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> StudentPrincipal:
    """Get the acting student from the JWT access token.

    Raises:
        HTTPException(401): If token is missing, invalid, or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token not provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(token)
        student_id = UUID(str(payload["sub"]))
    except (JWTError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    # Set student_id in context for logging
    set_student_id(student_id)

    return StudentPrincipal(id=student_id)


# Type alias for dependency injection
CurrentStudent = Annotated[StudentPrincipal, Depends(get_current_student)]
