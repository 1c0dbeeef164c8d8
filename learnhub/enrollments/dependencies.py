"""FastAPI dependencies for enrollments."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import EnrollmentCascade
from .store import EnrollmentStore


async def get_enrollment_cascade(request: Request) -> EnrollmentCascade:
    """Get enrollment cascade from app state."""
    cascade = getattr(request.app.state, "enrollment_cascade", None)
    if not cascade:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Enrollment service not available",
        )
    return cascade


async def get_enrollment_store(request: Request) -> EnrollmentStore:
    """Get enrollment store from app state."""
    store = getattr(request.app.state, "enrollment_store", None)
    if not store:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Enrollment service not available",
        )
    return store


# Type aliases for dependency injection
EnrollmentCascadeDep = Annotated[EnrollmentCascade, Depends(get_enrollment_cascade)]
EnrollmentStoreDep = Annotated[EnrollmentStore, Depends(get_enrollment_store)]
