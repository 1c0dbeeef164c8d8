"""Domain errors shared by the enrollment and progress packages.

Every error carries a stable ``code``; routers convert errors to HTTP
responses through :func:`handle_error`.
"""

from fastapi import HTTPException, status


class LearnHubError(Exception):
    """Base domain error."""

    def __init__(self, message: str, code: str = "learnhub_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class UnitNotFoundError(LearnHubError):
    """Course, certification or learning path does not resolve."""

    def __init__(self, message: str = "Unit not found"):
        super().__init__(message, "unit_not_found")


class LessonNotFoundError(LearnHubError):
    """Lesson does not resolve."""

    def __init__(self, message: str = "Lesson not found"):
        super().__init__(message, "lesson_not_found")


class NotEnrolledError(LearnHubError):
    """Student has no enrollment on the unit owning the target."""

    def __init__(self, message: str = "Not enrolled in this unit"):
        super().__init__(message, "not_enrolled")


class NotOwnedError(LearnHubError):
    """Student does not own the progress row being mutated."""

    def __init__(self, message: str = "Lesson progress not owned by student"):
        super().__init__(message, "not_owned")


class NotCompletedError(LearnHubError):
    """Certification enrollment has not reached completion."""

    def __init__(self, message: str = "Certification not completed yet"):
        super().__init__(message, "not_completed")


class StorageError(LearnHubError):
    """Persistence layer unavailable or rejected the request."""

    def __init__(self, message: str = "Storage unavailable"):
        super().__init__(message, "storage_error")


_STATUS_MAP = {
    "unit_not_found": status.HTTP_404_NOT_FOUND,
    "lesson_not_found": status.HTTP_404_NOT_FOUND,
    "not_enrolled": status.HTTP_403_FORBIDDEN,
    "not_owned": status.HTTP_403_FORBIDDEN,
    "not_completed": status.HTTP_409_CONFLICT,
    "storage_error": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def handle_error(error: LearnHubError) -> HTTPException:
    """Convert a domain error to an HTTP exception."""
    return HTTPException(
        status_code=_STATUS_MAP.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail=error.message,
    )
