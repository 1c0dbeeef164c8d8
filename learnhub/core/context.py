"""Request context management using contextvars.

Each request carries a request ID, the acting student (once authenticated)
and an optional correlation ID. Values are visible anywhere in the call
stack, including the cascade fan-out tasks spawned for that request, and
are merged into every log entry.
"""

from contextvars import ContextVar
from typing import Any
from uuid import UUID, uuid4


request_id_var: ContextVar[str] = ContextVar("request_id", default="")
student_id_var: ContextVar[str | None] = ContextVar("student_id", default=None)
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID for the current context.

    Args:
        request_id: Optional request ID. If not provided, generates a new one.

    Returns:
        The request ID that was set.
    """
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def get_student_id() -> str | None:
    """Get the acting student ID."""
    return student_id_var.get()


def set_student_id(student_id: str | UUID | None) -> None:
    """Set the acting student ID for the current context."""
    student_id_var.set(str(student_id) if student_id is not None else None)


def get_correlation_id() -> str | None:
    """Get the current correlation ID."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation ID for the current context."""
    correlation_id_var.set(correlation_id)


def get_context() -> dict[str, Any]:
    """Get the populated context variables as a dictionary."""
    context: dict[str, Any] = {}

    request_id = get_request_id()
    if request_id:
        context["request_id"] = request_id

    student_id = get_student_id()
    if student_id:
        context["student_id"] = student_id

    correlation_id = get_correlation_id()
    if correlation_id:
        context["correlation_id"] = correlation_id

    return context


def clear_context() -> None:
    """Clear all context variables (end of request)."""
    request_id_var.set("")
    student_id_var.set(None)
    correlation_id_var.set(None)


class RequestContext:
    """Context manager for a unit of work outside HTTP (scripts, tests).

    Usage:
        with RequestContext(student_id=student_id):
            await cascade.enroll(student_id, ref)  # logs carry student_id
    """

    def __init__(
        self,
        request_id: str | None = None,
        student_id: str | UUID | None = None,
        correlation_id: str | None = None,
    ) -> None:
        self.request_id = request_id
        self.student_id = student_id
        self.correlation_id = correlation_id
        self._tokens: list[tuple[ContextVar, Any]] = []

    def __enter__(self) -> "RequestContext":
        self._tokens.append(
            (request_id_var, request_id_var.set(self.request_id or generate_request_id()))
        )
        if self.student_id is not None:
            self._tokens.append(
                (student_id_var, student_id_var.set(str(self.student_id)))
            )
        if self.correlation_id is not None:
            self._tokens.append(
                (correlation_id_var, correlation_id_var.set(self.correlation_id))
            )
        return self

    def __exit__(self, *_: object) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()
