"""Request middleware for context management and logging."""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from learnhub.core.context import clear_context, set_correlation_id, set_request_id
from learnhub.core.logging import get_logger


logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Set up the per-request logging context.

    1. Take the request ID from ``X-Request-ID`` or generate one
    2. Take the correlation ID from ``X-Correlation-ID`` when present
    3. Log request start/finish with timing
    4. Echo the request ID back and clear the context afterwards
    """

    REQUEST_ID_HEADER = "X-Request-ID"
    CORRELATION_ID_HEADER = "X-Correlation-ID"

    def __init__(
        self,
        app: ASGIApp,
        log_requests: bool = True,
        exclude_paths: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.log_requests = log_requests
        self.exclude_paths = exclude_paths or ["/health"]

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        start_time = time.perf_counter()

        request_id = set_request_id(request.headers.get(self.REQUEST_ID_HEADER))
        correlation_id = request.headers.get(self.CORRELATION_ID_HEADER)
        if correlation_id:
            set_correlation_id(correlation_id)
        request.state.request_id = request_id

        should_log = self.log_requests and not self._should_exclude(request.url.path)
        if should_log:
            logger.info(
                "request_started",
                method=request.method,
                path=request.url.path,
                query=str(request.query_params) if request.query_params else None,
            )

        try:
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start_time) * 1000

            if should_log:
                log_method = (
                    logger.warning if response.status_code >= 400 else logger.info
                )
                log_method(
                    "request_completed",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=round(duration_ms, 2),
                )

            response.headers[self.REQUEST_ID_HEADER] = request_id
            return response

        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.exception(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(duration_ms, 2),
            )
            raise

        finally:
            clear_context()

    def _should_exclude(self, path: str) -> bool:
        return any(path.startswith(excluded) for excluded in self.exclude_paths)


__all__ = ["RequestContextMiddleware"]
