"""LearnHub Enrollment & Progress API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from learnhub.analytics.router import calendar_router
from learnhub.analytics.router import router as analytics_router
from learnhub.analytics.service import ProgressAggregator
from learnhub.catalog.service import CatalogService
from learnhub.certificates.router import router as certificates_router
from learnhub.certificates.service import CertificateService
from learnhub.certificates.store import CertificateStore
from learnhub.config import Settings, get_settings
from learnhub.core.context import get_request_id
from learnhub.core.database import init_async_cassandra, shutdown_async_cassandra
from learnhub.core.logging import configure_structlog, get_logger
from learnhub.core.middleware import RequestContextMiddleware
from learnhub.core.redis import init_redis, shutdown_redis
from learnhub.enrollments.refresh import EnrollmentProgressRefresher
from learnhub.enrollments.router import router as enrollments_router
from learnhub.enrollments.service import EnrollmentCascade
from learnhub.enrollments.store import EnrollmentStore
from learnhub.health import router as health_router
from learnhub.progress.router import router as progress_router
from learnhub.progress.service import CompletionGate
from learnhub.progress.store import ProgressStore, QuizAttemptStore


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(
    settings,
    log_dir=Path(settings.log_dir),
    to_files=not settings.is_testing,
)

logger = get_logger(__name__)


def init_services(app: FastAPI, session: Any, settings: Settings, redis: Any = None) -> None:
    """Build stores and services on one session and publish them on app.state."""
    keyspace = settings.cassandra_keyspace

    catalog = CatalogService(
        session=session,
        keyspace=keyspace,
        redis=redis,
        cache_ttl_seconds=settings.catalog_cache_ttl_seconds,
    )
    enrollment_store = EnrollmentStore(session=session, keyspace=keyspace)
    progress_store = ProgressStore(session=session, keyspace=keyspace)
    quiz_attempt_store = QuizAttemptStore(session=session, keyspace=keyspace)
    certificate_store = CertificateStore(session=session, keyspace=keyspace)

    aggregator = ProgressAggregator(
        catalog=catalog,
        progress=progress_store,
        quiz_attempts=quiz_attempt_store,
        enrollments=enrollment_store,
        default_window_days=settings.analytics_default_window_days,
        minutes_per_lesson=settings.analytics_minutes_per_lesson,
    )
    certificate_service = CertificateService(
        catalog=catalog,
        enrollments=enrollment_store,
        certificates=certificate_store,
    )
    refresher = EnrollmentProgressRefresher(
        catalog=catalog,
        enrollments=enrollment_store,
        aggregator=aggregator,
        certificates=certificate_service,
    )

    app.state.catalog_service = catalog
    app.state.enrollment_store = enrollment_store
    app.state.enrollment_cascade = EnrollmentCascade(
        catalog=catalog,
        enrollments=enrollment_store,
        progress=progress_store,
        max_concurrency=settings.cascade_max_concurrency,
    )
    app.state.completion_gate = CompletionGate(
        catalog=catalog,
        enrollments=enrollment_store,
        progress=progress_store,
        quiz_attempts=quiz_attempt_store,
        refresher=refresher,
    )
    app.state.progress_aggregator = aggregator
    app.state.certificate_service = certificate_service


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Initialize Redis (non-critical - catalog reads go to Cassandra without it)
    redis_client = None
    if settings.redis_enabled:
        try:
            redis_client = await init_redis()
            logger.info("redis_initialized")
        except Exception as e:
            logger.warning(
                "redis_init_skipped",
                error=str(e),
                message="Running without Redis - catalog cache disabled",
            )

    # Initialize Cassandra (async)
    try:
        session = await init_async_cassandra()
        logger.info("cassandra_initialized")

        init_services(app, session, settings, redis_client)
        logger.info("services_initialized", redis_enabled=redis_client is not None)
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await shutdown_redis()
    await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # debug=False keeps Starlette's ServerErrorMiddleware from rendering
    # tracebacks; the handlers below log details and return safe messages.
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Enrollment & Progress API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        """Get request_id from request state or context."""
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    # Global exception handlers (never expose stack traces)
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": str(exc.detail)
                if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
                else "Internal server error",
                "status_code": exc.status_code,
                "request_id": request_id,
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "message": "Validation error",
                "status_code": 422,
                "request_id": request_id,
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions."""
        request_id = _get_request_id_safe(request)

        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": 500,
                "request_id": request_id,
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(enrollments_router)
    app.include_router(progress_router)
    app.include_router(analytics_router)
    app.include_router(calendar_router)
    app.include_router(certificates_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "LearnHub API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
