"""Structlog configuration with console and file output.

Configures structlog for structured logging with:
- Console output (colored in development, JSON elsewhere)
- Rotating JSON file output plus a separate error file
- Request context injection (request_id, student_id) via contextvars
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor

from learnhub.core.context import get_context


if TYPE_CHECKING:
    from learnhub.config.settings import Settings


# Minimum length for partial masking (show first 2 and last 2 chars)
_MIN_MASK_LENGTH = 4

_SENSITIVE_KEYS = frozenset(
    {
        "password",
        "secret",
        "token",
        "api_key",
        "authorization",
        "credentials",
    }
)

# Loggers that are too chatty at DEBUG
_NOISY_LOGGERS = ("uvicorn.access", "uvicorn.error", "cassandra", "redis")


def add_context_processor(
    logger: logging.Logger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add request context (request_id, student_id, ...) to log events."""
    for key, value in get_context().items():
        event_dict.setdefault(key, value)
    return event_dict


def _mask(key: str, value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _mask(k, v) for k, v in value.items()}
    if isinstance(value, str) and any(s in key.lower() for s in _SENSITIVE_KEYS):
        if len(value) > _MIN_MASK_LENGTH:
            return value[:2] + "*" * (len(value) - _MIN_MASK_LENGTH) + value[-2:]
        return "***"
    return value


def filter_sensitive_data(
    logger: logging.Logger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Mask tokens, secrets and credentials in log events."""
    return {k: _mask(k, v) for k, v in event_dict.items()}


def _shared_processors(include_caller_info: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_context_processor,
        filter_sensitive_data,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if include_caller_info:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                ]
            )
        )
    return processors


def _file_handler(
    path: Path,
    max_bytes: int,
    backup_count: int,
    level: str,
    shared: list[Processor],
) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(getattr(logging, level.upper()))
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=shared,
        )
    )
    return handler


def configure_structlog(
    settings: "Settings",
    log_dir: Path | str | None = None,
    *,
    to_files: bool = True,
) -> None:
    """Configure structlog with console and (optionally) file output.

    Args:
        settings: Application settings.
        log_dir: Directory for log files. Defaults to ``settings.log_dir``.
        to_files: Disable to log to the console only (tests, one-off scripts).
    """
    log_level = settings.log_level
    shared = _shared_processors(settings.log_include_caller_info)

    if settings.log_format == "json":
        final_processor: Processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, log_level.upper()))
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=final_processor,
            foreign_pre_chain=shared,
        )
    )
    root_logger.addHandler(console_handler)

    if to_files:
        directory = Path(log_dir or settings.log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        # JSON always, for log analysis
        root_logger.addHandler(
            _file_handler(
                directory / f"{settings.app_name}.log",
                settings.log_file_max_bytes,
                settings.log_file_backup_count,
                log_level,
                shared,
            )
        )
        root_logger.addHandler(
            _file_handler(
                directory / f"{settings.app_name}.error.log",
                settings.log_file_max_bytes,
                settings.log_file_backup_count,
                "ERROR",
                shared,
            )
        )

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance."""
    return structlog.get_logger(name)
