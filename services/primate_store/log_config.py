"""
Structured logging configuration using structlog.

Provides JSON logging with ISO timestamps and stdlib compatibility.
All log messages are structured and carry a ``label`` naming the
module that emitted them.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

import structlog
from structlog.typing import FilteringBoundLogger


def _get_settings():
    """Lazy load settings to avoid circular imports."""
    from .settings import settings
    return settings()


def configure_logging(log_level: str = None, log_format: str = None) -> None:
    """
    Configure structlog with JSON output and stdlib compatibility.

    Args:
        log_level: Override log level from settings
        log_format: Override log format from settings
    """
    config = _get_settings()
    level = log_level or config.log_level
    format_type = log_format or config.log_format

    # Configure stdlib logging (psycopg and psycopg_pool log through it)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level),
        force=True,
    )

    processors = [
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.contextvars.merge_contextvars,

        # Add service metadata
        lambda _, __, event_dict: {
            **event_dict,
            "service": config.service_name,
            "environment": config.environment,
        },
    ]

    if format_type == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer(default=str))
    else:
        # Development-friendly format
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level)
        ),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = None, label: Optional[str] = None) -> FilteringBoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (defaults to caller's module)
        label: Value bound as ``label`` on every entry, usually the
            emitting module's file name

    Returns:
        Configured structlog logger
    """
    if label:
        # initial values stay lazy so later configure_logging() calls apply
        return structlog.get_logger(name, label=label)
    return structlog.get_logger(name)


def module_label(file: str) -> str:
    """Return the file name used as the ``label`` of a module's log entries."""
    return Path(file).name


def format_params(params: Optional[Sequence[Any]]) -> Any:
    """Render query parameters for a log entry, ``"none"`` when absent."""
    if params is None:
        return "none"
    return list(params)


def log_query(
    logger: FilteringBoundLogger,
    sql: str,
    params: Optional[Sequence[Any]] = None,
    duration_ms: float = None,
    row_count: int = None,
    **extra_context
) -> None:
    """
    Log a completed database query at DEBUG level.

    Args:
        logger: Logger instance
        sql: SQL text as submitted by the caller
        params: Positional query parameters
        duration_ms: Query duration in milliseconds
        row_count: Rows returned or affected, as reported by the driver
        **extra_context: Additional context to include
    """
    context = {
        "sql": sql,
        "params": format_params(params),
        **extra_context
    }

    if duration_ms is not None:
        context["duration_ms"] = round(duration_ms, 2)

    if row_count is not None:
        context["row_count"] = row_count

    logger.debug("Database query", **context)


def _initialize_logging():
    """Initialize logging configuration on module import."""
    try:
        # Skip initialization during pytest
        if "pytest" not in sys.modules:
            configure_logging()
    except Exception as e:
        # Fallback to basic logging if configuration fails
        logging.basicConfig(level=logging.INFO)
        logging.getLogger(__name__).error(
            "Failed to configure structured logging: %s", e
        )


# Auto-initialize when module is imported
_initialize_logging()
