"""
Structured Logging Module

Provides structured logging with correlation IDs for request tracing.
Uses structlog for JSON-formatted, context-aware logging.
"""

import os
import uuid
import logging
from typing import Optional, Any
from contextvars import ContextVar
from functools import wraps
from datetime import datetime

import structlog

# Context variable for correlation ID (thread-safe)
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

SERVICE_NAME = "customer-analysis"


def get_correlation_id() -> str:
    """Get the current correlation ID from context."""
    return correlation_id_var.get() or str(uuid.uuid4())[:8]


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Set a correlation ID in the current context."""
    cid = correlation_id or str(uuid.uuid4())[:8]
    correlation_id_var.set(cid)
    return cid


def configure_logging(
    log_level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_format: If True, output JSON format; otherwise, console format
        log_file: Optional file path for logging output
    """
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_correlation_id,
        _add_service_info,
    ]

    if json_format:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=log_file is None)
        ]

    if log_file:
        logger_factory = structlog.WriteLoggerFactory(file=open(log_file, "a"))
    else:
        logger_factory = structlog.PrintLoggerFactory()

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper())
        ),
        context_class=dict,
        logger_factory=logger_factory,
        cache_logger_on_first_use=True,
    )


def _add_correlation_id(logger, method_name, event_dict):
    """Add correlation ID to all log entries."""
    event_dict.setdefault("correlation_id", get_correlation_id())
    return event_dict


def _add_service_info(logger, method_name, event_dict):
    """Add service information to log entries."""
    event_dict["service"] = SERVICE_NAME
    event_dict["environment"] = os.getenv("ENVIRONMENT", "development")
    return event_dict


def get_logger(name: str = "customer_analysis") -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically module name)

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)


class LogContext:
    """Context manager for adding temporary logging context."""

    def __init__(self, **context):
        self.context = context
        self._tokens = None

    def __enter__(self):
        self._tokens = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, *args):
        structlog.contextvars.reset_contextvars(**self._tokens)


def log_engine_execution(func):
    """Decorator to log an engine's interesting_customers call with timing."""
    @wraps(func)
    def wrapper(self, product, *args, **kwargs):
        logger = get_logger("engines")
        engine = getattr(self, "name", type(self).__name__)
        start_time = datetime.now()

        logger.debug(
            "engine_execution_started",
            engine=engine,
            product_id=getattr(product, "id", None),
        )

        try:
            result = func(self, product, *args, **kwargs)
            duration_ms = (datetime.now() - start_time).total_seconds() * 1000

            logger.debug(
                "engine_execution_completed",
                engine=engine,
                duration_ms=round(duration_ms, 2),
                customers=len(result),
            )
            return result

        except Exception as e:
            duration_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.debug(
                "engine_execution_failed",
                engine=engine,
                duration_ms=round(duration_ms, 2),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

    return wrapper
