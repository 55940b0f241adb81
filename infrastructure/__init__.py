"""
Infrastructure Module for Customer Analysis

Provides observability, retry logic and the collaborator adapters
wired into CustomerAnalysis:
- Structured logging with structlog
- Prometheus metrics collection
- Retry logic with tenacity
- Entity store (catalog + offer table)
- Newsletter notification channel
- Error handlers (log, alerts)
"""

from .logging import get_logger, configure_logging, LogContext
from .metrics import MetricsCollector, metrics, get_metrics_collector
from .retry import RetryConfig, RetryingEngine, retry_engine_call
from .storage import OfferStore
from .notifications import NewsletterChannel, ScheduledAnnouncement
from .error_reporting import (
    Alert,
    AlertSeverity,
    AlertingErrorHandler,
    LoggingErrorHandler,
)

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "LogContext",
    # Metrics
    "MetricsCollector",
    "metrics",
    "get_metrics_collector",
    # Retry
    "RetryConfig",
    "RetryingEngine",
    "retry_engine_call",
    # Storage
    "OfferStore",
    # Notifications
    "NewsletterChannel",
    "ScheduledAnnouncement",
    # Error reporting
    "Alert",
    "AlertSeverity",
    "AlertingErrorHandler",
    "LoggingErrorHandler",
]
