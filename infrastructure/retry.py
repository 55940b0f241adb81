"""
Retry Logic Module

Provides retry decorators and utilities using tenacity for:
- Analytical engines backed by remote services (transient I/O errors)
- Notification webhooks
"""

from typing import Callable, TypeVar, List
from functools import wraps
from dataclasses import dataclass, field

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    retry_if_not_exception_type,
)

from analysis.entities import Customer, Product
from analysis.exceptions import AnalysisError
from analysis.interfaces import AnalyticalEngine

from .logging import get_logger

logger = get_logger("retry")

# Type variable for generic functions
T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    min_wait_seconds: float = 0.5
    max_wait_seconds: float = 10.0
    exponential_base: float = 2.0

    # Exception types to retry on
    retry_on: tuple = field(default_factory=lambda: (
        ConnectionError,
        TimeoutError,
    ))

    # Exception types to NOT retry on (fail immediately)
    no_retry_on: tuple = field(default_factory=lambda: (
        AnalysisError,
    ))


def _create_retry_decorator(config: RetryConfig):
    """Create a tenacity retry decorator from config."""
    return retry(
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_exponential(
            multiplier=config.exponential_base,
            min=config.min_wait_seconds,
            max=config.max_wait_seconds,
        ),
        retry=(
            retry_if_exception_type(config.retry_on) &
            retry_if_not_exception_type(config.no_retry_on)
        ),
        before_sleep=_log_retry_attempt,
        reraise=True,
    )


def _log_retry_attempt(retry_state):
    """Log retry attempts."""
    logger.warning(
        "retry_attempt",
        function=getattr(retry_state.fn, "__name__", "unknown"),
        attempt=retry_state.attempt_number,
        wait_seconds=retry_state.next_action.sleep if retry_state.next_action else 0,
        exception=str(retry_state.outcome.exception()) if retry_state.outcome else None,
    )


def retry_engine_call(config: RetryConfig = None):
    """
    Decorator for retrying calls that may hit transient I/O failures.

    The last exception is re-raised unchanged once attempts run out, so
    callers see the original failure.

    Example:
        @retry_engine_call(RetryConfig(max_attempts=5))
        def fetch_segment_scores(product_id: int) -> dict:
            return scoring_client.get(product_id)
    """
    config = config or RetryConfig()

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        retrying_func = _create_retry_decorator(config)(func)

        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            return retrying_func(*args, **kwargs)

        return wrapper

    return decorator


class RetryingEngine(AnalyticalEngine):
    """
    Wraps an engine so transient failures are retried inside one invocation.

    CustomerAnalysis still sees a single call per engine; AnalysisError
    subclasses are never retried.
    """

    def __init__(self, engine: AnalyticalEngine, config: RetryConfig = None):
        self.engine = engine
        self.config = config or RetryConfig()
        self._call = retry_engine_call(self.config)(engine.interesting_customers)

    @property
    def name(self) -> str:
        return getattr(self.engine, "name", type(self.engine).__name__)

    def interesting_customers(self, product: Product) -> List[Customer]:
        return self._call(product)
