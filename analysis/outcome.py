"""
Outcome of a single engine invocation

An engine either produces customers or fails. Wrapping the call in an
AnalysisOutcome lets the lookup loop branch on the result instead of on
exception handling.
"""
import time
from dataclasses import dataclass, field
from typing import List, Optional

from .entities import Customer, Product
from .interfaces import AnalyticalEngine


@dataclass(frozen=True)
class AnalysisOutcome:
    """Customers found by one engine, or the exception it raised."""
    engine_name: str
    customers: List[Customer] = field(default_factory=list)
    error: Optional[Exception] = None
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, engine_name: str, customers, duration_seconds: float = 0.0) -> "AnalysisOutcome":
        return cls(engine_name=engine_name, customers=list(customers), duration_seconds=duration_seconds)

    @classmethod
    def failure(cls, engine_name: str, error: Exception, duration_seconds: float = 0.0) -> "AnalysisOutcome":
        return cls(engine_name=engine_name, error=error, duration_seconds=duration_seconds)


def engine_name(engine: AnalyticalEngine) -> str:
    """Display name of an engine; works for fakes that lack ``name``."""
    name = getattr(engine, "name", None)
    return name if isinstance(name, str) else type(engine).__name__


def run_engine(engine: AnalyticalEngine, product: Product, clock=None) -> AnalysisOutcome:
    """Invoke ``engine`` once for ``product`` and capture the outcome."""
    clock = clock or time.perf_counter
    name = engine_name(engine)
    start = clock()
    try:
        # Lazy results are drained here so errors raised while reading count as failures
        customers = list(engine.interesting_customers(product) or [])
    except Exception as e:
        return AnalysisOutcome.failure(name, e, clock() - start)
    return AnalysisOutcome.success(name, customers, clock() - start)
