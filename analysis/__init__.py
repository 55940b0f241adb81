"""
Customer Analysis

Functional architecture:
1. Engines - rules-based selection of interested customers, tried in order
2. CustomerAnalysis - engine fallback, offer creation, persist-then-notify
3. Interfaces - contracts for engines, storage, news list and error handler
"""

# Domain model
from .entities import Customer, Offer, Product, create_offer

# Failures
from .exceptions import (
    AnalysisError,
    CantUnderstandError,
    GeneralAnalysisError,
    StorageError,
    EntityNotFoundError,
    PersistenceError,
)

# Collaborator contracts
from .interfaces import AnalyticalEngine, ErrorHandler, NewsList, Storage

# Orchestration
from .outcome import AnalysisOutcome, run_engine
from .customer_analysis import CustomerAnalysis, OfferFailurePolicy, OfferPreparation

# Reference engines
from .engines import (
    PurchaseHistoryEngine,
    InterestMatchEngine,
    SegmentAffinityEngine,
    build_engines,
)

__all__ = [
    # Domain model
    "Customer",
    "Offer",
    "Product",
    "create_offer",
    # Failures
    "AnalysisError",
    "CantUnderstandError",
    "GeneralAnalysisError",
    "StorageError",
    "EntityNotFoundError",
    "PersistenceError",
    # Contracts
    "AnalyticalEngine",
    "ErrorHandler",
    "NewsList",
    "Storage",
    # Orchestration
    "AnalysisOutcome",
    "run_engine",
    "CustomerAnalysis",
    "OfferFailurePolicy",
    "OfferPreparation",
    # Engines
    "PurchaseHistoryEngine",
    "InterestMatchEngine",
    "SegmentAffinityEngine",
    "build_engines",
]
