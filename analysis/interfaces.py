"""
Collaborator contracts for CustomerAnalysis

Every collaborator is injected through the CustomerAnalysis constructor,
so tests can substitute deterministic fakes.
"""
from abc import ABC, abstractmethod
from typing import List, Type, TypeVar

from .entities import Customer, Offer, Product

T = TypeVar("T")


class AnalyticalEngine(ABC):
    """Maps a product to the customers predicted to be interested in it."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def interesting_customers(self, product: Product) -> List[Customer]:
        """
        Return the customers interested in ``product``.

        Raises:
            CantUnderstandError: the engine cannot interpret the product
            GeneralAnalysisError: any other engine failure
        """


class ErrorHandler(ABC):
    """Diagnostic sink for isolated, non-fatal engine failures."""

    @abstractmethod
    def handle(self, error: Exception) -> None:
        """Record ``error``. Must not raise."""


class Storage(ABC):
    """Durable persistence boundary for domain entities and offers."""

    @abstractmethod
    def find(self, entity_type: Type[T], entity_id) -> T:
        """Load an entity. Raises EntityNotFoundError when absent."""

    @abstractmethod
    def persist(self, entity: Offer) -> None:
        """Record an entity. Raises PersistenceError when the write fails."""


class NewsList(ABC):
    """Delivery boundary that periodically announces offers."""

    @abstractmethod
    def send_periodically(self, offer: Offer) -> None:
        """Schedule recurring delivery of ``offer``. Fire-and-forget."""
