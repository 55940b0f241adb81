"""
Domain entities for Customer Analysis

Product and Customer are loaded from the catalog and never mutated here.
Both compare and hash by id only. An Offer binds exactly one product to
exactly one customer.
"""
import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, Any, Tuple


@dataclass(frozen=True)
class Product:
    """A product that may be offered to customers."""
    id: int
    name: str = field(default="", compare=False)
    category: str = field(default="", compare=False)
    price: float = field(default=0.0, compare=False)
    tags: Tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        return cls(
            id=int(data["id"]),
            name=data.get("name", ""),
            category=data.get("category", ""),
            price=float(data.get("price", 0.0)),
            tags=tuple(data.get("tags", [])),
        )


@dataclass(frozen=True)
class Customer:
    """A customer as produced by an analytical engine."""
    id: int
    name: str = field(default="", compare=False)
    email: str = field(default="", compare=False)
    segment: str = field(default="general", compare=False)
    interests: Tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Customer":
        return cls(
            id=int(data["id"]),
            name=data.get("name", ""),
            email=data.get("email", ""),
            segment=data.get("segment", "general"),
            interests=tuple(data.get("interests", [])),
        )


@dataclass(frozen=True)
class Offer:
    """Intent to market one product to one customer."""
    product: Product
    customer: Customer
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def get_product(self) -> Product:
        return self.product

    def get_customer(self) -> Customer:
        return self.customer

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = asdict(self)
        data["product"]["tags"] = list(self.product.tags)
        data["customer"]["interests"] = list(self.customer.interests)
        return data


def create_offer(product: Product, customer: Customer) -> Offer:
    """Build a fresh offer for the (product, customer) pair."""
    return Offer(product=product, customer=customer)
