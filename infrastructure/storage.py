"""
Entity Store

Products and customers are read from the catalog (tools.data_tools).
Offers are written to an injected redis client when one is given,
otherwise to an in-memory table.
"""

import json
import threading
from typing import Dict, Any, Optional, List

from analysis.entities import Customer, Offer, Product
from analysis.exceptions import EntityNotFoundError, PersistenceError
from analysis.interfaces import Storage
from tools import data_tools

from .logging import get_logger

logger = get_logger(__name__)

OFFERS_KEY = "customer_analysis:offers"


class OfferStore(Storage):
    """
    Entity store backed by the JSON catalog plus an offer table.

    In production, offers would go to Redis or a database.
    For the demo, uses in-memory storage.
    """

    def __init__(self, redis_client=None):
        self._redis = redis_client
        self._memory_store: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def find(self, entity_type, entity_id):
        """Load a Product, Customer or Offer by id."""
        if entity_type is Product:
            record = data_tools.get_product(entity_id)
            if record is None:
                raise EntityNotFoundError(Product, entity_id)
            return Product.from_dict(record)

        if entity_type is Customer:
            record = data_tools.get_customer(entity_id)
            if record is None:
                raise EntityNotFoundError(Customer, entity_id)
            return Customer.from_dict(record)

        if entity_type is Offer:
            data = self._load_offer(entity_id)
            if data is None:
                raise EntityNotFoundError(Offer, entity_id)
            return _offer_from_dict(data)

        raise TypeError(f"OfferStore cannot load entities of type {entity_type.__name__}")

    def persist(self, entity: Offer) -> None:
        """Record an offer. Raises PersistenceError if the write fails."""
        if not isinstance(entity, Offer):
            raise PersistenceError(f"OfferStore only persists offers, got {type(entity).__name__}")

        try:
            data = entity.to_dict()
            serialized = json.dumps(data)

            if self._redis:
                self._redis.hset(OFFERS_KEY, entity.id, serialized)
            else:
                with self._lock:
                    self._memory_store[entity.id] = data

        except Exception as e:
            logger.error("offer_persist_failed", offer_id=entity.id, error=str(e))
            raise PersistenceError(f"Could not persist offer {entity.id}: {e}") from e

        logger.info(
            "offer_persisted",
            offer_id=entity.id,
            product_id=entity.product.id,
            customer_id=entity.customer.id,
            size=len(serialized),
        )

    def get_offers(self, product_id: Optional[int] = None) -> List[Offer]:
        """All persisted offers, optionally for one product, oldest first."""
        if self._redis:
            records = [json.loads(v) for v in self._redis.hgetall(OFFERS_KEY).values()]
        else:
            with self._lock:
                records = list(self._memory_store.values())

        if product_id is not None:
            records = [r for r in records if r["product"]["id"] == product_id]

        records.sort(key=lambda r: r["created_at"])
        return [_offer_from_dict(r) for r in records]

    def _load_offer(self, offer_id: str) -> Optional[Dict[str, Any]]:
        if self._redis:
            serialized = self._redis.hget(OFFERS_KEY, offer_id)
            return json.loads(serialized) if serialized else None
        with self._lock:
            return self._memory_store.get(offer_id)


def _offer_from_dict(data: Dict[str, Any]) -> Offer:
    return Offer(
        product=Product.from_dict(data["product"]),
        customer=Customer.from_dict(data["customer"]),
        id=data["id"],
        created_at=data["created_at"],
    )
