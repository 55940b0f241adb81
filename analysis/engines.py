"""
Analytical engines: rules-based customer selection over the catalog

These are deterministic engines meant to be chained by CustomerAnalysis.
Each one raises CantUnderstandError when the product lacks what it needs,
so the next engine in the chain gets a chance.

Engines:
1. Purchase History - customers who bought other products of the category
2. Interest Match - customers whose declared interests hit the product tags
3. Segment Affinity - customers in segments mapped to the product category
"""
from typing import Dict, List, Optional, Sequence

from infrastructure.logging import log_engine_execution
from tools import data_tools

from .entities import Customer, Product
from .exceptions import CantUnderstandError, GeneralAnalysisError
from .interfaces import AnalyticalEngine


def _load_customers(customer_ids) -> List[Customer]:
    customers = []
    for customer_id in customer_ids:
        record = data_tools.get_customer(customer_id)
        if record is None:
            raise GeneralAnalysisError(f"Catalog references unknown customer {customer_id}")
        customers.append(Customer.from_dict(record))
    return customers


class PurchaseHistoryEngine(AnalyticalEngine):
    """Customers who already bought in the product's category."""

    name = "purchase_history"

    def __init__(self, min_purchases: int = 1):
        self.min_purchases = min_purchases

    @log_engine_execution
    def interesting_customers(self, product: Product) -> List[Customer]:
        if not product.category:
            raise CantUnderstandError(f"Product {product.id} has no category")

        try:
            buyers = data_tools.get_category_buyers(product.category, exclude_product_id=product.id)
        except (OSError, ValueError) as e:
            raise GeneralAnalysisError(f"Purchase history unavailable: {e}") from e

        if not buyers:
            raise CantUnderstandError(f"No purchase history for category '{product.category}'")

        return _load_customers(
            customer_id for customer_id, count in buyers.items()
            if count >= self.min_purchases
        )


class InterestMatchEngine(AnalyticalEngine):
    """Customers whose declared interests overlap the product tags."""

    name = "interest_match"

    @log_engine_execution
    def interesting_customers(self, product: Product) -> List[Customer]:
        if not product.tags:
            raise CantUnderstandError(f"Product {product.id} has no tags")

        tags = set(product.tags)
        return [
            Customer.from_dict(record)
            for record in data_tools.get_all_customers()
            if tags.intersection(record.get("interests", []))
        ]


class SegmentAffinityEngine(AnalyticalEngine):
    """Customers in segments with an affinity for the product category."""

    name = "segment_affinity"

    def __init__(self, affinity: Optional[Dict[str, Sequence[str]]] = None):
        self.affinity = affinity or {}

    @log_engine_execution
    def interesting_customers(self, product: Product) -> List[Customer]:
        segments = self.affinity.get(product.category)
        if not segments:
            raise CantUnderstandError(f"No segment affinity for category '{product.category}'")

        return [
            Customer.from_dict(record)
            for record in data_tools.get_all_customers()
            if record.get("segment") in segments
        ]


ENGINE_TYPES = {
    PurchaseHistoryEngine.name: PurchaseHistoryEngine,
    InterestMatchEngine.name: InterestMatchEngine,
    SegmentAffinityEngine.name: SegmentAffinityEngine,
}


def build_engines(
    names: Sequence[str],
    min_purchases: int = 1,
    affinity: Optional[Dict[str, Sequence[str]]] = None,
) -> List[AnalyticalEngine]:
    """
    Build engines in the given order.

    Raises:
        ValueError: for an unknown engine name
    """
    tuning = {
        PurchaseHistoryEngine.name: {"min_purchases": min_purchases},
        SegmentAffinityEngine.name: {"affinity": affinity},
    }

    engines = []
    for name in names:
        engine_type = ENGINE_TYPES.get(name)
        if engine_type is None:
            raise ValueError(f"Unknown engine '{name}'. Known engines: {', '.join(ENGINE_TYPES)}")
        engines.append(engine_type(**tuning.get(name, {})))
    return engines
