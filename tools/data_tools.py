"""
Data access tools for Customer Analysis
These simulate calls to the product catalog and the CRM

Records are plain dicts as stored in the JSON files under data/.
"""
import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional, Dict, Any, List

DATA_DIR = Path(os.getenv("DATA_DIR", Path(__file__).parent.parent / "data"))


@lru_cache(maxsize=None)
def _load_json(filename: str, data_dir: str = str(DATA_DIR)) -> Any:
    """Load JSON data from file"""
    with open(Path(data_dir) / filename, "r") as f:
        return json.load(f)


def get_product(product_id: int) -> Optional[Dict[str, Any]]:
    """
    Retrieve a product record by id

    In production: Calls the product catalog service
    """
    for product in _load_json("products.json"):
        if product["id"] == product_id:
            return product
    return None


def get_customer(customer_id: int) -> Optional[Dict[str, Any]]:
    """
    Retrieve a customer profile by id

    In production: Calls the CRM / Customer 360
    """
    for customer in _load_json("customers.json"):
        if customer["id"] == customer_id:
            return customer
    return None


def get_all_products() -> List[Dict[str, Any]]:
    """Get all products"""
    return _load_json("products.json")


def get_all_customers() -> List[Dict[str, Any]]:
    """Get all customers"""
    return _load_json("customers.json")


def get_purchases(customer_id: Optional[int] = None) -> List[Dict[str, Any]]:
    """Get purchase history, optionally for one customer"""
    purchases = _load_json("purchases.json")
    if customer_id is None:
        return purchases
    return [p for p in purchases if p["customer_id"] == customer_id]


def get_category_buyers(category: str, exclude_product_id: Optional[int] = None) -> Dict[int, int]:
    """
    Count purchases per customer for products in ``category``

    Returns:
        Mapping of customer id to number of purchases, in first-purchase order
    """
    categories = {p["id"]: p.get("category") for p in get_all_products()}
    counts: Dict[int, int] = {}
    for purchase in get_purchases():
        product_id = purchase["product_id"]
        if product_id == exclude_product_id:
            continue
        if categories.get(product_id) != category:
            continue
        counts[purchase["customer_id"]] = counts.get(purchase["customer_id"], 0) + 1
    return counts
