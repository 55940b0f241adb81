"""
Tools for Customer Analysis
"""
from .data_tools import (
    get_product,
    get_customer,
    get_all_products,
    get_all_customers,
    get_purchases,
    get_category_buyers,
)

__all__ = [
    "get_product",
    "get_customer",
    "get_all_products",
    "get_all_customers",
    "get_purchases",
    "get_category_buyers",
]
