"""Shopify Admin API module."""

from .client import ShopifyAPIClient
from .endpoints import ORDERS, PRODUCTS

__all__ = ["ShopifyAPIClient", "ORDERS", "PRODUCTS"]
