"""Order dashboard backend: orders, payments, shipping blocks and Shopify sync."""

__version__ = "1.0.0"
