"""Shopify Admin REST API endpoint paths.

Paths are formatted with the API version, e.g.
``ORDERS.format(version="2023-07")``.
"""

ORDERS = "/admin/api/{version}/orders.json"
PRODUCTS = "/admin/api/{version}/products.json"
