"""Shopify product lookups for the order entry form."""

from typing import Any, Dict, List, Optional, Sequence

from order_dashboard.api.client import ShopifyAPIClient
from order_dashboard.config.constants import SHOPIFY_PAGE_SIZE
from order_dashboard.core.logger import setup_logger
from order_dashboard.models.shopify import ProductSuggestion

logger = setup_logger(__name__)


def product_to_suggestion(product: Dict[str, Any]) -> Dict[str, Any]:
    """Reduce a Shopify product to an autocomplete entry."""
    variants = product.get("variants") or []
    images = product.get("images") or []
    suggestion = ProductSuggestion(
        id=product.get("id"),
        title=product.get("title"),
        price=(variants[0].get("price") if variants else None) or "0.00",
        image=images[0].get("src") if images else None,
        type=product.get("product_type"),
    )
    return suggestion.model_dump()


class ProductService:
    """Product browsing, typeahead search and detail lookups."""

    def __init__(self, api_client: ShopifyAPIClient):
        self.api_client = api_client

    async def list_products(
        self,
        limit: int = 50,
        cursor: Optional[str] = None,
        query: Optional[str] = None,
        ids: Optional[Sequence[str]] = None,
    ) -> Dict[str, Any]:
        return await self.api_client.get_products(limit=limit, cursor=cursor, query=query, ids=ids)

    async def search_suggestions(self, search: str, limit: int = 10) -> List[Dict[str, Any]]:
        result = await self.api_client.get_products(limit=limit, query=search)
        suggestions = [product_to_suggestion(p) for p in result["products"]]
        logger.info(f"Product search '{search}' returned {len(suggestions)} suggestions")
        return suggestions

    async def get_products_by_ids(self, ids: Sequence[Any]) -> List[Dict[str, Any]]:
        """Products for the given ids, requested in batches of one API page."""
        id_list = [str(i) for i in ids]
        products: List[Dict[str, Any]] = []
        for start in range(0, len(id_list), SHOPIFY_PAGE_SIZE):
            batch = id_list[start:start + SHOPIFY_PAGE_SIZE]
            result = await self.api_client.get_products(limit=len(batch), ids=batch)
            products.extend(result["products"])
        return products
