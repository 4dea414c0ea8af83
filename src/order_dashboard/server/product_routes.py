"""Shopify product routes used by the order entry form."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from order_dashboard.api.client import ShopifyAPIClient
from order_dashboard.core.exceptions import DashboardError, ShopifyAPIError
from order_dashboard.core.logger import setup_logger
from order_dashboard.models.shopify import ProductDetailsRequest, ProductSearchRequest
from order_dashboard.server.auth import verify_api_key
from order_dashboard.server.dependencies import get_shopify_client
from order_dashboard.server.responses import error_response
from order_dashboard.services.product_service import ProductService

logger = setup_logger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"], dependencies=[Depends(verify_api_key)])

# Products change rarely; let shared caches absorb repeated lookups
PRODUCTS_CACHE_CONTROL = "public, s-maxage=300, stale-while-revalidate=600"


@router.get("")
async def list_products(
    limit: int = Query(default=50, ge=1, le=250),
    cursor: Optional[str] = None,
    query: Optional[str] = None,
    ids: Optional[str] = Query(default=None, description="Comma separated product ids"),
    client: ShopifyAPIClient = Depends(get_shopify_client),
):
    """One page of products with cursor pagination."""
    id_list = [i.strip() for i in ids.split(",") if i.strip()] if ids else None
    try:
        result = await ProductService(client).list_products(
            limit=limit, cursor=cursor, query=query, ids=id_list
        )
        return JSONResponse(content=result, headers={"Cache-Control": PRODUCTS_CACHE_CONTROL})
    except ShopifyAPIError as e:
        if e.is_rate_limited:
            return error_response("Rate limit exceeded. Please try again later.", 429)
        logger.error(f"Error in products API: {e}")
        return error_response("Failed to fetch products", 500)
    except DashboardError:
        raise
    except Exception as e:
        logger.error(f"Error in products API: {e}", exc_info=True)
        return error_response("Failed to fetch products", 500)


@router.post("")
async def search_products(
    payload: ProductSearchRequest,
    client: ShopifyAPIClient = Depends(get_shopify_client),
):
    """Typeahead suggestions for a search term."""
    if not payload.search:
        return error_response("Search term is required", 400)
    try:
        suggestions = await ProductService(client).search_suggestions(payload.search, payload.limit)
        return {"suggestions": suggestions}
    except DashboardError as e:
        logger.error(f"Error in products search API: {e.message}")
        return error_response("Failed to search products", 500)
    except Exception as e:
        logger.error(f"Error in products search API: {e}", exc_info=True)
        return error_response("Failed to search products", 500)


@router.put("")
async def get_product_details(
    payload: ProductDetailsRequest,
    client: ShopifyAPIClient = Depends(get_shopify_client),
):
    """Full product records for the given ids."""
    if not payload.ids:
        return error_response("Product IDs array is required", 400)
    try:
        products = await ProductService(client).get_products_by_ids(payload.ids)
        return {"products": products}
    except DashboardError as e:
        logger.error(f"Error fetching product details: {e.message}")
        return error_response("Failed to fetch product details", 500)
    except Exception as e:
        logger.error(f"Error fetching product details: {e}", exc_info=True)
        return error_response("Failed to fetch product details", 500)
