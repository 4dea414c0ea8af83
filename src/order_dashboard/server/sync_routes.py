"""Shopify order sync route."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from order_dashboard.api.client import ShopifyAPIClient
from order_dashboard.core.exceptions import DashboardError
from order_dashboard.core.logger import setup_logger
from order_dashboard.server.auth import verify_api_key
from order_dashboard.server.dependencies import get_db_session, get_shopify_client
from order_dashboard.server.responses import error_response
from order_dashboard.services.sync_service import SyncService

logger = setup_logger(__name__)

router = APIRouter(prefix="/api", tags=["sync"], dependencies=[Depends(verify_api_key)])


@router.post("/sync")
async def sync_orders(
    incremental: bool = Query(default=False, description="Only fetch orders newer than the last synced one"),
    client: ShopifyAPIClient = Depends(get_shopify_client),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Pull orders from Shopify and insert the ones not stored yet.

    Returns per-order counts; failures of individual orders are counted
    rather than aborting the run.
    """
    try:
        result = await SyncService(client, session).sync_orders(incremental=incremental)
        return result.to_response()
    except DashboardError as e:
        logger.error(f"Error during synchronization: {e.message}")
        return error_response(e.message, 500, success=False)
    except Exception as e:
        logger.error(f"Error during synchronization: {e}", exc_info=True)
        return error_response(str(e), 500, success=False)
