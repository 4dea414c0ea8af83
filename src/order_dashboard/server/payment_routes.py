"""Payment overview routes."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from order_dashboard.core.logger import setup_logger
from order_dashboard.db.repository import OrderRepository
from order_dashboard.server.auth import verify_api_key
from order_dashboard.server.dependencies import get_db_session
from order_dashboard.server.responses import error_response
from order_dashboard.services import payment_service

logger = setup_logger(__name__)

router = APIRouter(prefix="/api/payments", tags=["payments"], dependencies=[Depends(verify_api_key)])


@router.get("/summary")
async def get_payment_summary(
    search: Optional[str] = None,
    ship_status: Optional[str] = None,
    payment_status: Optional[str] = None,
    block_id: Optional[int] = None,
    buyer_id: Optional[int] = None,
    session: AsyncSession = Depends(get_db_session),
):
    """
    Payment statistics across the matching orders.

    Returns outstanding balance total and counts of orders awaiting a
    deposit, awaiting the final payment, and fully paid.
    """
    filters = {
        "ship_status": ship_status,
        "payment_status": payment_status,
        "block_id": block_id,
        "buyer_id": buyer_id,
    }
    try:
        orders = await OrderRepository(session).find_orders(search=search, filters=filters)
        return payment_service.payment_summary(orders)
    except Exception as e:
        logger.error(f"Error building payment summary: {e}", exc_info=True)
        return error_response("Failed to build payment summary", 500)
