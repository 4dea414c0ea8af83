"""
Order API Routes

Listing, manual entry, edits, deletion and payment recording for orders.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from order_dashboard.config.constants import MAX_PAGE_SIZE, ORDERS_PAGE_SIZE
from order_dashboard.core.exceptions import DashboardError
from order_dashboard.core.logger import setup_logger
from order_dashboard.db.models import Order
from order_dashboard.models.order import OrderCreate, OrderRead, OrderUpdate, PaymentCreate
from order_dashboard.server.auth import verify_api_key
from order_dashboard.server.dependencies import get_db_session
from order_dashboard.server.responses import error_response, paginated
from order_dashboard.services import payment_service
from order_dashboard.services.order_service import OrderService, parse_sort

logger = setup_logger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"], dependencies=[Depends(verify_api_key)])


def _serialize(order: Order) -> Dict[str, Any]:
    return OrderRead.model_validate(order).model_dump(mode="json")


@router.get("")
async def list_orders(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=ORDERS_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, alias="pageSize"),
    order_by: Optional[str] = Query(default=None, alias="orderBy"),
    order: Optional[str] = Query(default=None, description="asc or desc, comma separated"),
    search: Optional[str] = None,
    ship_status: Optional[str] = None,
    payment_status: Optional[str] = None,
    block_id: Optional[int] = None,
    buyer_id: Optional[int] = None,
    session: AsyncSession = Depends(get_db_session),
):
    """Paginated, sortable and filterable order listing."""
    sort = parse_sort(order_by, order)
    filters = {
        "ship_status": ship_status,
        "payment_status": payment_status,
        "block_id": block_id,
        "buyer_id": buyer_id,
    }
    try:
        service = OrderService(session)
        orders, total = await service.orders.list_orders(
            page, page_size, sort=sort, search=search, filters=filters
        )
        return paginated([_serialize(o) for o in orders], page, page_size, total)
    except Exception as e:
        logger.error(f"Error fetching orders: {e}", exc_info=True)
        return error_response("Failed to fetch orders", 500)


@router.get("/shipping-summary")
async def shipping_summary(session: AsyncSession = Depends(get_db_session)):
    """Order counts per shipping stage."""
    try:
        return await OrderService(session).shipping_summary()
    except Exception as e:
        logger.error(f"Error building shipping summary: {e}", exc_info=True)
        return error_response("Failed to build shipping summary", 500)


@router.get("/{order_id}")
async def get_order(order_id: int, session: AsyncSession = Depends(get_db_session)):
    """Single order with its payment figures."""
    order = await OrderService(session).get_order(order_id)
    return {**_serialize(order), "payment_summary": payment_service.order_payment_summary(order)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(payload: OrderCreate, session: AsyncSession = Depends(get_db_session)):
    """Create a manual order."""
    try:
        order = await OrderService(session).create_manual_order(payload)
        return _serialize(order)
    except DashboardError:
        raise
    except Exception as e:
        logger.error(f"Error creating order: {e}", exc_info=True)
        return error_response("Failed to create order", 500)


@router.patch("")
async def update_order(payload: OrderUpdate, session: AsyncSession = Depends(get_db_session)):
    """Partially update an order selected by ``id`` in the body."""
    try:
        order = await OrderService(session).update_order(payload)
        return _serialize(order)
    except DashboardError:
        raise
    except Exception as e:
        logger.error(f"Error updating order: {e}", exc_info=True)
        return error_response("Failed to update order", 500)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(
    order_id: Optional[int] = Query(default=None, alias="id"),
    session: AsyncSession = Depends(get_db_session),
):
    if order_id is None:
        return error_response("Order ID is required", 400)
    await OrderService(session).delete_order(order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{order_id}/payments")
async def record_payment(
    order_id: int,
    payload: PaymentCreate,
    session: AsyncSession = Depends(get_db_session),
):
    """Record the next installment on an order."""
    try:
        order = await OrderService(session).record_payment(
            order_id,
            amount=payload.amount,
            payment_type=payload.payment_type,
            paid_on=payload.paid_on,
        )
        return {**_serialize(order), "payment_summary": payment_service.order_payment_summary(order)}
    except DashboardError:
        raise
    except Exception as e:
        logger.error(f"Error recording payment for order {order_id}: {e}", exc_info=True)
        return error_response("Failed to record payment", 500)
