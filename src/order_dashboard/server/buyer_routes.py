"""Buyer routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from order_dashboard.config.constants import BUYERS_PAGE_SIZE, MAX_PAGE_SIZE
from order_dashboard.core.exceptions import DashboardError
from order_dashboard.core.logger import setup_logger
from order_dashboard.models.party import BuyerCreate, BuyerRead, BuyerUpdate
from order_dashboard.server.auth import verify_api_key
from order_dashboard.server.dependencies import get_db_session
from order_dashboard.server.responses import error_response, paginated
from order_dashboard.services.directory_service import BuyerService

logger = setup_logger(__name__)

router = APIRouter(prefix="/api/buyers", tags=["buyers"], dependencies=[Depends(verify_api_key)])


@router.get("")
async def list_buyers(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=BUYERS_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, alias="pageSize"),
    search: Optional[str] = None,
    with_orders: bool = Query(default=False, alias="withOrders"),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Buyers ordered by name.

    ``search`` matches name, buyer number and delivery contact; ``withOrders``
    adds each buyer's linked order count.
    """
    try:
        rows, total = await BuyerService(session).list_buyers(
            page, page_size, search=search, with_orders=with_orders
        )
        exclude = None if with_orders else {"order_count"}
        data = [BuyerRead.model_validate(row).model_dump(mode="json", exclude=exclude) for row in rows]
        return paginated(data, page, page_size, total)
    except Exception as e:
        logger.error(f"Error fetching buyers: {e}", exc_info=True)
        return error_response("Failed to fetch buyers", 500)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_buyer(payload: BuyerCreate, session: AsyncSession = Depends(get_db_session)):
    try:
        buyer = await BuyerService(session).create_buyer(payload)
        return BuyerRead.model_validate(buyer).model_dump(mode="json", exclude={"order_count"})
    except DashboardError:
        raise
    except Exception as e:
        logger.error(f"Error creating buyer: {e}", exc_info=True)
        return error_response("Failed to create buyer", 500)


@router.patch("")
async def update_buyer(payload: BuyerUpdate, session: AsyncSession = Depends(get_db_session)):
    try:
        buyer = await BuyerService(session).update_buyer(payload)
        return BuyerRead.model_validate(buyer).model_dump(mode="json", exclude={"order_count"})
    except DashboardError:
        raise
    except Exception as e:
        logger.error(f"Error updating buyer: {e}", exc_info=True)
        return error_response("Failed to update buyer", 500)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_buyer(
    buyer_id: Optional[int] = Query(default=None, alias="id"),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a buyer; refused while orders are linked to it."""
    try:
        await BuyerService(session).delete_buyer(buyer_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DashboardError:
        raise
    except Exception as e:
        logger.error(f"Error deleting buyer: {e}", exc_info=True)
        return error_response("Failed to delete buyer", 500)
