"""Shipping block routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from order_dashboard.config.constants import BLOCKS_PAGE_SIZE, MAX_PAGE_SIZE
from order_dashboard.core.exceptions import DashboardError
from order_dashboard.core.logger import setup_logger
from order_dashboard.models.party import BlockCreate, BlockRead, BlockUpdate
from order_dashboard.server.auth import verify_api_key
from order_dashboard.server.dependencies import get_db_session
from order_dashboard.server.responses import error_response, paginated
from order_dashboard.services.directory_service import BlockService

logger = setup_logger(__name__)

router = APIRouter(prefix="/api/blocks", tags=["blocks"], dependencies=[Depends(verify_api_key)])


@router.get("")
async def list_blocks(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=BLOCKS_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, alias="pageSize"),
    search: Optional[str] = None,
    block_status: Optional[str] = Query(default=None, alias="status"),
    session: AsyncSession = Depends(get_db_session),
):
    """Blocks ordered by ship month."""
    try:
        blocks, total = await BlockService(session).list_blocks(
            page, page_size, search=search, status=block_status
        )
        data = [BlockRead.model_validate(b).model_dump(mode="json") for b in blocks]
        return paginated(data, page, page_size, total)
    except Exception as e:
        logger.error(f"Error fetching blocks: {e}", exc_info=True)
        return error_response("Failed to fetch blocks", 500)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_block(payload: BlockCreate, session: AsyncSession = Depends(get_db_session)):
    try:
        block = await BlockService(session).create_block(payload)
        return BlockRead.model_validate(block).model_dump(mode="json")
    except DashboardError:
        raise
    except Exception as e:
        logger.error(f"Error creating block: {e}", exc_info=True)
        return error_response("Failed to create block", 500)


@router.patch("")
async def update_block(payload: BlockUpdate, session: AsyncSession = Depends(get_db_session)):
    try:
        block = await BlockService(session).update_block(payload)
        return BlockRead.model_validate(block).model_dump(mode="json")
    except DashboardError:
        raise
    except Exception as e:
        logger.error(f"Error updating block: {e}", exc_info=True)
        return error_response("Failed to update block", 500)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_block(
    block_id: Optional[int] = Query(default=None, alias="id"),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a block; refused while orders are linked to it."""
    try:
        await BlockService(session).delete_block(block_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DashboardError:
        raise
    except Exception as e:
        logger.error(f"Error deleting block: {e}", exc_info=True)
        return error_response("Failed to delete block", 500)
