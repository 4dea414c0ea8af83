"""Buyer and shipping block maintenance."""

import re
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from order_dashboard.config.constants import BLOCK_STATUS_DEFAULT
from order_dashboard.core.exceptions import (
    DuplicateError,
    InvalidRequestError,
    LinkedOrdersError,
    NotFoundError,
)
from order_dashboard.core.logger import setup_logger
from order_dashboard.db.models import Block, Buyer
from order_dashboard.db.repository import BlockRepository, BuyerRepository, OrderRepository
from order_dashboard.models.party import BlockCreate, BlockUpdate, BuyerCreate, BuyerUpdate

logger = setup_logger(__name__)

_SHIP_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def _check_ship_month(value: Optional[str]) -> None:
    if value and not _SHIP_MONTH_RE.match(value):
        raise InvalidRequestError(f"Invalid ship month '{value}', expected YYYY-MM")


class BlockService:
    """CRUD for shipping blocks."""

    def __init__(self, session: AsyncSession):
        self.blocks = BlockRepository(session)
        self.orders = OrderRepository(session)

    async def list_blocks(
        self, page: int, page_size: int, search: Optional[str] = None, status: Optional[str] = None
    ) -> Tuple[List[Block], int]:
        return await self.blocks.list_blocks(page, page_size, search=search, status=status)

    async def create_block(self, payload: BlockCreate) -> Block:
        data = payload.model_dump(exclude_none=True)
        if not (data.get("name") or "").strip():
            raise InvalidRequestError("Block name is required")
        _check_ship_month(data.get("ship_month"))
        data.setdefault("ship_status", BLOCK_STATUS_DEFAULT)

        block = await self.blocks.create(data)
        logger.info(f"Created block {block.name} (id={block.id})")
        return block

    async def update_block(self, payload: BlockUpdate) -> Block:
        if payload.id is None:
            raise InvalidRequestError("Block ID is required")
        block = await self.blocks.get(payload.id)
        if block is None:
            raise NotFoundError(f"Block {payload.id} not found")

        updates = payload.model_dump(exclude_unset=True, exclude={"id"})
        if "name" in updates and not (updates["name"] or "").strip():
            raise InvalidRequestError("Block name cannot be empty")
        _check_ship_month(updates.get("ship_month"))
        if "ship_status" in updates and not updates["ship_status"]:
            updates["ship_status"] = BLOCK_STATUS_DEFAULT

        return await self.blocks.update(block, updates)

    async def delete_block(self, block_id: Optional[int]) -> None:
        """
        Delete a block.

        Raises:
            LinkedOrdersError: Orders still reference the block
        """
        if block_id is None:
            raise InvalidRequestError("Block ID is required")
        if await self.orders.has_orders_for_block(block_id):
            raise LinkedOrdersError("Cannot delete block with linked orders")
        if not await self.blocks.delete(block_id):
            raise NotFoundError(f"Block {block_id} not found")
        logger.info(f"Deleted block id={block_id}")


class BuyerService:
    """CRUD for buyers."""

    def __init__(self, session: AsyncSession):
        self.buyers = BuyerRepository(session)
        self.orders = OrderRepository(session)

    async def list_buyers(
        self,
        page: int,
        page_size: int,
        search: Optional[str] = None,
        with_orders: bool = False,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """One page of buyers, optionally with their linked order counts."""
        buyers, total = await self.buyers.list_buyers(page, page_size, search=search)
        counts: Dict[int, int] = {}
        if with_orders:
            counts = await self.buyers.order_counts([buyer.id for buyer in buyers])

        rows = []
        for buyer in buyers:
            row = {column.name: getattr(buyer, column.name) for column in Buyer.__table__.columns}
            if with_orders:
                row["order_count"] = counts.get(buyer.id, 0)
            rows.append(row)
        return rows, total

    async def create_buyer(self, payload: BuyerCreate) -> Buyer:
        data = payload.model_dump(exclude_none=True)
        if not (data.get("name") or "").strip():
            raise InvalidRequestError("Buyer name is required")
        if data.get("buyer_no") and await self.buyers.buyer_no_taken(data["buyer_no"]):
            raise DuplicateError("Buyer number already exists")

        buyer = await self.buyers.create(data)
        logger.info(f"Created buyer {buyer.name} (id={buyer.id})")
        return buyer

    async def update_buyer(self, payload: BuyerUpdate) -> Buyer:
        if payload.id is None:
            raise InvalidRequestError("Buyer ID is required")
        buyer = await self.buyers.get(payload.id)
        if buyer is None:
            raise NotFoundError(f"Buyer {payload.id} not found")

        updates = payload.model_dump(exclude_unset=True, exclude={"id"})
        if "name" in updates and not (updates["name"] or "").strip():
            raise InvalidRequestError("Buyer name cannot be empty")
        buyer_no = updates.get("buyer_no")
        if buyer_no and await self.buyers.buyer_no_taken(buyer_no, exclude_id=buyer.id):
            raise DuplicateError("Buyer number already exists")

        return await self.buyers.update(buyer, updates)

    async def delete_buyer(self, buyer_id: Optional[int]) -> None:
        """
        Delete a buyer.

        Raises:
            LinkedOrdersError: Orders still reference the buyer
        """
        if buyer_id is None:
            raise InvalidRequestError("Buyer ID is required")
        if await self.orders.has_orders_for_buyer(buyer_id):
            raise LinkedOrdersError("Cannot delete buyer with linked orders")
        if not await self.buyers.delete(buyer_id):
            raise NotFoundError(f"Buyer {buyer_id} not found")
        logger.info(f"Deleted buyer id={buyer_id}")
