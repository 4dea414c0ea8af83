"""
Shopify order sync.

Pulls every order from Shopify and inserts the ones not stored yet.
Existing rows are never modified; each insert commits on its own, so a
failure part way through leaves earlier inserts in place and is simply
counted.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from order_dashboard.api.client import ShopifyAPIClient
from order_dashboard.config.constants import SYNC_ERROR_DETAIL_LIMIT
from order_dashboard.core.logger import setup_logger
from order_dashboard.db.repository import OrderRepository
from order_dashboard.services.order_service import map_shopify_order

logger = setup_logger(__name__)


@dataclass
class SyncResult:
    """Result of a sync operation."""
    sync_type: str  # "full", "incremental"
    started_at: float
    completed_at: float = 0.0
    total: int = 0
    new: int = 0
    skipped: int = 0
    errors: int = 0
    error_details: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.errors += 1
        if len(self.error_details) < SYNC_ERROR_DETAIL_LIMIT:
            self.error_details.append(message)

    def to_response(self) -> Dict[str, Any]:
        """Response body of POST /api/sync."""
        return {
            "success": True,
            "message": f"Synchronized {self.new} new orders from Shopify",
            "stats": {
                "total": self.total,
                "new": self.new,
                "skipped": self.skipped,
                "errors": self.errors,
            },
            "errorDetails": list(self.error_details),
        }


class SyncService:
    """Inserts Shopify orders that are missing from the database."""

    def __init__(self, api_client: ShopifyAPIClient, session: AsyncSession):
        self.api_client = api_client
        self.session = session
        self.repository = OrderRepository(session)

    async def sync_orders(self, incremental: bool = False) -> SyncResult:
        """
        Fetch orders from Shopify and insert new ones.

        Args:
            incremental: Only request orders newer than the highest stored
                Shopify id

        Returns:
            SyncResult with per-order counts

        Raises:
            MissingCredentialsError: Shopify is not configured
            ShopifyAPIError: Fetching from Shopify failed
        """
        result = SyncResult(
            sync_type="incremental" if incremental else "full",
            started_at=time.time(),
        )

        since_id: Optional[int] = None
        if incremental:
            since_id = await self.repository.max_shopify_id()
            logger.info(f"Incremental sync since Shopify id {since_id}")

        raw_orders = await self.api_client.get_orders(since_id=since_id)
        result.total = len(raw_orders)
        logger.info(f"Fetched {result.total} orders from Shopify ({result.sync_type} sync)")

        for raw in raw_orders:
            await self._sync_one(raw, result)

        result.completed_at = time.time()
        logger.info(
            f"Sync complete: {result.new} new, {result.skipped} skipped, "
            f"{result.errors} errors in {result.completed_at - result.started_at:.2f}s",
            extra={"sync_type": result.sync_type},
        )
        if result.error_details:
            logger.warning(f"Sync error details: {result.error_details}")
        return result

    async def _sync_one(self, raw: Dict[str, Any], result: SyncResult) -> None:
        label = raw.get("name") or raw.get("order_number") or "unknown"
        try:
            data = map_shopify_order(raw)
        except Exception as e:
            logger.error(f"Could not map Shopify order {label}: {e}", exc_info=True)
            result.add_error(f"Order {label}: {e}")
            return

        shopify_id = data.get("shopify_id")
        order_ref = data.get("order_ref") or label
        if not shopify_id:
            logger.error(f"Order missing shopify_id, skipping: {order_ref}")
            result.add_error(f"Order {order_ref}: Missing shopify_id")
            return

        try:
            if await self.repository.get_by_shopify_id(shopify_id):
                logger.debug(f"Skipping existing order: {order_ref}")
                result.skipped += 1
                return

            if not data.get("order_ref"):
                data["order_ref"] = f"SHOPIFY-{shopify_id}"
            elif await self.repository.get_by_order_ref(data["order_ref"]):
                logger.info(f"Skipping order with duplicate order_ref: {order_ref}")
                result.skipped += 1
                return

            await self.repository.create(data)
            result.new += 1
            logger.info(
                f"Inserted Shopify order {data['order_ref']}",
                extra={"order_ref": data["order_ref"], "shopify_id": shopify_id},
            )
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error inserting order {order_ref}: {e}", exc_info=True)
            result.add_error(f"Order {order_ref}: {e}")
