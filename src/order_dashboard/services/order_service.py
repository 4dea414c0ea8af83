"""Order service for manual entry, edits and Shopify order mapping."""

import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from order_dashboard.config.constants import (
    DEPOSIT_RATE,
    ORDER_SORT_COLUMNS,
    PAYMENT_STATUS_DEPOSIT,
    PAYMENT_STATUS_NONE,
    PAYMENT_STATUS_PAID,
    PAYMENT_TOLERANCE,
    SHIP_STATUS_IN_PRODUCTION,
    SHIP_STATUS_NOT_SHIPPED,
    SHIP_STATUS_READY,
    SHIP_STATUS_SHIPPED,
    SOURCE_MANUAL,
    SOURCE_SHOPIFY,
)
from order_dashboard.core.exceptions import (
    DuplicateError,
    InvalidRequestError,
    NotFoundError,
)
from order_dashboard.core.logger import setup_logger
from order_dashboard.db.models import Order
from order_dashboard.db.repository import BlockRepository, BuyerRepository, OrderRepository
from order_dashboard.models.order import OrderCreate, OrderUpdate
from order_dashboard.models.shopify import ShopifyOrder
from order_dashboard.services import payment_service

logger = setup_logger(__name__)

PAYMENT_COLUMNS = {"total_topay"} | {col for slot in payment_service.PAYMENT_SLOTS for col in slot}

# NOT NULL order columns a PATCH may not clear
REQUIRED_COLUMNS = {column.name for column in Order.__table__.columns if not column.nullable}

# Buyer columns copied onto an order when it is linked to a buyer
BUYER_SNAPSHOT_FIELDS = {
    "buyer": "name",
    "email": "email",
    "city": "city",
    "zip_code": "zip_code",
    "country": "country",
}


def _to_float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _to_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp from Shopify into a naive datetime."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        logger.warning(f"Unparseable timestamp from Shopify: {value}")
        return None


def generate_order_ref() -> str:
    """Reference for a manual order: "ORD-" plus the last six digits of the ms clock."""
    return f"ORD-{str(int(time.time() * 1000))[-6:]}"


def calculate_order_totals(
    products: Sequence[Dict[str, Any]],
    shipping: float = 0.0,
    vat: float = 0.0,
) -> Dict[str, Any]:
    """
    Totals for a manually entered order.

    Args:
        products: Line items with ``quantity`` and unit ``price``
        shipping: Shipping cost added on top of the subtotal
        vat: VAT amount added on top of the subtotal

    Returns:
        total_qty, value (subtotal), total_amt, total_topay and deposit_25
    """
    total_qty = sum(_to_int(item.get("quantity")) for item in products)
    subtotal = sum(
        _to_float(item.get("price")) * _to_int(item.get("quantity")) for item in products
    )
    total = subtotal + _to_float(shipping) + _to_float(vat)
    return {
        "total_qty": total_qty,
        "value": round(subtotal, 2),
        "total_amt": round(total, 2),
        "total_topay": round(total, 2),
        "deposit_25": round(total * DEPOSIT_RATE, 2),
    }


def map_shopify_order(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map a Shopify order onto order columns.

    Args:
        raw: Order dict from ``orders.json``

    Returns:
        Column values ready for insertion
    """
    order = ShopifyOrder.model_validate(raw)
    customer = order.customer
    billing = order.billing_address

    if order.name:
        order_ref = order.name
    elif order.order_number is not None:
        order_ref = f"#{order.order_number}"
    else:
        order_ref = ""

    buyer_name = ""
    if customer:
        buyer_name = " ".join(part for part in (customer.first_name, customer.last_name) if part)
    if not buyer_name:
        logger.warning(f"Shopify order {order.id} has no customer name")
        buyer_name = "(No Name)"

    shipping = _to_float(order.shipping_lines[0].price) if order.shipping_lines else 0.0
    total_price = _to_float(order.total_price)

    return {
        "order_ref": order_ref,
        "order_date": _parse_timestamp(order.created_at) or datetime.utcnow(),
        "order_from": order.source_name or SOURCE_SHOPIFY,
        "source": SOURCE_SHOPIFY,
        "shopify_id": str(order.id) if order.id is not None else None,
        "block_id": None,
        "buyer_id": None,
        "buyer": buyer_name,
        "email": order.email or (customer.email if customer else None),
        "city": (billing.city if billing else None) or "",
        "zip_code": (billing.zip if billing else None) or "",
        "country": (billing.country if billing else None) or "",
        "zone": "",
        "ship_date": None,
        "ship_status": SHIP_STATUS_NOT_SHIPPED,
        "received": "No",
        "products": [item.model_dump(exclude_none=True) for item in order.line_items],
        "total_qty": sum(_to_int(item.quantity) for item in order.line_items),
        "value": _to_float(order.subtotal_price),
        "shipping": shipping,
        "total_amt": total_price,
        "vat_amt": _to_float(order.current_total_tax),
        "total_topay": total_price,
        "payment_status": PAYMENT_STATUS_DEPOSIT if order.financial_status == "paid" else PAYMENT_STATUS_NONE,
        "deposit_25": 0.0,
    }


def parse_sort(order_by: Optional[str], order: Optional[str]) -> List[Tuple[str, bool]]:
    """
    Parse comma separated ``orderBy`` / ``order`` query values.

    Directions pair up with columns by position; missing directions default
    to descending.

    Raises:
        InvalidRequestError: A column is not sortable or a direction is unknown
    """
    if not order_by:
        return [("order_date", False)]

    columns = [col.strip() for col in order_by.split(",") if col.strip()]
    directions = [d.strip().lower() for d in (order or "").split(",") if d.strip()]

    sort: List[Tuple[str, bool]] = []
    for index, column in enumerate(columns):
        if column not in ORDER_SORT_COLUMNS:
            raise InvalidRequestError(
                f"Invalid sort column '{column}'. Allowed: {', '.join(ORDER_SORT_COLUMNS)}"
            )
        direction = directions[index] if index < len(directions) else "desc"
        if direction not in ("asc", "desc"):
            raise InvalidRequestError(f"Invalid sort direction '{direction}', use asc or desc")
        sort.append((column, direction == "asc"))
    return sort


class OrderService:
    """Creates, edits and summarizes orders."""

    def __init__(self, session: AsyncSession):
        """Initialize service with a database session."""
        self.orders = OrderRepository(session)
        self.buyers = BuyerRepository(session)
        self.blocks = BlockRepository(session)

    async def get_order(self, order_id: int) -> Order:
        order = await self.orders.get(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    async def _check_links(self, data: Dict[str, Any], current: Optional[Order] = None) -> None:
        """
        Validate block/buyer references and fill the buyer snapshot.

        Only snapshot fields empty in ``data`` and, when updating, on the
        ``current`` order are filled.
        """
        block_id = data.get("block_id")
        if block_id is not None and await self.blocks.get(block_id) is None:
            raise InvalidRequestError(f"Block {block_id} does not exist")

        buyer_id = data.get("buyer_id")
        if buyer_id is None:
            return
        buyer = await self.buyers.get(buyer_id)
        if buyer is None:
            raise InvalidRequestError(f"Buyer {buyer_id} does not exist")
        for order_col, buyer_col in BUYER_SNAPSHOT_FIELDS.items():
            if data.get(order_col):
                continue
            if current is not None and order_col not in data and getattr(current, order_col):
                continue
            data[order_col] = getattr(buyer, buyer_col)

    @staticmethod
    def _check_payments(state: Dict[str, Any]) -> Optional[str]:
        """
        Validate installments against the total and derive the payment status.

        Args:
            state: Full set of payment columns after the change

        Returns:
            The derived payment status
        """
        paid = sum(_to_float(state.get(amount_col)) for amount_col, _ in payment_service.PAYMENT_SLOTS)
        total = _to_float(state.get("total_topay"))
        if any(_to_float(state.get(col)) < 0 for col, _ in payment_service.PAYMENT_SLOTS):
            raise InvalidRequestError("Payment amounts cannot be negative")
        if paid > total + PAYMENT_TOLERANCE:
            raise InvalidRequestError(
                f"Total paid {paid:.2f} exceeds the amount due {total:.2f}"
            )
        return payment_service.derive_payment_status(total, round(paid, 2))

    async def create_manual_order(self, payload: OrderCreate) -> Order:
        """
        Insert a manually entered order.

        Totals are computed from the line items when products are given.
        """
        data = payload.model_dump(exclude_none=True)
        await self._check_links(data)

        if not data.get("buyer"):
            raise InvalidRequestError("Buyer is required")

        products = data.get("products")
        if products:
            totals = calculate_order_totals(products, data.get("shipping", 0), data.get("vat_amt", 0))
            for key, value in totals.items():
                data.setdefault(key, value)
        elif "total_topay" in data:
            data.setdefault("total_amt", data["total_topay"])
            data.setdefault("deposit_25", round(data["total_topay"] * DEPOSIT_RATE, 2))

        status = self._check_payments(data)
        data.setdefault("payment_status", status)

        if not data.get("order_ref"):
            data["order_ref"] = generate_order_ref()
        if await self.orders.get_by_order_ref(data["order_ref"]):
            raise DuplicateError(f"Order reference {data['order_ref']} already exists")

        data.setdefault("order_date", datetime.utcnow())
        data.setdefault("order_from", SOURCE_MANUAL)
        data["source"] = SOURCE_MANUAL

        order = await self.orders.create(data)
        logger.info(f"Created manual order {order.order_ref} (id={order.id})")
        return order

    async def update_order(self, payload: OrderUpdate) -> Order:
        """Apply a partial update; ``payload.id`` selects the order."""
        if payload.id is None:
            raise InvalidRequestError("Order id is required")

        order = await self.get_order(payload.id)
        updates = payload.model_dump(exclude_unset=True, exclude={"id"})
        if not updates:
            return order

        nulled = sorted(col for col in REQUIRED_COLUMNS if col in updates and updates[col] is None)
        if nulled:
            raise InvalidRequestError(f"Fields cannot be null: {', '.join(nulled)}")

        await self._check_links(updates, current=order)

        new_ref = updates.get("order_ref")
        if new_ref and new_ref != order.order_ref:
            if await self.orders.get_by_order_ref(new_ref):
                raise DuplicateError(f"Order reference {new_ref} already exists")

        if updates.get("products") is not None:
            totals = calculate_order_totals(
                updates["products"],
                updates.get("shipping", order.shipping),
                updates.get("vat_amt", order.vat_amt),
            )
            for key, value in totals.items():
                updates.setdefault(key, value)

        if PAYMENT_COLUMNS & updates.keys():
            state = {col: updates.get(col, getattr(order, col)) for col in PAYMENT_COLUMNS}
            status = self._check_payments(state)
            updates.setdefault("payment_status", status)

        order = await self.orders.update(order, updates)
        logger.info(f"Updated order {order.order_ref} (id={order.id}): {', '.join(sorted(updates))}")
        return order

    async def delete_order(self, order_id: int) -> None:
        deleted = await self.orders.delete(order_id)
        if not deleted:
            raise NotFoundError(f"Order {order_id} not found")
        logger.info(f"Deleted order id={order_id}")

    async def record_payment(
        self,
        order_id: int,
        amount: Optional[float] = None,
        payment_type: Optional[str] = None,
        paid_on: Optional[datetime] = None,
    ) -> Order:
        order = await self.get_order(order_id)
        updates = payment_service.record_payment(order, amount, payment_type, paid_on)
        return await self.orders.update(order, updates)

    async def shipping_summary(self) -> Dict[str, int]:
        """
        Count orders per shipping stage.

        Ready-to-ship orders are split by whether they are fully paid, since
        only paid orders may be dispatched.
        """
        summary = {
            "inProduction": 0,
            "awaitingPayment": 0,
            "readyToDispatch": 0,
            "shipped": 0,
        }
        for order in await self.orders.find_orders():
            if order.ship_status == SHIP_STATUS_IN_PRODUCTION:
                summary["inProduction"] += 1
            elif order.ship_status == SHIP_STATUS_READY:
                if order.payment_status == PAYMENT_STATUS_PAID:
                    summary["readyToDispatch"] += 1
                else:
                    summary["awaitingPayment"] += 1
            elif order.ship_status == SHIP_STATUS_SHIPPED:
                summary["shipped"] += 1
        return summary
