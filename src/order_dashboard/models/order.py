"""Pydantic models for order and payment payloads."""

from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field


class LineItem(BaseModel):
    """A product line on a manually entered order."""

    id: Optional[Union[int, str]] = None
    title: str = ""
    sku: str = ""
    variant_title: Optional[str] = None
    quantity: int = 1
    price: float = 0.0

    class Config:
        extra = "allow"


class OrderFields(BaseModel):
    """Writable order columns. Every field is optional so PATCH can send a subset."""

    order_ref: Optional[str] = None
    order_date: Optional[datetime] = None
    order_from: Optional[str] = None
    block_id: Optional[int] = None
    buyer_id: Optional[int] = None
    buyer: Optional[str] = None
    email: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    zone: Optional[str] = None
    ship_date: Optional[datetime] = None
    ship_status: Optional[str] = None
    received: Optional[str] = None
    products: Optional[List[LineItem]] = None
    total_qty: Optional[int] = None
    value: Optional[float] = None
    shipping: Optional[float] = None
    total_amt: Optional[float] = None
    vat_amt: Optional[float] = None
    total_topay: Optional[float] = None
    payment_status: Optional[str] = None
    deposit_25: Optional[float] = None
    payment_1: Optional[float] = None
    date_p1: Optional[datetime] = None
    payment_2: Optional[float] = None
    date_p2: Optional[datetime] = None
    payment_3: Optional[float] = None
    date_p3: Optional[datetime] = None
    payment_4: Optional[float] = None
    date_p4: Optional[datetime] = None
    notes: Optional[str] = None

    class Config:
        extra = "forbid"


class OrderCreate(OrderFields):
    """Body of POST /api/orders (manual order entry)."""


class OrderUpdate(OrderFields):
    """Body of PATCH /api/orders; ``id`` selects the row."""

    id: Optional[int] = None


class OrderRead(BaseModel):
    """Order as returned by the API."""

    id: int
    created_at: datetime
    last_updated: Optional[datetime] = None
    order_ref: str
    order_date: Optional[datetime] = None
    order_from: Optional[str] = None
    source: str
    shopify_id: Optional[str] = None
    block_id: Optional[int] = None
    buyer_id: Optional[int] = None
    buyer: str
    email: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    zone: Optional[str] = None
    ship_date: Optional[datetime] = None
    ship_status: str
    received: str
    products: Optional[Any] = None
    total_qty: int
    value: float
    shipping: float
    total_amt: float
    vat_amt: float
    total_topay: float
    payment_status: str
    deposit_25: float
    payment_1: Optional[float] = None
    date_p1: Optional[datetime] = None
    payment_2: Optional[float] = None
    date_p2: Optional[datetime] = None
    payment_3: Optional[float] = None
    date_p3: Optional[datetime] = None
    payment_4: Optional[float] = None
    date_p4: Optional[datetime] = None
    notes: Optional[str] = None
    deposit_reminder_sent: Optional[datetime] = None
    payment_confirmation_sent: Optional[datetime] = None
    shipping_notification_sent: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentCreate(BaseModel):
    """Body of POST /api/orders/{id}/payments."""

    amount: Optional[float] = Field(default=None, description="Defaults to the amount due for the payment type")
    payment_type: Optional[str] = Field(default=None, description="deposit, final or additional")
    paid_on: Optional[datetime] = None


class PaymentSummary(BaseModel):
    """Derived payment figures for one order."""

    total_due: float
    paid: float
    outstanding: float
    next_payment_due: float
    deposit_required: float
    deposit_paid: bool
    fully_paid: bool
    installments_used: int
