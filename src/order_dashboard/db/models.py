"""SQLAlchemy models for orders, buyers, shipping blocks and email bookkeeping."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from order_dashboard.config.constants import (
    BLOCK_STATUS_DEFAULT,
    PAYMENT_STATUS_NONE,
    SHIP_STATUS_NOT_SHIPPED,
    SOURCE_MANUAL,
)

from .base import Base


class TimestampMixin:
    """created_at / last_updated columns shared by every table."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    last_updated: Mapped[Optional[datetime]] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=True
    )


class Buyer(TimestampMixin, Base):
    """A customer with contact and delivery details."""

    __tablename__ = "buyers"
    __table_args__ = (
        Index("buyers_name_idx", "name"),
        Index("buyers_buyer_no_idx", "buyer_no"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    buyer_no: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    billing_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    delivery_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    delivery_contact_person: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    delivery_contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    delivery_contact_phone: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    zip_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class Block(TimestampMixin, Base):
    """A named batch of orders sharing a target ship month."""

    __tablename__ = "blocks"
    __table_args__ = (
        Index("blocks_ship_month_idx", "ship_month"),
        Index("blocks_ship_status_idx", "ship_status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # "YYYY-MM"
    ship_month: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    ship_status: Mapped[str] = mapped_column(
        String(50), default=BLOCK_STATUS_DEFAULT, nullable=False
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class Order(TimestampMixin, Base):
    """
    A customer order, entered manually or synced from Shopify.

    Line items are kept as a JSON snapshot in ``products``; payments are
    tracked in four installment slots with their dates.
    """

    __tablename__ = "orders"
    __table_args__ = (
        Index("orders_shopify_id_idx", "shopify_id"),
        Index("orders_payment_status_idx", "payment_status"),
        Index("orders_ship_status_idx", "ship_status"),
        Index("orders_order_date_idx", "order_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Identity and origin
    order_ref: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    order_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    order_from: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    source: Mapped[str] = mapped_column(String(20), default=SOURCE_MANUAL, nullable=False)
    shopify_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Links
    block_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("blocks.id"), nullable=True
    )
    buyer_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("buyers.id"), nullable=True
    )

    # Buyer / address snapshot
    buyer: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    zip_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    zone: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Shipping
    ship_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    ship_status: Mapped[str] = mapped_column(
        String(50), default=SHIP_STATUS_NOT_SHIPPED, nullable=False
    )
    received: Mapped[str] = mapped_column(String(20), default="No", nullable=False)

    # Products and amounts
    products: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    total_qty: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    value: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    shipping: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    total_amt: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    vat_amt: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    total_topay: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    # Payments
    payment_status: Mapped[str] = mapped_column(
        String(50), default=PAYMENT_STATUS_NONE, nullable=False
    )
    deposit_25: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    payment_1: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    date_p1: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    payment_2: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    date_p2: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    payment_3: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    date_p3: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    payment_4: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    date_p4: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Email notification tracking
    deposit_reminder_sent: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    payment_confirmation_sent: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    shipping_notification_sent: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class EmailTemplate(TimestampMixin, Base):
    """Subject/body pair with {{token}} placeholders, one per email type."""

    __tablename__ = "email_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)


class EmailLog(Base):
    """One row per attempted notification email."""

    __tablename__ = "email_logs"
    __table_args__ = (
        Index("email_logs_order_ref_idx", "order_ref"),
        Index("email_logs_order_id_idx", "order_id"),
        Index("email_logs_email_type_idx", "email_type"),
        Index("email_logs_status_idx", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    order_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    buyer_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    order_ref: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    email_type: Mapped[str] = mapped_column(String(50), nullable=False)
    recipient: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
