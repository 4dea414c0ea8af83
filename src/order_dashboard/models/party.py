"""Pydantic models for buyer and block payloads."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class BuyerFields(BaseModel):
    """Writable buyer columns."""

    name: Optional[str] = None
    buyer_no: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    billing_address: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_contact_person: Optional[str] = None
    delivery_contact_email: Optional[str] = None
    delivery_contact_phone: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        extra = "forbid"


class BuyerCreate(BuyerFields):
    pass


class BuyerUpdate(BuyerFields):
    id: Optional[int] = None


class BuyerRead(BuyerFields):
    id: int
    name: str
    created_at: datetime
    last_updated: Optional[datetime] = None
    order_count: Optional[int] = None

    class Config:
        from_attributes = True


class BlockFields(BaseModel):
    """Writable block columns."""

    name: Optional[str] = None
    ship_month: Optional[str] = None
    ship_status: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        extra = "forbid"


class BlockCreate(BlockFields):
    pass


class BlockUpdate(BlockFields):
    id: Optional[int] = None


class BlockRead(BlockFields):
    id: int
    name: str
    ship_status: str
    created_at: datetime
    last_updated: Optional[datetime] = None

    class Config:
        from_attributes = True
