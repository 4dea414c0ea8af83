"""Pydantic models for Shopify Admin API payloads."""

from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field


class ShopifyCustomer(BaseModel):
    """Customer block embedded in an order."""

    id: Optional[int] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None

    class Config:
        extra = "allow"


class ShopifyAddress(BaseModel):
    """Billing or shipping address."""

    city: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None

    class Config:
        extra = "allow"


class ShopifyLineItem(BaseModel):
    """Order line item. Shopify sends quantities as ints but prices as strings."""

    id: Optional[int] = None
    title: Optional[str] = None
    sku: Optional[str] = None
    quantity: Union[int, str, None] = 0
    price: Optional[str] = None

    class Config:
        extra = "allow"


class ShopifyShippingLine(BaseModel):
    title: Optional[str] = None
    price: Optional[str] = None

    class Config:
        extra = "allow"


class ShopifyOrder(BaseModel):
    """Order as returned by ``orders.json`` with the selected fields."""

    id: Optional[int] = None
    name: Optional[str] = None
    order_number: Optional[int] = None
    created_at: Optional[str] = None
    source_name: Optional[str] = None
    email: Optional[str] = None
    customer: Optional[ShopifyCustomer] = None
    billing_address: Optional[ShopifyAddress] = None
    line_items: List[ShopifyLineItem] = Field(default_factory=list)
    shipping_lines: List[ShopifyShippingLine] = Field(default_factory=list)
    subtotal_price: Optional[str] = None
    total_price: Optional[str] = None
    current_total_tax: Optional[str] = None
    financial_status: Optional[str] = None

    class Config:
        extra = "allow"


class ProductSuggestion(BaseModel):
    """Autocomplete entry built from a Shopify product."""

    id: Any
    title: Optional[str] = None
    price: str = "0.00"
    image: Optional[str] = None
    type: Optional[str] = None


class ProductSearchRequest(BaseModel):
    """Body of POST /api/products."""

    search: Optional[str] = None
    limit: int = Field(default=10, ge=1, le=250)


class ProductDetailsRequest(BaseModel):
    """Body of PUT /api/products."""

    ids: Optional[List[Union[int, str]]] = None
