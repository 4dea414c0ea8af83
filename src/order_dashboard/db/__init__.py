"""Database module."""

from .base import Base, get_engine, get_session_factory, init_db
from .models import Block, Buyer, EmailLog, EmailTemplate, Order
from .repository import (
    BlockRepository,
    BuyerRepository,
    EmailLogRepository,
    EmailTemplateRepository,
    OrderRepository,
)

__all__ = [
    "Base",
    "get_engine",
    "get_session_factory",
    "init_db",
    "Block",
    "Buyer",
    "EmailLog",
    "EmailTemplate",
    "Order",
    "BlockRepository",
    "BuyerRepository",
    "EmailLogRepository",
    "EmailTemplateRepository",
    "OrderRepository",
]
