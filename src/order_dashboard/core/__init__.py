"""Core module - Logging and domain exceptions."""

from order_dashboard.core.logger import setup_logger
from order_dashboard.core.exceptions import (
    DashboardError,
    DuplicateError,
    InvalidRequestError,
    LinkedOrdersError,
    MissingCredentialsError,
    NotFoundError,
    ShopifyAPIError,
)

__all__ = [
    "setup_logger",
    "DashboardError",
    "DuplicateError",
    "InvalidRequestError",
    "LinkedOrdersError",
    "MissingCredentialsError",
    "NotFoundError",
    "ShopifyAPIError",
]
