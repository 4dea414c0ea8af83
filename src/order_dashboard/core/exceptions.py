"""Domain exceptions.

Each exception carries the HTTP status the API layer answers with; the
handler registered in ``server.app`` turns them into ``{"error": ...}``.
"""

from typing import Optional


class DashboardError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidRequestError(DashboardError):
    """Input failed an application-side check."""


class NotFoundError(DashboardError):
    status_code = 404


class DuplicateError(DashboardError):
    """A unique business key (order_ref, buyer_no) is already taken."""


class LinkedOrdersError(DashboardError):
    """A block or buyer still has orders pointing at it."""


class MissingCredentialsError(DashboardError):
    """Required environment configuration is absent."""

    status_code = 500


class ShopifyAPIError(DashboardError):
    """Non-success response from the Shopify Admin API."""

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        self.upstream_status = upstream_status
        # Throttling is passed through, everything else is a bad gateway
        status_code = 429 if upstream_status == 429 else 502
        super().__init__(message, status_code=status_code)

    @property
    def is_rate_limited(self) -> bool:
        return self.upstream_status == 429
