"""Shopify Admin REST API client."""

import asyncio
import re
from typing import Any, Dict, List, Optional, Sequence

import httpx

from order_dashboard.config.constants import (
    PAGE_DELAY_SECONDS,
    RATE_LIMIT_BASE_DELAY_SECONDS,
    RATE_LIMIT_MAX_DELAY_SECONDS,
    RATE_LIMIT_MAX_RETRIES,
    SHOPIFY_ORDER_FIELDS,
    SHOPIFY_PAGE_SIZE,
    SHOPIFY_PRODUCT_FIELDS,
    SHOPIFY_REQUEST_TIMEOUT,
)
from order_dashboard.core.exceptions import MissingCredentialsError, ShopifyAPIError
from order_dashboard.core.logger import setup_logger
from .endpoints import ORDERS, PRODUCTS

logger = setup_logger(__name__)

_PAGE_INFO_RE = re.compile(r"page_info=([^>&]+)")


class ShopifyAPIClient:
    """Async HTTP client for the Shopify Admin REST API."""

    def __init__(
        self,
        store_url: Optional[str],
        access_token: Optional[str],
        api_key: Optional[str],
        api_version: str = "2023-07",
        client: Optional[httpx.AsyncClient] = None,
        page_delay: float = PAGE_DELAY_SECONDS,
        retry_base_delay: float = RATE_LIMIT_BASE_DELAY_SECONDS,
        max_retries: int = RATE_LIMIT_MAX_RETRIES,
    ):
        """
        Initialize API client.

        Credentials are only checked when a request is made, so the client
        can be constructed from partial configuration.

        Args:
            store_url: Shop domain, e.g. "my-shop.myshopify.com"
            access_token: Admin API access token (custom app password)
            api_key: Custom app API key
            api_version: Admin API version segment of the URL
            client: Optional preconfigured httpx client (tests inject a mock transport)
            page_delay: Seconds to wait between paginated requests
            retry_base_delay: First backoff delay after a 429 response
            max_retries: Attempts per request before giving up on 429
        """
        self.store_url = (store_url or "").strip().replace("https://", "").rstrip("/")
        self.access_token = (access_token or "").strip()
        self.api_key = (api_key or "").strip()
        self.api_version = api_version
        self.page_delay = page_delay
        self.retry_base_delay = retry_base_delay
        self.max_retries = max(1, max_retries)
        self.client = client or httpx.AsyncClient(timeout=SHOPIFY_REQUEST_TIMEOUT)

    def _check_credentials(self, purpose: str) -> None:
        if not self.store_url or not self.access_token or not self.api_key:
            raise MissingCredentialsError(f"Missing Shopify API credentials for {purpose}")

    def _url(self, path: str) -> str:
        return f"https://{self.store_url}{path.format(version=self.api_version)}"

    def _retry_delay(self, attempt: int, retry_after: Optional[str]) -> float:
        """Backoff before the next attempt, preferring the server's Retry-After."""
        if retry_after:
            try:
                return min(float(retry_after), RATE_LIMIT_MAX_DELAY_SECONDS)
            except ValueError:
                pass
        return min(self.retry_base_delay * (2 ** (attempt - 1)), RATE_LIMIT_MAX_DELAY_SECONDS)

    async def _request(self, path: str, params: Dict[str, Any]) -> httpx.Response:
        """
        GET an Admin API path, retrying throttled responses.

        Raises:
            ShopifyAPIError: On transport failure, a non-2xx answer, or 429
                after ``max_retries`` attempts
        """
        url = self._url(path)
        headers = {
            "X-Shopify-Access-Token": self.access_token,
            "Content-Type": "application/json",
        }

        for attempt in range(1, self.max_retries + 1):
            try:
                logger.info(f"Making Shopify API request to {path} (attempt {attempt})")
                response = await self.client.get(url, params=params, headers=headers)
            except httpx.HTTPError as e:
                logger.error(f"HTTP error calling {path}: {e}")
                raise ShopifyAPIError(f"Shopify request failed: {e}") from e

            if response.status_code == 429:
                if attempt == self.max_retries:
                    logger.error(f"Shopify rate limit persisted after {attempt} attempts")
                    break
                delay = self._retry_delay(attempt, response.headers.get("Retry-After"))
                logger.warning(f"Shopify rate limited (429), retrying in {delay:.2f}s")
                await asyncio.sleep(delay)
                continue

            if response.status_code >= 400:
                logger.error(
                    f"Shopify API error calling {path}: {response.status_code} - {response.text[:200]}"
                )
                raise ShopifyAPIError(
                    f"Shopify API error: {response.status_code}",
                    upstream_status=response.status_code,
                )

            return response

        raise ShopifyAPIError("Shopify API error: 429 rate limit exceeded", upstream_status=429)

    @staticmethod
    def _parse_next_page_info(link_header: Optional[str]) -> Optional[str]:
        """
        Extract the ``page_info`` cursor of the rel="next" link.

        Shopify sends e.g. ``<https://...?page_info=abc&limit=250>; rel="next"``,
        possibly alongside a rel="previous" link.
        """
        if not link_header:
            return None
        for part in link_header.split(","):
            if 'rel="next"' not in part:
                continue
            match = _PAGE_INFO_RE.search(part)
            if match:
                return match.group(1)
        return None

    async def get_orders(self, since_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Fetch all orders (any status), following cursor pagination.

        Args:
            since_id: Only return orders with a greater id (incremental sync)

        Returns:
            Raw order dicts as returned by Shopify
        """
        self._check_credentials("orders")

        params: Dict[str, Any] = {
            "status": "any",
            "limit": SHOPIFY_PAGE_SIZE,
            "fields": SHOPIFY_ORDER_FIELDS,
        }
        if since_id is not None:
            params["since_id"] = since_id

        orders: List[Dict[str, Any]] = []
        page = 1
        while True:
            response = await self._request(ORDERS, params)
            batch = response.json().get("orders") or []
            orders.extend(batch)
            logger.info(f"Fetched orders page {page}: {len(batch)} orders ({len(orders)} total)")

            next_page_info = self._parse_next_page_info(response.headers.get("Link"))
            if not next_page_info or not batch:
                break

            # Cursor requests may only carry page_info, limit and fields
            params = {
                "page_info": next_page_info,
                "limit": SHOPIFY_PAGE_SIZE,
                "fields": SHOPIFY_ORDER_FIELDS,
            }
            page += 1
            await asyncio.sleep(self.page_delay)

        return orders

    async def get_products(
        self,
        limit: int = 50,
        cursor: Optional[str] = None,
        query: Optional[str] = None,
        ids: Optional[Sequence[str]] = None,
    ) -> Dict[str, Any]:
        """
        Fetch one page of products.

        Args:
            limit: Page size (Shopify caps this at 250)
            cursor: page_info cursor from a previous call
            query: Title filter
            ids: Restrict to these product ids

        Returns:
            {"products": [...], "pagination": {"hasNextPage": bool, "endCursor": str | None}}
        """
        self._check_credentials("products")

        params: Dict[str, Any] = {
            "limit": max(1, min(limit, SHOPIFY_PAGE_SIZE)),
            "fields": SHOPIFY_PRODUCT_FIELDS,
        }
        if cursor:
            params["page_info"] = cursor
        else:
            if query:
                params["title"] = query
            if ids:
                params["ids"] = ",".join(str(product_id) for product_id in ids)

        response = await self._request(PRODUCTS, params)
        end_cursor = self._parse_next_page_info(response.headers.get("Link"))

        return {
            "products": response.json().get("products") or [],
            "pagination": {
                "hasNextPage": end_cursor is not None,
                "endCursor": end_cursor,
            },
        }

    async def close(self) -> None:
        """Close HTTP client connection."""
        await self.client.aclose()
