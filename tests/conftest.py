"""Shared fixtures: a temporary SQLite database per test and fake outbound clients."""

import os

os.environ.setdefault("LOG_TO_FILE", "false")

from typing import Any, Dict, List, Optional, Sequence  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from order_dashboard.config.settings import Settings  # noqa: E402
from order_dashboard.core.exceptions import ShopifyAPIError  # noqa: E402
from order_dashboard.db import get_engine, get_session_factory, init_db  # noqa: E402
from order_dashboard.server.app import create_app  # noqa: E402
from order_dashboard.server.dependencies import get_mailer, get_shopify_client  # noqa: E402

API_KEY = "test-dashboard-key"


class FakeShopifyClient:
    """Stands in for ShopifyAPIClient, serving canned orders and products."""

    def __init__(self) -> None:
        self.orders: List[Dict[str, Any]] = []
        self.products: List[Dict[str, Any]] = []
        self.since_ids: List[Optional[int]] = []
        self.product_queries: List[Dict[str, Any]] = []
        self.rate_limited = False

    async def get_orders(self, since_id: Optional[int] = None) -> List[Dict[str, Any]]:
        self.since_ids.append(since_id)
        if since_id is None:
            return list(self.orders)
        return [o for o in self.orders if o.get("id") and o["id"] > since_id]

    async def get_products(
        self,
        limit: int = 50,
        cursor: Optional[str] = None,
        query: Optional[str] = None,
        ids: Optional[Sequence[str]] = None,
    ) -> Dict[str, Any]:
        self.product_queries.append({"limit": limit, "cursor": cursor, "query": query, "ids": ids})
        if self.rate_limited:
            raise ShopifyAPIError("Shopify API error: 429 rate limit exceeded", upstream_status=429)
        products = self.products
        if ids:
            products = [p for p in products if str(p["id"]) in ids]
        return {
            "products": products[:limit],
            "pagination": {"hasNextPage": False, "endCursor": None},
        }


class FakeMailer:
    """Records sends instead of talking to an SMTP server."""

    def __init__(self) -> None:
        self.sent: List[Dict[str, str]] = []
        self.fail = False

    async def send(self, to: str, subject: str, html: str):
        if self.fail:
            return False, "SMTP error: 550 mailbox unavailable"
        self.sent.append({"to": to, "subject": subject, "html": html})
        return True, "sent"


def shopify_order(order_id: int, number: int, **overrides: Any) -> Dict[str, Any]:
    """A Shopify order payload restricted to the fields the sync requests."""
    order = {
        "id": order_id,
        "name": f"#{number}",
        "order_number": number,
        "created_at": "2024-03-05T10:15:00-05:00",
        "source_name": "web",
        "email": f"customer{number}@example.com",
        "customer": {"id": 77, "first_name": "Ana", "last_name": "Silva", "email": "ana@example.com"},
        "billing_address": {"city": "Porto", "zip": "4000-001", "country": "Portugal"},
        "line_items": [
            {"id": 1, "title": "Ceramic Bowl", "sku": "BWL-1", "quantity": 2, "price": "40.00"},
            {"id": 2, "title": "Linen Towel", "sku": "TWL-1", "quantity": 3, "price": "10.00"},
        ],
        "shipping_lines": [{"title": "Standard", "price": "15.00"}],
        "subtotal_price": "110.00",
        "total_price": "148.95",
        "current_total_tax": "23.95",
        "financial_status": "pending",
    }
    order.update(overrides)
    return order


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'dashboard.db'}",
        dashboard_api_key=API_KEY,
        shopify_store_url=None,
        shopify_access_token=None,
        shopify_api_key=None,
        smtp_host=None,
        email_from=None,
        payment_link_base_url="https://pay.example.com/orders",
    )


@pytest.fixture
def fake_shopify() -> FakeShopifyClient:
    return FakeShopifyClient()


@pytest.fixture
def fake_mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def app(settings, fake_shopify, fake_mailer):
    application = create_app(settings)
    application.dependency_overrides[get_shopify_client] = lambda: fake_shopify
    application.dependency_overrides[get_mailer] = lambda: fake_mailer
    return application


@pytest.fixture
def client(app):
    """Authenticated client; entering the context runs startup (table creation)."""
    with TestClient(app, headers={"X-API-Key": API_KEY}) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def engine(tmp_path):
    db_engine = get_engine(f"sqlite+aiosqlite:///{tmp_path / 'service.db'}")
    yield db_engine
    await db_engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    await init_db(engine)
    session_factory = get_session_factory(engine)
    async with session_factory() as db_session:
        yield db_session


@pytest.fixture
def create_order(client):
    """POST a manual order and return the response body."""

    def _create(**fields: Any) -> Dict[str, Any]:
        payload = {"buyer": "Harbor Goods", "total_topay": 1000.0}
        payload.update(fields)
        response = client.post("/api/orders", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _create
