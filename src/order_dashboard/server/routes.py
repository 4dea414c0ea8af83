"""Service info and health routes (no authentication)."""

from fastapi import APIRouter, Request
from sqlalchemy import text

from order_dashboard import __version__
from order_dashboard.core.logger import setup_logger

logger = setup_logger(__name__)
router = APIRouter()


@router.get("/")
async def root() -> dict:
    """Root endpoint with basic service info."""
    return {
        "service": "Order Dashboard API",
        "version": __version__,
        "endpoints": {
            "orders": "GET/POST/PATCH/DELETE /api/orders",
            "payments": "POST /api/orders/{id}/payments, GET /api/payments/summary",
            "blocks": "GET/POST/PATCH/DELETE /api/blocks",
            "buyers": "GET/POST/PATCH/DELETE /api/buyers",
            "products": "GET/POST/PUT /api/products",
            "sync": "POST /api/sync",
            "db_setup": "POST /api/db-setup",
            "emails": "/api/emails/templates, /api/emails/send, /api/emails/reminders, /api/emails/logs",
            "health": "GET /health",
            "docs": "GET /docs",
        },
    }


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Health check endpoint for monitoring."""
    settings = request.app.state.settings
    health_status = {
        "status": "healthy",
        "service": "order-dashboard",
        "checks": {},
    }

    # Database reachability
    try:
        async with request.app.state.session_factory() as session:
            await session.execute(text("SELECT 1"))
        health_status["checks"]["database"] = "ok"
    except Exception as e:
        logger.error(f"Health check database error: {e}")
        health_status["checks"]["database"] = "error"
        health_status["status"] = "unhealthy"

    # Check required environment variables
    env_checks = {
        "shopify_store_url": "ok" if settings.shopify_store_url else "missing",
        "shopify_access_token": "ok" if settings.shopify_access_token else "missing",
        "shopify_api_key": "ok" if settings.shopify_api_key else "missing",
        "dashboard_api_key": "ok" if settings.dashboard_api_key else "missing",
    }
    missing_env = [k for k, v in env_checks.items() if v == "missing"]
    if missing_env and health_status["status"] == "healthy":
        health_status["status"] = "degraded"
    health_status["checks"]["environment"] = env_checks

    health_status["checks"]["email"] = (
        "enabled" if settings.smtp_host and settings.email_from else "disabled"
    )

    return health_status
