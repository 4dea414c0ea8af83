"""FastAPI application setup and configuration."""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from order_dashboard import __version__
from order_dashboard.config.settings import Settings, settings as default_settings
from order_dashboard.core.exceptions import DashboardError
from order_dashboard.core.logger import setup_logger
from order_dashboard.db import get_engine, get_session_factory, init_db

logger = setup_logger(__name__)


def _describe_validation_error(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return "; ".join(messages) or "Invalid request"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Configuration override; defaults to the environment settings
    """
    settings = settings or default_settings

    app = FastAPI(
        title="Order Dashboard API",
        version=__version__,
        description="Orders, payments, shipping blocks and Shopify sync for the order dashboard",
    )

    app.state.settings = settings
    app.state.engine = get_engine(settings.database_url)
    app.state.session_factory = get_session_factory(app.state.engine)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DashboardError)
    async def dashboard_error_handler(request: Request, exc: DashboardError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _describe_validation_error(exc)})

    from order_dashboard.server import (
        admin_routes,
        block_routes,
        buyer_routes,
        email_routes,
        order_routes,
        payment_routes,
        product_routes,
        routes,
        sync_routes,
    )

    # Include routers
    app.include_router(routes.router)
    app.include_router(order_routes.router)
    app.include_router(payment_routes.router)
    app.include_router(block_routes.router)
    app.include_router(buyer_routes.router)
    app.include_router(product_routes.router)
    app.include_router(sync_routes.router)
    app.include_router(admin_routes.router)
    app.include_router(email_routes.router)

    # Database initialization on startup
    @app.on_event("startup")
    async def startup_db():
        """Create missing tables on application startup."""
        try:
            logger.info(f"Initializing database: {settings.database_url}")
            await init_db(app.state.engine)
            logger.info("Database initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize database: {e}", exc_info=True)
            raise

    @app.on_event("shutdown")
    async def shutdown_handler():
        """Close database connections."""
        logger.info("Closing database connections...")
        try:
            await app.state.engine.dispose()
            logger.info("Database connections closed successfully")
        except Exception as e:
            logger.error(f"Error closing database connections: {e}", exc_info=True)

    return app
