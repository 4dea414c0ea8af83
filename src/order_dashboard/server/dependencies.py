"""FastAPI dependencies shared by the routers."""

from typing import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from order_dashboard.api.client import ShopifyAPIClient
from order_dashboard.config.settings import Settings
from order_dashboard.integrations.mailer import SMTPMailer


def get_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


async def get_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Dependency for getting database session."""
    session_factory = getattr(request.app.state, "session_factory", None)
    if session_factory is None:
        raise RuntimeError("Database not initialized")

    async with session_factory() as session:
        yield session


async def get_shopify_client(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[ShopifyAPIClient]:
    """Per-request Shopify client, closed when the request finishes."""
    client = ShopifyAPIClient(
        store_url=settings.shopify_store_url,
        access_token=settings.shopify_access_token,
        api_key=settings.shopify_api_key,
        api_version=settings.shopify_api_version,
    )
    try:
        yield client
    finally:
        await client.close()


def get_mailer(settings: Settings = Depends(get_settings)) -> SMTPMailer:
    return SMTPMailer(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_username,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
        from_address=settings.email_from,
        from_name=settings.email_from_name,
        reply_to=settings.email_reply_to,
    )
