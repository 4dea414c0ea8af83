"""Configuration management using Pydantic Settings.

Loads configuration from environment variables with .env file support.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration."""

    # Database Configuration
    database_url: str = "sqlite+aiosqlite:///./orders.db"

    # Shopify API Configuration
    shopify_store_url: Optional[str] = None
    shopify_access_token: Optional[str] = None
    shopify_api_key: Optional[str] = None
    shopify_api_version: str = "2023-07"

    # Outbound Email (SMTP) Configuration
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    email_from: Optional[str] = None
    email_from_name: str = "Orders"
    email_reply_to: Optional[str] = None
    payment_link_base_url: str = "https://example.com/pay"

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    environment: str = "development"
    cors_origins: List[str] = ["*"]

    # Dashboard Configuration
    dashboard_api_key: Optional[str] = None

    class Config:
        """Pydantic config."""

        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Create a global settings instance
settings = Settings()
