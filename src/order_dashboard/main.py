"""Order Dashboard API - Main Entry Point."""

import os

from order_dashboard.config.settings import settings
from order_dashboard.server.app import create_app

# Create FastAPI application
app = create_app()


def run() -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    reload = os.getenv("RELOAD", "false").lower() == "true"

    uvicorn.run(
        "order_dashboard.main:app",
        host=settings.host,
        port=settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
        timeout_keep_alive=5,
        access_log=False,  # Disable uvicorn access log (we use structured logging)
    )


if __name__ == "__main__":
    run()
