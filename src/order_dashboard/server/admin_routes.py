"""Database maintenance route."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from order_dashboard.core.logger import setup_logger
from order_dashboard.integrations.mailer import SMTPMailer
from order_dashboard.db.migrations import apply_schema_improvements
from order_dashboard.server.auth import verify_api_key
from order_dashboard.server.dependencies import get_db_session, get_mailer
from order_dashboard.server.responses import error_response
from order_dashboard.services.email_service import EmailService

logger = setup_logger(__name__)

router = APIRouter(prefix="/api", tags=["admin"], dependencies=[Depends(verify_api_key)])


@router.post("/db-setup")
async def db_setup(
    request: Request,
    session: AsyncSession = Depends(get_db_session),
    mailer: SMTPMailer = Depends(get_mailer),
):
    """Apply pending schema improvements and seed default email templates."""
    try:
        changes = await apply_schema_improvements(request.app.state.engine)
        created = await EmailService(session, mailer).ensure_default_templates()
        changes.extend(f"created email template {t}" for t in created)
        return {
            "success": True,
            "message": "Database schema improvements applied successfully",
            "changes": changes,
        }
    except Exception as e:
        logger.error(f"Error applying schema improvements: {e}", exc_info=True)
        return error_response(str(e), 500, success=False)
