"""
Email API Routes

Template management, single sends, batch payment reminders and send logs.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from order_dashboard.config.constants import EMAIL_STATUS_SENT
from order_dashboard.config.settings import Settings
from order_dashboard.core.exceptions import DashboardError, InvalidRequestError
from order_dashboard.core.logger import setup_logger
from order_dashboard.integrations.mailer import SMTPMailer
from order_dashboard.models.email import (
    EmailLogRead,
    EmailTemplateRead,
    EmailTemplateUpdate,
    ReminderRequest,
    SendEmailRequest,
)
from order_dashboard.server.auth import verify_api_key
from order_dashboard.server.dependencies import get_db_session, get_mailer, get_settings
from order_dashboard.server.responses import error_response
from order_dashboard.services.email_service import EmailService

logger = setup_logger(__name__)

router = APIRouter(prefix="/api/emails", tags=["emails"], dependencies=[Depends(verify_api_key)])


def get_email_service(
    session: AsyncSession = Depends(get_db_session),
    mailer: SMTPMailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
) -> EmailService:
    return EmailService(
        session,
        mailer,
        payment_link_base_url=settings.payment_link_base_url,
        company_name=settings.email_from_name,
    )


@router.get("/templates")
async def list_templates(service: EmailService = Depends(get_email_service)):
    """All templates; built-in ones are created on first access."""
    templates = await service.list_templates()
    return {"templates": [EmailTemplateRead.model_validate(t).model_dump(mode="json") for t in templates]}


@router.put("/templates/{template_type}")
async def save_template(
    template_type: str,
    payload: EmailTemplateUpdate,
    service: EmailService = Depends(get_email_service),
):
    template = await service.update_template(template_type, payload.subject, payload.content)
    return EmailTemplateRead.model_validate(template).model_dump(mode="json")


@router.post("/send")
async def send_email(payload: SendEmailRequest, service: EmailService = Depends(get_email_service)):
    """
    Send one email for an order.

    Either ``template_type`` or both ``subject`` and ``content`` must be given.
    Answers 502 when the mail server refused the message; the attempt is
    logged either way.
    """
    try:
        if payload.template_type:
            log = await service.send_order_email(
                payload.order_id,
                payload.template_type,
                recipient=payload.recipient,
                tracking_number=payload.tracking_number,
                tracking_link=payload.tracking_link,
            )
        elif payload.subject and payload.content:
            log = await service.send_custom_email(
                payload.order_id,
                payload.subject,
                payload.content,
                recipient=payload.recipient,
            )
        else:
            raise InvalidRequestError("Provide template_type, or subject and content")
    except DashboardError:
        raise
    except Exception as e:
        logger.error(f"Error sending email for order {payload.order_id}: {e}", exc_info=True)
        return error_response("Failed to send email", 500, success=False)

    log_body = EmailLogRead.model_validate(log).model_dump(mode="json")
    if log.status != EMAIL_STATUS_SENT:
        return error_response(log.error or "Email could not be sent", 502, success=False, log=log_body)
    return {"success": True, "log": log_body}


@router.post("/reminders")
async def send_reminders(payload: ReminderRequest, service: EmailService = Depends(get_email_service)):
    """Batch deposit or final payment reminders."""
    try:
        return await service.send_batch_reminders(payload.reminder_type, payload.order_ids)
    except DashboardError:
        raise
    except Exception as e:
        logger.error(f"Error sending batch reminders: {e}", exc_info=True)
        return error_response("Failed to send reminders", 500)


@router.get("/logs")
async def list_logs(
    order_id: int = Query(..., description="Order whose email history to return"),
    service: EmailService = Depends(get_email_service),
):
    logs = await service.logs_for_order(order_id)
    return {"logs": [EmailLogRead.model_validate(log).model_dump(mode="json") for log in logs]}
