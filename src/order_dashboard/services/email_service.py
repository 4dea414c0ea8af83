"""Customer notification emails.

Templates are stored per email type with ``{{token}}`` placeholders that are
filled from the order and its buyer. Every attempted send is written to
``email_logs``; successful sends also stamp the matching ``*_sent`` column
on the order.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from order_dashboard.config.constants import EMAIL_STATUS_FAILED, EMAIL_STATUS_SENT
from order_dashboard.core.exceptions import InvalidRequestError, NotFoundError
from order_dashboard.core.logger import setup_logger
from order_dashboard.db.models import Buyer, EmailLog, EmailTemplate, Order
from order_dashboard.db.repository import (
    BuyerRepository,
    EmailLogRepository,
    EmailTemplateRepository,
    OrderRepository,
)
from order_dashboard.integrations.mailer import SMTPMailer
from order_dashboard.services import payment_service

logger = setup_logger(__name__)

EMAIL_TYPE_CUSTOM = "custom"

_TOKEN_RE = re.compile(r"\{\{(\w+)\}\}")

DEFAULT_TEMPLATES: Dict[str, Dict[str, str]] = {
    "deposit_reminder": {
        "subject": "Deposit Required: {{order_ref}}",
        "content": (
            "<h1>Deposit Required for Your Order</h1>\n"
            "<p>Dear {{buyer_name}},</p>\n"
            "<p>Thank you for your order ({{order_ref}}) placed on {{order_date}}.</p>\n"
            "<p>To proceed with production, we require a 25% deposit of {{deposit_amount}} "
            "for your total order amount of {{total_amount}}.</p>\n"
            "<p>Please click the link below to make your deposit payment:</p>\n"
            "<p><a href=\"{{payment_link}}\">Make Deposit Payment</a></p>\n"
            "<p>If you have any questions, please don't hesitate to contact us.</p>\n"
            "<p>Thank you,<br>{{company_name}}</p>"
        ),
    },
    "deposit_confirmation": {
        "subject": "Deposit Received: {{order_ref}}",
        "content": (
            "<h1>Deposit Received - Thank You!</h1>\n"
            "<p>Dear {{buyer_name}},</p>\n"
            "<p>We have received your deposit of {{deposit_amount}} for order {{order_ref}}.</p>\n"
            "<p>Your order is now in production. The remaining balance of {{remaining_amount}} "
            "will be due before shipping.</p>\n"
            "<p>Estimated shipping date: {{estimated_ship_date}}</p>\n"
            "<p>Thank you for your business!</p>\n"
            "<p>Best regards,<br>{{company_name}}</p>"
        ),
    },
    "final_payment_reminder": {
        "subject": "Final Payment Required: {{order_ref}}",
        "content": (
            "<h1>Final Payment Required</h1>\n"
            "<p>Dear {{buyer_name}},</p>\n"
            "<p>Your order ({{order_ref}}) is ready to ship!</p>\n"
            "<p>You have already paid {{paid_amount}}. The remaining balance of "
            "{{remaining_amount}} is now due before we can ship your order.</p>\n"
            "<p>Please click the link below to make your final payment:</p>\n"
            "<p><a href=\"{{payment_link}}\">Make Final Payment</a></p>\n"
            "<p>Estimated shipping date after payment: {{estimated_ship_date}}</p>\n"
            "<p>Thank you,<br>{{company_name}}</p>"
        ),
    },
    "payment_confirmation": {
        "subject": "Payment Received: {{order_ref}}",
        "content": (
            "<h1>Payment Received - Thank You!</h1>\n"
            "<p>Dear {{buyer_name}},</p>\n"
            "<p>We have received your payment for order {{order_ref}}.</p>\n"
            "<p>Your order is now fully paid and will be shipped soon.</p>\n"
            "<p>We will send you a shipping confirmation with tracking information "
            "once your order is on its way.</p>\n"
            "<p>Thank you for your business!</p>\n"
            "<p>Best regards,<br>{{company_name}}</p>"
        ),
    },
    "shipping_notification": {
        "subject": "Your Order Has Shipped: {{order_ref}}",
        "content": (
            "<h1>Your Order Has Shipped!</h1>\n"
            "<p>Dear {{buyer_name}},</p>\n"
            "<p>Great news! Your order ({{order_ref}}) has been shipped on {{ship_date}}.</p>\n"
            "<p>Delivery Address:<br>{{delivery_address}}</p>\n"
            "<p>Tracking Number: {{tracking_number}}</p>\n"
            "<p>You can track your package here: <a href=\"{{tracking_link}}\">Track Your Order</a></p>\n"
            "<p>Thank you for shopping with us!</p>\n"
            "<p>Best regards,<br>{{company_name}}</p>"
        ),
    },
}

# Order column stamped after a successful send of each type
SENT_COLUMNS = {
    "deposit_reminder": "deposit_reminder_sent",
    "final_payment_reminder": "deposit_reminder_sent",
    "deposit_confirmation": "payment_confirmation_sent",
    "payment_confirmation": "payment_confirmation_sent",
    "shipping_notification": "shipping_notification_sent",
}

REMINDER_TEMPLATES = {
    "deposit": "deposit_reminder",
    "final": "final_payment_reminder",
}


def render_template(template: str, variables: Mapping[str, Any]) -> str:
    """Replace ``{{key}}`` tokens; unknown keys and None values stay as they are."""

    def _replace(match: "re.Match[str]") -> str:
        value = variables.get(match.group(1))
        return match.group(0) if value is None else str(value)

    return _TOKEN_RE.sub(_replace, template)


def _fmt_date(value: Optional[datetime], default: str = "") -> str:
    return value.strftime("%Y-%m-%d") if value else default


def _money(value: float) -> str:
    return f"{value:.2f}"


def build_order_variables(
    order: Order,
    buyer: Optional[Buyer] = None,
    payment_link_base_url: str = "",
    company_name: str = "",
    tracking_number: Optional[str] = None,
    tracking_link: Optional[str] = None,
) -> Dict[str, Any]:
    """Template variables for an order, covering every built-in email type."""
    payment_link = f"{payment_link_base_url.rstrip('/')}/{order.id}" if payment_link_base_url else ""
    return {
        "buyer_name": (buyer.name if buyer else None) or order.buyer or "Valued Customer",
        "order_ref": order.order_ref or f"Order #{order.id}",
        "order_date": _fmt_date(order.order_date or order.created_at),
        "total_amount": _money(payment_service.total_due(order)),
        "deposit_amount": _money(
            float(order.payment_1) if order.payment_1 else payment_service.deposit_required(order)
        ),
        "paid_amount": _money(payment_service.paid_amount(order)),
        "remaining_amount": _money(payment_service.outstanding_amount(order)),
        "payment_link": payment_link,
        "estimated_ship_date": _fmt_date(order.ship_date, "To be determined"),
        "ship_date": _fmt_date(order.ship_date, "Today"),
        "delivery_address": (buyer.delivery_address if buyer else None) or "Your registered address",
        "tracking_number": tracking_number or "Not available yet",
        "tracking_link": tracking_link or "",
        "company_name": company_name,
    }


def resolve_recipient(order: Order, buyer: Optional[Buyer]) -> Optional[str]:
    """Delivery contact first, then the buyer's and the order's own address."""
    if buyer:
        if buyer.delivery_contact_email:
            return buyer.delivery_contact_email
        if buyer.email:
            return buyer.email
    return order.email or None


class EmailService:
    """Renders, sends and logs order emails."""

    def __init__(
        self,
        session: AsyncSession,
        mailer: SMTPMailer,
        payment_link_base_url: str = "",
        company_name: str = "",
    ):
        self.orders = OrderRepository(session)
        self.buyers = BuyerRepository(session)
        self.templates = EmailTemplateRepository(session)
        self.logs = EmailLogRepository(session)
        self.mailer = mailer
        self.payment_link_base_url = payment_link_base_url
        self.company_name = company_name

    async def ensure_default_templates(self) -> List[str]:
        """Insert built-in templates whose type is missing. Returns the created types."""
        existing = {template.type for template in await self.templates.list_all()}
        created = []
        for template_type, template in DEFAULT_TEMPLATES.items():
            if template_type in existing:
                continue
            await self.templates.create({"type": template_type, **template})
            created.append(template_type)
        if created:
            logger.info(f"Created default email templates: {', '.join(created)}")
        return created

    async def list_templates(self) -> List[EmailTemplate]:
        await self.ensure_default_templates()
        return await self.templates.list_all()

    async def update_template(self, template_type: str, subject: str, content: str) -> EmailTemplate:
        if template_type not in DEFAULT_TEMPLATES:
            raise InvalidRequestError(
                f"Unknown template type '{template_type}'. Allowed: {', '.join(DEFAULT_TEMPLATES)}"
            )
        template = await self.templates.upsert(template_type, subject, content)
        logger.info(f"Saved email template {template_type}")
        return template

    async def _get_template(self, template_type: str) -> EmailTemplate:
        if template_type not in DEFAULT_TEMPLATES:
            raise InvalidRequestError(f"Unknown template type '{template_type}'")
        template = await self.templates.get_by_type(template_type)
        if template is None:
            await self.ensure_default_templates()
            template = await self.templates.get_by_type(template_type)
        return template

    async def _load_order(self, order_id: int) -> Order:
        order = await self.orders.get(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    async def _load_buyer(self, order: Order) -> Optional[Buyer]:
        if order.buyer_id is None:
            return None
        return await self.buyers.get(order.buyer_id)

    async def _deliver(
        self,
        order: Order,
        buyer: Optional[Buyer],
        email_type: str,
        recipient: str,
        subject: str,
        html: str,
    ) -> EmailLog:
        """Send one email, log the attempt and stamp the order on success."""
        success, message = await self.mailer.send(recipient, subject, html)
        now = datetime.utcnow()

        log = await self.logs.create(
            {
                "order_id": order.id,
                "buyer_id": buyer.id if buyer else order.buyer_id,
                "order_ref": order.order_ref,
                "email_type": email_type,
                "recipient": recipient,
                "subject": subject,
                "status": EMAIL_STATUS_SENT if success else EMAIL_STATUS_FAILED,
                "error": None if success else message,
                "sent_at": now if success else None,
            }
        )

        if success:
            column = SENT_COLUMNS.get(email_type)
            if column:
                await self.orders.mark_email_sent(order, column)
            logger.info(
                f"Sent {email_type} email for order {order.order_ref} to {recipient}",
                extra={"order_id": order.id, "order_ref": order.order_ref},
            )
        else:
            logger.warning(
                f"Failed to send {email_type} email for order {order.order_ref}: {message}",
                extra={"order_id": order.id, "order_ref": order.order_ref},
            )
        return log

    async def send_order_email(
        self,
        order_id: int,
        template_type: str,
        recipient: Optional[str] = None,
        tracking_number: Optional[str] = None,
        tracking_link: Optional[str] = None,
    ) -> EmailLog:
        """
        Render a stored template for an order and send it.

        Raises:
            NotFoundError: Unknown order
            InvalidRequestError: Unknown template type or no recipient address
        """
        order = await self._load_order(order_id)
        template = await self._get_template(template_type)
        buyer = await self._load_buyer(order)

        recipient = recipient or resolve_recipient(order, buyer)
        if not recipient:
            raise InvalidRequestError(f"No recipient email address for order {order.order_ref}")

        variables = build_order_variables(
            order,
            buyer,
            payment_link_base_url=self.payment_link_base_url,
            company_name=self.company_name,
            tracking_number=tracking_number,
            tracking_link=tracking_link,
        )
        subject = render_template(template.subject, variables)
        html = render_template(template.content, variables)
        return await self._deliver(order, buyer, template_type, recipient, subject, html)

    async def send_custom_email(
        self,
        order_id: int,
        subject: str,
        content: str,
        recipient: Optional[str] = None,
    ) -> EmailLog:
        """Send a free-form email; order tokens are still substituted."""
        order = await self._load_order(order_id)
        buyer = await self._load_buyer(order)

        recipient = recipient or resolve_recipient(order, buyer)
        if not recipient:
            raise InvalidRequestError(f"No recipient email address for order {order.order_ref}")

        variables = build_order_variables(
            order,
            buyer,
            payment_link_base_url=self.payment_link_base_url,
            company_name=self.company_name,
        )
        return await self._deliver(
            order,
            buyer,
            EMAIL_TYPE_CUSTOM,
            recipient,
            render_template(subject, variables),
            render_template(content, variables),
        )

    async def _reminder_candidates(self, reminder_type: str) -> List[Order]:
        """Orders owing a deposit (nothing paid) or a balance (deposit in, not settled)."""
        candidates = []
        for order in await self.orders.find_orders():
            if payment_service.total_due(order) <= 0 or payment_service.is_fully_paid(order):
                continue
            nothing_paid = payment_service.paid_amount(order) <= 0
            if (reminder_type == "deposit") == nothing_paid:
                candidates.append(order)
        return candidates

    async def send_batch_reminders(
        self, reminder_type: str, order_ids: Optional[Sequence[int]] = None
    ) -> Dict[str, Any]:
        """
        Send deposit or final payment reminders.

        Args:
            reminder_type: "deposit" or "final"
            order_ids: Orders to remind; defaults to every order owing that payment

        Returns:
            {"success": int, "failed": int, "total": int}
        """
        template_type = REMINDER_TEMPLATES.get(reminder_type)
        if template_type is None:
            raise InvalidRequestError("Reminder type must be 'deposit' or 'final'")

        if order_ids:
            orders = await self.orders.find_orders(ids=order_ids)
        else:
            orders = await self._reminder_candidates(reminder_type)

        success = 0
        failed = len(set(order_ids or [])) - len(orders)
        for order in orders:
            buyer = await self._load_buyer(order)
            if not resolve_recipient(order, buyer):
                logger.warning(f"No recipient for {reminder_type} reminder on order {order.order_ref}")
                failed += 1
                continue
            log = await self.send_order_email(order.id, template_type)
            if log.status == EMAIL_STATUS_SENT:
                success += 1
            else:
                failed += 1

        logger.info(f"Batch {reminder_type} reminders: {success} sent, {failed} failed")
        return {"success": success, "failed": failed, "total": success + failed}

    async def logs_for_order(self, order_id: int) -> List[EmailLog]:
        return await self.logs.list_for_order(order_id)
