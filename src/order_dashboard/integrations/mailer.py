"""Outbound email over SMTP."""

import asyncio
import re
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional, Tuple

from order_dashboard.config.constants import SMTP_TIMEOUT_SECONDS
from order_dashboard.core.logger import setup_logger

logger = setup_logger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")


def html_to_text(html: str) -> str:
    """Plain-text alternative for an HTML body."""
    text = re.sub(r"<br\s*/?>|</p>|</h\d>", "\n", html, flags=re.IGNORECASE)
    text = _TAG_RE.sub("", text)
    return "\n".join(line.strip() for line in text.splitlines() if line.strip())


class SMTPMailer:
    """Sends HTML emails through an SMTP relay."""

    def __init__(
        self,
        host: Optional[str],
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        from_address: Optional[str] = None,
        from_name: Optional[str] = None,
        reply_to: Optional[str] = None,
    ):
        """
        Initialize mailer.

        Args:
            host: SMTP server (None = sending disabled)
            port: SMTP port
            username: Login user, skipped when empty
            password: Login password
            use_tls: Upgrade the connection with STARTTLS
            from_address: Sender address
            from_name: Sender display name
            reply_to: Optional Reply-To address
        """
        self.host = (host or "").strip()
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.from_address = (from_address or "").strip()
        self.from_name = from_name
        self.reply_to = reply_to
        self.enabled = bool(self.host and self.from_address)

        if not self.enabled:
            logger.info("Email sending disabled (SMTP_HOST or EMAIL_FROM not set)")

    def _build_message(self, to: str, subject: str, html: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((self.from_name or "", self.from_address))
        msg["To"] = to
        if self.reply_to:
            msg["Reply-To"] = self.reply_to
        msg.attach(MIMEText(html_to_text(html), "plain"))
        msg.attach(MIMEText(html, "html"))
        return msg

    def _send_sync(self, to: str, subject: str, html: str) -> None:
        msg = self._build_message(to, subject, html)
        with smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT_SECONDS) as server:
            if self.use_tls:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(msg)

    async def send(self, to: str, subject: str, html: str) -> Tuple[bool, str]:
        """
        Send an email without blocking the event loop.

        Args:
            to: Recipient address
            subject: Subject line
            html: HTML body; a plain-text part is derived from it

        Returns:
            (success, message) where message is "sent" or the failure reason
        """
        if not self.host:
            error_msg = "SMTP server not configured (SMTP_HOST environment variable missing)"
            logger.warning(error_msg)
            return False, error_msg

        if not self.from_address:
            error_msg = "Email from address not configured (EMAIL_FROM environment variable missing)"
            logger.warning(error_msg)
            return False, error_msg

        if not to:
            return False, "No recipient address"

        try:
            await asyncio.to_thread(self._send_sync, to, subject, html)
            logger.info(f"Sent email to {to} with subject: {subject}")
            return True, "sent"

        except smtplib.SMTPAuthenticationError as e:
            error_msg = f"SMTP authentication failed: {e}"
            logger.error(error_msg)
            return False, error_msg

        except smtplib.SMTPException as e:
            error_msg = f"SMTP error: {e}"
            logger.error(error_msg)
            return False, error_msg

        except OSError as e:
            error_msg = f"SMTP connection error: {e}"
            logger.error(error_msg, exc_info=True)
            return False, error_msg
