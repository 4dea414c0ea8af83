"""Integrations module - Outbound email."""

from order_dashboard.integrations.mailer import SMTPMailer

__all__ = ["SMTPMailer"]
