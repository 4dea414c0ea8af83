"""Pydantic models for email templates, sends and logs."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class EmailTemplateRead(BaseModel):
    id: int
    type: str
    subject: str
    content: str
    last_updated: Optional[datetime] = None

    class Config:
        from_attributes = True


class EmailTemplateUpdate(BaseModel):
    subject: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)


class SendEmailRequest(BaseModel):
    """
    Body of POST /api/emails/send.

    With ``template_type`` the stored template is rendered for the order;
    otherwise ``subject`` and ``content`` are sent as given (tokens are
    still substituted).
    """

    order_id: int
    template_type: Optional[str] = None
    subject: Optional[str] = None
    content: Optional[str] = None
    recipient: Optional[str] = None
    tracking_number: Optional[str] = None
    tracking_link: Optional[str] = None


class ReminderRequest(BaseModel):
    """Body of POST /api/emails/reminders."""

    reminder_type: str = Field(..., description="deposit or final")
    order_ids: Optional[List[int]] = None


class EmailLogRead(BaseModel):
    id: int
    created_at: datetime
    order_id: Optional[int] = None
    buyer_id: Optional[int] = None
    order_ref: Optional[str] = None
    email_type: str
    recipient: str
    subject: str
    status: str
    error: Optional[str] = None
    sent_at: Optional[datetime] = None

    class Config:
        from_attributes = True
