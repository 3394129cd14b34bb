"""Pydantic models for the SendGrid v3 mail send payload.

API Reference: https://www.twilio.com/docs/sendgrid/api-reference/mail-send/mail-send
"""

from pydantic import BaseModel, Field


class EmailAddress(BaseModel):
    """Sender or recipient address."""

    email: str = Field(..., description="Email address")
    name: str | None = Field(None, description="Display name")


class Personalization(BaseModel):
    """Recipients and subject of one message."""

    to: list[EmailAddress] = Field(..., description="Primary recipients")
    cc: list[EmailAddress] | None = Field(None, description="Carbon copy recipients")
    subject: str = Field(..., description="Message subject")


class Content(BaseModel):
    """Message body in one MIME type."""

    type: str = Field("text/plain", description="MIME type, text/plain or text/html")
    value: str = Field(..., description="Body text")


class MailSendRequest(BaseModel):
    """Top-level body for POST /v3/mail/send."""

    personalizations: list[Personalization]
    from_: EmailAddress = Field(..., alias="from", serialization_alias="from")
    content: list[Content]

    model_config = {"populate_by_name": True}
