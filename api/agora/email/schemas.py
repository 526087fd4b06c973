"""Pydantic schemas for the template email API.

Request/Response models for:
- Sending a template to one recipient
- The API's send receipt
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EmailRecipient(BaseModel):
    """Email recipient with optional name."""

    address: str = Field(..., description="Recipient email address")
    name: str | None = Field(None, description="Recipient display name")


class EmailSender(BaseModel):
    """Sender block; any field left unset falls back to the default sender."""

    address: str | None = Field(None, description="Sender address")
    name: str | None = Field(None, description="Sender display name")
    reply_to: str | None = Field(None, description="Reply-to address")


class SendTemplateRequest(BaseModel):
    """Payload posted to the template API's ``/send`` endpoint."""

    email_id: str = Field(..., description="Template identifier")
    recipient: EmailRecipient
    email_data: dict[str, Any] = Field(default_factory=dict)
    version_name: str | None = Field(None, description="Template version")
    sender: EmailSender


class SendEmailResponse(BaseModel):
    """Outcome of a template send."""

    model_config = ConfigDict(from_attributes=True)

    success: bool = Field(..., description="Whether the email was accepted")
    receipt_id: str | None = Field(None, description="Receipt from the API")
    skipped: bool = Field(False, description="Email sending disabled")
