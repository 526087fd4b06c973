"""Transactional email through a hosted template API.

Templates live in the email provider; we only send the template id, the
recipient, merge data and an optional sender override. The default sender
(configured address, display name) is merged under every override.
"""

from enum import Enum
from typing import TYPE_CHECKING, Any

import httpx

from agora.core.logging import get_logger
from agora.email.schemas import (
    EmailRecipient,
    EmailSender,
    SendEmailResponse,
    SendTemplateRequest,
)


if TYPE_CHECKING:
    from agora.config.settings import Settings


logger = get_logger(__name__)


class EmailTemplate(str, Enum):
    """Template ids in the template API."""

    PASSWORD_RESET = "tem_password_reset"
    INVITATION = "tem_invitation"
    NEW_COMMENT = "tem_new_comment"
    POST_MENTION = "tem_post_mention"
    COMMUNITY_DIGEST = "tem_community_digest"


INVITATION_VERSION = "user-edited text"


class EmailDeliveryError(Exception):
    """The template API rejected the send or could not be reached."""

    def __init__(self, message: str, template: str, status_code: int | None = None):
        self.message = message
        self.code = "email_delivery_failed"
        self.template = template
        self.status_code = status_code
        super().__init__(message)


class TemplateEmailService:
    """Client for the template email API."""

    def __init__(
        self,
        settings: "Settings",
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize from settings.

        Args:
            settings: Application settings (API key, base URL, sender)
            http_client: Shared client; one is created when omitted
        """
        self.enabled = settings.email_configured
        self.default_sender = EmailSender(
            address=settings.email_sender_address,
            name=settings.email_sender_name,
        )
        self._http = http_client or httpx.AsyncClient(
            base_url=settings.email_api_base_url,
            auth=(settings.email_api_key or "", ""),
            timeout=settings.email_api_timeout,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    def _merge_sender(self, sender: EmailSender | None) -> EmailSender:
        if sender is None:
            return self.default_sender
        overrides = sender.model_dump(exclude_none=True)
        return self.default_sender.model_copy(update=overrides)

    async def send(
        self,
        template: EmailTemplate,
        recipient: str,
        data: dict[str, Any] | None = None,
        version: str | None = None,
        sender: EmailSender | None = None,
    ) -> SendEmailResponse:
        """Send one templated email.

        Raises:
            EmailDeliveryError: The API answered with an error or was unreachable
        """
        request = SendTemplateRequest(
            email_id=template.value,
            recipient=EmailRecipient(address=recipient),
            email_data=data or {},
            version_name=version,
            sender=self._merge_sender(sender),
        )

        if not self.enabled:
            logger.info("email_skipped_disabled", template=template.name)
            return SendEmailResponse(success=False, skipped=True)

        try:
            response = await self._http.post(
                "/send", json=request.model_dump(exclude_none=True)
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "email_send_failed",
                template=template.name,
                status_code=e.response.status_code,
            )
            msg = f"Template API returned {e.response.status_code}"
            raise EmailDeliveryError(
                msg, template.name, e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            logger.error(
                "email_send_failed",
                template=template.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            msg = f"Template API unreachable: {e}"
            raise EmailDeliveryError(msg, template.name) from e

        receipt = _receipt_id(response)
        logger.info("email_sent", template=template.name, receipt_id=receipt)
        return SendEmailResponse(success=True, receipt_id=receipt)

    # ==========================================================================
    # Per-notification helpers
    # ==========================================================================

    async def send_password_reset(
        self, email: str, template_data: dict[str, Any]
    ) -> SendEmailResponse:
        return await self.send(EmailTemplate.PASSWORD_RESET, email, template_data)

    async def send_invitation(
        self, email: str, data: dict[str, Any]
    ) -> SendEmailResponse:
        """Invitation sent on behalf of the inviter.

        ``data`` must carry ``inviter_name`` and ``inviter_email``: the
        sender reads "<inviter> (via Agora)" and replies go to the inviter.
        """
        sender = EmailSender(
            name=f"{data['inviter_name']} (via {self.default_sender.name})",
            reply_to=data["inviter_email"],
        )
        return await self.send(
            EmailTemplate.INVITATION,
            email,
            data,
            version=INVITATION_VERSION,
            sender=sender,
        )

    async def send_new_comment_notification(
        self,
        email: str,
        data: dict[str, Any],
        version: str | None = None,
        sender: EmailSender | None = None,
    ) -> SendEmailResponse:
        return await self.send(
            EmailTemplate.NEW_COMMENT, email, data, version=version, sender=sender
        )

    async def send_post_mention_notification(
        self,
        email: str,
        data: dict[str, Any],
        sender: EmailSender | None = None,
    ) -> SendEmailResponse:
        return await self.send(EmailTemplate.POST_MENTION, email, data, sender=sender)

    async def send_community_digest(
        self, email: str, data: dict[str, Any]
    ) -> SendEmailResponse:
        return await self.send(EmailTemplate.COMMUNITY_DIGEST, email, data)


def _receipt_id(response: httpx.Response) -> str | None:
    """Receipt id from an accepted send; the body is optional."""
    try:
        body = response.json()
    except ValueError:
        return None
    return body.get("receipt_id") if isinstance(body, dict) else None
