"""Tests for the template email client."""

import json

import httpx
import pytest

from agora.email.schemas import EmailSender
from agora.email.service import (
    INVITATION_VERSION,
    EmailDeliveryError,
    EmailTemplate,
    TemplateEmailService,
)


@pytest.fixture
def email_settings(settings):
    return settings.model_copy(
        update={
            "email_enabled": True,
            "email_api_key": "test-key",
            "email_api_base_url": "https://templates.test/api/v1",
        }
    )


@pytest.fixture
def sent() -> list[httpx.Request]:
    return []


@pytest.fixture
def api_status() -> dict[str, int]:
    return {"code": 200}


@pytest.fixture
def email_service(email_settings, sent, api_status) -> TemplateEmailService:
    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return httpx.Response(api_status["code"], json={"receipt_id": "r-1"})

    client = httpx.AsyncClient(
        base_url=email_settings.email_api_base_url,
        transport=httpx.MockTransport(handler),
    )
    return TemplateEmailService(email_settings, http_client=client)


def body(request: httpx.Request) -> dict:
    return json.loads(request.content)


class TestSend:
    @pytest.mark.asyncio
    async def test_posts_template(self, email_service, sent) -> None:
        result = await email_service.send(
            EmailTemplate.NEW_COMMENT, "ana@example.com", {"post_title": "Hi"}
        )

        assert result.success is True
        assert result.receipt_id == "r-1"
        (request,) = sent
        assert request.url.path == "/api/v1/send"
        payload = body(request)
        assert payload["email_id"] == "tem_new_comment"
        assert payload["recipient"] == {"address": "ana@example.com"}
        assert payload["email_data"] == {"post_title": "Hi"}
        assert payload["sender"] == {
            "address": "notifications@agora.community",
            "name": "Agora",
        }
        assert "version_name" not in payload

    @pytest.mark.asyncio
    async def test_sender_override_merges_with_default(
        self, email_service, sent
    ) -> None:
        await email_service.send(
            EmailTemplate.NEW_COMMENT,
            "ana@example.com",
            sender=EmailSender(name="Bo (via Agora)", reply_to="reply-ab@x"),
        )

        assert body(sent[0])["sender"] == {
            "address": "notifications@agora.community",
            "name": "Bo (via Agora)",
            "reply_to": "reply-ab@x",
        }

    @pytest.mark.asyncio
    async def test_api_error_raises(self, email_service, api_status) -> None:
        api_status["code"] = 500
        with pytest.raises(EmailDeliveryError) as exc:
            await email_service.send(EmailTemplate.PASSWORD_RESET, "a@example.com")
        assert exc.value.status_code == 500
        assert exc.value.template == "PASSWORD_RESET"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [b"", b"queued", b"[]"])
    async def test_accepted_without_receipt(self, email_settings, content) -> None:
        client = httpx.AsyncClient(
            base_url=email_settings.email_api_base_url,
            transport=httpx.MockTransport(
                lambda r: httpx.Response(202, content=content)
            ),
        )
        service = TemplateEmailService(email_settings, http_client=client)

        result = await service.send(EmailTemplate.NEW_COMMENT, "a@example.com")

        assert result.success is True
        assert result.receipt_id is None

    @pytest.mark.asyncio
    async def test_disabled_skips(self, settings, sent) -> None:
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: sent.append(r))
        )
        service = TemplateEmailService(settings, http_client=client)

        result = await service.send(EmailTemplate.COMMUNITY_DIGEST, "a@example.com")

        assert result.success is False
        assert result.skipped is True
        assert sent == []


class TestHelpers:
    @pytest.mark.asyncio
    async def test_invitation_sent_on_behalf_of_inviter(
        self, email_service, sent
    ) -> None:
        await email_service.send_invitation(
            "new@example.com",
            {"inviter_name": "Pat", "inviter_email": "pat@example.com"},
        )

        payload = body(sent[0])
        assert payload["email_id"] == "tem_invitation"
        assert payload["version_name"] == INVITATION_VERSION
        assert payload["sender"]["name"] == "Pat (via Agora)"
        assert payload["sender"]["reply_to"] == "pat@example.com"

    @pytest.mark.asyncio
    async def test_mention_template(self, email_service, sent) -> None:
        await email_service.send_post_mention_notification("a@example.com", {})
        assert body(sent[0])["email_id"] == "tem_post_mention"

    @pytest.mark.asyncio
    async def test_password_reset_template(self, email_service, sent) -> None:
        await email_service.send_password_reset("a@example.com", {"url": "u"})
        assert body(sent[0])["email_id"] == "tem_password_reset"

    @pytest.mark.asyncio
    async def test_community_digest_template(self, email_service, sent) -> None:
        await email_service.send_community_digest("a@example.com", {"count": 3})
        payload = body(sent[0])
        assert payload["email_id"] == "tem_community_digest"
        assert payload["email_data"] == {"count": 3}
