"""Tests for analytics tracking."""

import json

import httpx
import pytest

from agora.analytics.service import AnalyticsService


@pytest.fixture
def analytics_settings(settings):
    return settings.model_copy(
        update={"analytics_enabled": True, "analytics_write_key": "wk"}
    )


def service_for(settings, handler) -> AnalyticsService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AnalyticsService(settings, http_client=client)


@pytest.mark.asyncio
async def test_track_posts_event(analytics_settings) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"success": True})

    service = service_for(analytics_settings, handler)

    assert await service.track("u-1", "Post: Comment: Add by Email", {"n": 1}) is True

    payload = json.loads(requests[0].content)
    assert payload["userId"] == "u-1"
    assert payload["event"] == "Post: Comment: Add by Email"
    assert payload["properties"] == {"n": 1}


@pytest.mark.asyncio
async def test_disabled_sends_nothing(settings) -> None:
    requests: list[httpx.Request] = []
    service = service_for(settings, lambda r: requests.append(r))

    assert await service.track("u-1", "Event") is False
    assert requests == []


@pytest.mark.asyncio
async def test_failure_is_swallowed(analytics_settings) -> None:
    service = service_for(analytics_settings, lambda r: httpx.Response(503))

    assert await service.track("u-1", "Event") is False
