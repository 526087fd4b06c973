"""Analytics event sink.

Events go to a Segment-compatible ``track`` endpoint. Tracking is
best-effort: a failed call is logged and never fails the request that
produced the event.
"""

from typing import TYPE_CHECKING, Any

import httpx

from agora.core.logging import get_logger
from agora.utils import utcnow


if TYPE_CHECKING:
    from agora.config.settings import Settings


logger = get_logger(__name__)


class AnalyticsService:
    """Sends ``track`` events."""

    def __init__(
        self,
        settings: "Settings",
        http_client: httpx.AsyncClient | None = None,
    ):
        self.enabled = settings.analytics_configured
        self.api_url = settings.analytics_api_url
        self._http = http_client or httpx.AsyncClient(
            auth=(settings.analytics_write_key or "", ""),
            timeout=5.0,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def track(
        self,
        user_id: object,
        event: str,
        properties: dict[str, Any] | None = None,
    ) -> bool:
        """Record ``event`` for ``user_id``.

        Returns:
            True when the sink accepted the event
        """
        if not self.enabled:
            logger.debug("analytics_disabled", event_name=event)
            return False

        payload = {
            "userId": str(user_id),
            "event": event,
            "properties": {
                key: str(value) if not isinstance(value, int | float | bool) else value
                for key, value in (properties or {}).items()
            },
            "timestamp": utcnow().isoformat(),
        }
        try:
            response = await self._http.post(self.api_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(
                "analytics_track_failed",
                event_name=event,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        logger.debug("analytics_tracked", event_name=event)
        return True
