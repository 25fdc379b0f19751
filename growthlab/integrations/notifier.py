"""
Outbound webhook for lifecycle events.

Fire-and-forget: events are posted from a background task after the unit that
produced them commits, and delivery failures are only logged. Disabled when
no webhook URL is configured.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from growthlab.config import get_settings
from growthlab.logging_config import get_logger, get_request_id

logger = get_logger(__name__)


class WebhookNotifier:
    """Posts a small JSON event to a configured URL."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.url = url if url is not None else settings.notification_webhook_url
        self.timeout = timeout or settings.notification_timeout_seconds
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    async def notify(
        self,
        event: str,
        payload: Dict[str, Any],
        request_id: Optional[str] = None,
    ) -> bool:
        """
        Deliver one event.

        Args:
            event: Audit action name, e.g. `status_alterado`
            payload: Experiment snapshot
            request_id: Id of the request that caused the event; defaults to the current one

        Returns:
            True if the webhook accepted it, False if disabled or delivery failed
        """
        if not self.enabled:
            return False

        body = {
            "event": event,
            "occurred_at": datetime.now(timezone.utc).isoformat(),
            "request_id": request_id or get_request_id(),
            "data": payload,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=body)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Notification %s not delivered: %s", event, e)
            return False

        logger.debug("Notification delivered", extra={"event": event})
        return True
