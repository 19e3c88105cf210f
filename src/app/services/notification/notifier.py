"""Notification delivery for swap participants."""

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import TYPE_CHECKING

import httpx

from app.core.config import get_settings

if TYPE_CHECKING:
    from app.services.swap.collaborators import Notifier

logger = logging.getLogger(__name__)


class LogNotifier:
    """Writes notifications to the application log.

    Used when no delivery channel is configured.
    """

    async def notify(self, user_id: str, message: str) -> None:
        logger.info(f"[NOTIFY] {user_id}: {message}", extra={"user_id": user_id})


class WebhookNotifier:
    """Posts notifications to an HTTP webhook."""

    def __init__(self, url: str, timeout: float = 10.0):
        """Initialize webhook notifier.

        Args:
            url: Webhook endpoint
            timeout: Request timeout in seconds
        """
        self.url = url
        self.timeout = timeout
        self._http_client: httpx.AsyncClient | None = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def notify(self, user_id: str, message: str) -> None:
        client = await self._get_http_client()
        response = await client.post(
            self.url,
            json={
                "user_id": user_id,
                "message": message,
                "sent_at": datetime.now(timezone.utc).isoformat(),
            },
        )
        response.raise_for_status()

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None


async def notify_safely(notifier: "Notifier", user_id: str | None, message: str) -> None:
    """Deliver a notification, logging instead of raising on failure.

    Args:
        notifier: Delivery channel
        user_id: Recipient (skipped when None)
        message: Text to send
    """
    if not user_id:
        return
    try:
        await notifier.notify(user_id, message)
    except Exception as e:
        logger.error(
            f"Notification to {user_id} failed: {e}",
            extra={"user_id": user_id},
        )


@lru_cache
def get_notifier() -> "Notifier":
    """Get the configured notifier (webhook if a URL is set, else log)."""
    settings = get_settings()
    if settings.notification_webhook_url:
        return WebhookNotifier(
            settings.notification_webhook_url,
            timeout=settings.notification_timeout_seconds,
        )
    return LogNotifier()
