from __future__ import annotations

import asyncio
import json
import logging

from resto.application.metrics.lifecycle import record_notification
from resto.application.notifications.messages import render_messages
from resto.application.ports.mailer import Mailer, OutboundEmail

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Turns event envelopes into e-mails; send failures are logged, never raised."""

    def __init__(
        self,
        mailer: Mailer,
        admin_email: str | None,
        max_attempts: int = 3,
        retry_delay_seconds: float = 0.5,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._mailer = mailer
        self._admin_email = admin_email
        self._max_attempts = max_attempts
        self._retry_delay_seconds = retry_delay_seconds

    async def dispatch(self, raw_event: str) -> int:
        try:
            event = json.loads(raw_event)
        except json.JSONDecodeError:
            logger.warning("notification_invalid_event")
            return 0
        if not isinstance(event, dict):
            logger.warning("notification_invalid_event")
            return 0

        event_type = str(event.get("event_type", ""))
        sent = 0
        for message in render_messages(event, self._admin_email):
            if await self._send_with_retry(event_type, message):
                sent += 1
        return sent

    async def _send_with_retry(self, event_type: str, message: OutboundEmail) -> bool:
        for attempt in range(1, self._max_attempts + 1):
            try:
                await self._mailer.send(message)
            except Exception:
                logger.warning(
                    "notification_send_retry",
                    extra={"event_type": event_type, "attempt": attempt},
                    exc_info=True,
                )
                if attempt < self._max_attempts:
                    await asyncio.sleep(self._retry_delay_seconds * attempt)
                continue
            record_notification(event_type, "sent")
            logger.info("notification_sent", extra={"event_type": event_type, "subject": message.subject})
            return True

        record_notification(event_type, "failed")
        logger.error(
            "notification_send_failed",
            extra={"event_type": event_type, "subject": message.subject},
        )
        return False
