from __future__ import annotations

import logging

from resto.application.ports.publisher import EventPublisher
from resto.infrastructure.cache.redis_client import get_redis_client

logger = logging.getLogger(__name__)

EVENT_PAYLOAD_FIELD = "payload"
# Approximate trim keeps XADD O(1); acknowledged history is not needed beyond this.
STREAM_MAX_LENGTH = 10_000


class RedisEventPublisher(EventPublisher):
    """Appends booking and order envelopes to the ``events:*`` streams read by the notifier."""

    def __init__(self, timeout_seconds: float = 1.0) -> None:
        self._timeout_seconds = timeout_seconds

    def publish(self, channel: str, message: str) -> None:
        entry_id = get_redis_client(timeout_seconds=self._timeout_seconds).xadd(
            channel,
            {EVENT_PAYLOAD_FIELD: message},
            maxlen=STREAM_MAX_LENGTH,
            approximate=True,
        )
        logger.debug("event_appended", extra={"channel": channel, "resource_id": _decode(entry_id)})


def _decode(value: bytes | str | None) -> str | None:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value
