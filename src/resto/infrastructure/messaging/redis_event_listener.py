from __future__ import annotations

import asyncio
import logging
import os
import socket
import time
from typing import Any

from redis import asyncio as redis_asyncio
from redis.exceptions import ResponseError

from resto.application.notifications.dispatcher import NotificationDispatcher
from resto.application.ports.publisher import EVENT_CHANNELS
from resto.infrastructure.cache.redis_client import new_async_redis_client
from resto.infrastructure.messaging.redis_publisher import EVENT_PAYLOAD_FIELD

logger = logging.getLogger(__name__)

NOTIFIER_GROUP = "notifier"
MAX_BACKOFF_SECONDS = 5.0
READ_BLOCK_MS = 1000
READ_COUNT = 10
# Entries left unacknowledged this long belong to a dead worker and are taken over.
RECLAIM_IDLE_MS = 60_000
RECLAIM_INTERVAL_SECONDS = 30.0


def _decode_value(value: bytes | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


def consumer_name() -> str:
    return f"{socket.gethostname()}-{os.getpid()}"


class NotificationStreamConsumer:
    """Reads the event streams through one consumer group.

    Every API worker joins the same group, so each event is handed to exactly one
    worker and e-mailed once. Entries are acknowledged after dispatch; a worker
    that dies mid-dispatch leaves them pending until another worker reclaims them.
    """

    def __init__(
        self,
        client: Any,
        dispatcher: NotificationDispatcher,
        consumer: str,
        group: str = NOTIFIER_GROUP,
        streams: tuple[str, ...] = EVENT_CHANNELS,
    ) -> None:
        self._client = client
        self._dispatcher = dispatcher
        self._consumer = consumer
        self._group = group
        self._streams = streams

    async def ensure_groups(self) -> None:
        for stream in self._streams:
            try:
                # id="0": events appended while no notifier was running are still delivered.
                await self._client.xgroup_create(stream, self._group, id="0", mkstream=True)
            except ResponseError as exc:
                if "BUSYGROUP" not in str(exc):
                    raise

    async def consume_once(self) -> int:
        response = await self._client.xreadgroup(
            self._group,
            self._consumer,
            {stream: ">" for stream in self._streams},
            count=READ_COUNT,
            block=READ_BLOCK_MS,
        )
        handled = 0
        for stream, entries in response or []:
            for entry_id, fields in entries:
                await self._handle(_decode_value(stream), entry_id, fields)
                handled += 1
        return handled

    async def reclaim_stale(self, min_idle_ms: int = RECLAIM_IDLE_MS) -> int:
        handled = 0
        for stream in self._streams:
            result = await self._client.xautoclaim(
                stream,
                self._group,
                self._consumer,
                min_idle_ms,
                start_id="0-0",
                count=READ_COUNT,
            )
            entries = result[1] if result and len(result) > 1 else []
            for entry_id, fields in entries:
                if entry_id is None:
                    continue
                await self._handle(stream, entry_id, fields)
                handled += 1
        if handled:
            logger.info("notification_entries_reclaimed", extra={"count": handled})
        return handled

    async def _handle(self, stream: str | None, entry_id: bytes | str, fields: dict | None) -> None:
        payload = None
        if fields:
            payload = _decode_value(
                fields.get(EVENT_PAYLOAD_FIELD.encode("utf-8"), fields.get(EVENT_PAYLOAD_FIELD))
            )
        if payload:
            await self._dispatcher.dispatch(payload)
        else:
            logger.warning(
                "notification_entry_without_payload",
                extra={"channel": stream, "resource_id": _decode_value(entry_id)},
            )
        # Dispatch never raises; send failures are already retried and counted there.
        await self._client.xack(stream, self._group, entry_id)


async def run_notification_listener(dispatcher: NotificationDispatcher) -> None:
    """Consume the event streams and hand each envelope to the dispatcher until cancelled."""
    if not os.getenv("REDIS_URL"):
        logger.warning("notification_listener_not_started", extra={"reason": "REDIS_URL missing"})
        return

    name = consumer_name()
    backoff_seconds = 1.0
    while True:
        client: redis_asyncio.Redis | None = None
        try:
            client = new_async_redis_client()
            consumer = NotificationStreamConsumer(client, dispatcher, name)
            await consumer.ensure_groups()
            logger.info(
                "notification_listener_subscribed",
                extra={"channel": ",".join(EVENT_CHANNELS), "consumer": name},
            )
            backoff_seconds = 1.0

            await consumer.reclaim_stale()
            last_reclaim = time.monotonic()
            while True:
                handled = await consumer.consume_once()
                if handled == 0 and time.monotonic() - last_reclaim >= RECLAIM_INTERVAL_SECONDS:
                    await consumer.reclaim_stale()
                    last_reclaim = time.monotonic()
        except asyncio.CancelledError:
            logger.info("notification_listener_cancelled")
            raise
        except Exception:
            logger.exception(
                "notification_listener_error",
                extra={"backoff_seconds": backoff_seconds},
            )
            await asyncio.sleep(backoff_seconds)
            backoff_seconds = min(backoff_seconds * 2, MAX_BACKOFF_SECONDS)
        finally:
            if client is not None:
                await client.aclose()
