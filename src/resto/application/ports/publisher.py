from __future__ import annotations

from typing import Protocol

BOOKING_EVENTS_CHANNEL = "events:bookings"
ORDER_EVENTS_CHANNEL = "events:orders"
EVENT_CHANNELS = (BOOKING_EVENTS_CHANNEL, ORDER_EVENTS_CHANNEL)


class EventPublisher(Protocol):
    def publish(self, channel: str, message: str) -> None: ...
