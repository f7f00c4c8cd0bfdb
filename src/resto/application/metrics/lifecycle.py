from __future__ import annotations

from datetime import datetime, timezone

from prometheus_client import Counter, Histogram

from resto.domain.order.entities import Order, OrderStatus

BOOKINGS_TOTAL = Counter(
    "resto_bookings_total",
    "Total number of booking lifecycle changes by resulting status.",
    ["status"],
)

BOOKING_CONFLICTS_TOTAL = Counter(
    "resto_booking_conflicts_total",
    "Total number of booking attempts rejected by the conflict window.",
)

AVAILABLE_TABLES_REQUESTS_TOTAL = Counter(
    "resto_available_tables_requests_total",
    "Total number of available table lookups.",
    ["filtered"],
)

ORDERS_TOTAL = Counter(
    "resto_orders_total",
    "Total number of orders observed by status.",
    ["status"],
)

ORDER_TRANSITION_TOTAL = Counter(
    "resto_order_transition_total",
    "Total number of order lifecycle transitions.",
    ["from", "to"],
)

ORDER_TIME_TO_DELIVER_SECONDS = Histogram(
    "resto_order_time_to_deliver_seconds",
    "Time between order placement and delivery.",
)

LOYALTY_POINTS_TOTAL = Counter(
    "resto_loyalty_points_total",
    "Loyalty points moved, by kind of movement.",
    ["kind"],
)

LOYALTY_CREDIT_FAILURES_TOTAL = Counter(
    "resto_loyalty_credit_failures_total",
    "Deliveries whose loyalty credit could not be applied.",
)

EVENT_PUBLISH_FAILURES_TOTAL = Counter(
    "resto_event_publish_failures_total",
    "Domain events that could not be published.",
    ["channel"],
)

MENU_CACHE_LOOKUPS_TOTAL = Counter(
    "resto_menu_cache_lookups_total",
    "Menu cache lookups by result.",
    ["result"],
)

NOTIFICATIONS_TOTAL = Counter(
    "resto_notifications_total",
    "Notification e-mails by outcome.",
    ["event_type", "outcome"],
)


def record_booking(status: str) -> None:
    BOOKINGS_TOTAL.labels(status=status).inc()


def record_booking_conflict() -> None:
    BOOKING_CONFLICTS_TOTAL.inc()


def record_available_tables_request(filtered: bool) -> None:
    AVAILABLE_TABLES_REQUESTS_TOTAL.labels(filtered=str(filtered).lower()).inc()


def record_order_status(order: Order) -> None:
    ORDERS_TOTAL.labels(status=order.status.value).inc()


def record_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_time_to_deliver(order: Order, now: datetime | None = None) -> None:
    current = now or datetime.now(timezone.utc)
    ORDER_TIME_TO_DELIVER_SECONDS.observe(max((current - order.created_at).total_seconds(), 0.0))


def record_points(kind: str, points: int) -> None:
    if points > 0:
        LOYALTY_POINTS_TOTAL.labels(kind=kind).inc(points)


def record_loyalty_credit_failure() -> None:
    LOYALTY_CREDIT_FAILURES_TOTAL.inc()


def record_event_publish_failure(channel: str) -> None:
    EVENT_PUBLISH_FAILURES_TOTAL.labels(channel=channel).inc()


def record_notification(event_type: str, outcome: str) -> None:
    NOTIFICATIONS_TOTAL.labels(event_type=event_type, outcome=outcome).inc()


def record_menu_cache_lookup(hit: bool) -> None:
    MENU_CACHE_LOOKUPS_TOTAL.labels(result="hit" if hit else "miss").inc()
