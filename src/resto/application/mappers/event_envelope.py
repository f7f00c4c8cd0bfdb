from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import uuid4

from resto.domain.booking.entities import Booking
from resto.domain.order.entities import Order
from resto.domain.table.entities import Table


def _serialize_event(
    *,
    event_type: str,
    occurred_at: datetime,
    payload: dict[str, Any],
    trace_id: str | None,
    request_id: str | None,
) -> str:
    envelope = {
        "event_id": str(uuid4()),
        "event_type": event_type,
        "occurred_at": occurred_at.isoformat(),
        "request_id": request_id,
        "trace_id": trace_id,
        "payload": payload,
    }
    return json.dumps(envelope, separators=(",", ":"), ensure_ascii=False)


def serialize_booking_event(
    *,
    event_type: str,
    occurred_at: datetime,
    booking: Booking,
    table: Table | None,
    customer_email: str | None,
    customer_name: str | None,
    trace_id: str | None,
    request_id: str | None,
) -> str:
    return _serialize_event(
        event_type=event_type,
        occurred_at=occurred_at,
        trace_id=trace_id,
        request_id=request_id,
        payload={
            "bookingId": str(booking.booking_id),
            "userId": str(booking.user_id),
            "tableId": str(booking.table_id),
            "tableNumber": table.table_number if table is not None else None,
            "bookingDate": booking.booking_date.isoformat(),
            "numberOfGuests": booking.number_of_guests,
            "specialRequests": booking.special_requests,
            "bookingStatus": booking.status.value,
            "customer": {"email": customer_email, "name": customer_name},
        },
    )


def serialize_order_event(
    *,
    event_type: str,
    occurred_at: datetime,
    order: Order,
    customer_email: str | None,
    customer_name: str | None,
    trace_id: str | None,
    request_id: str | None,
    loyalty: dict[str, int] | None = None,
) -> str:
    return _serialize_event(
        event_type=event_type,
        occurred_at=occurred_at,
        trace_id=trace_id,
        request_id=request_id,
        payload={
            "orderId": str(order.order_id),
            "userId": str(order.user_id),
            "status": order.status.value,
            "totalMoney": {
                "amountCents": order.total.amount_cents,
                "currency": order.total.currency,
            },
            "createdAt": order.created_at.isoformat(),
            "pointsEarned": order.loyalty.points_earned,
            "pointsCredited": order.loyalty.points_credited,
            "redeemedPoints": order.loyalty.redeemed_points,
            "lines": [
                {
                    "lineId": str(line.line_id),
                    "menuItem": str(line.item_id),
                    "name": line.name,
                    "quantity": line.quantity,
                    "unitPrice": {
                        "amountCents": line.unit_price.amount_cents,
                        "currency": line.unit_price.currency,
                    },
                    "lineTotal": {
                        "amountCents": line.line_total.amount_cents,
                        "currency": line.line_total.currency,
                    },
                }
                for line in order.lines
            ],
            "customer": {"email": customer_email, "name": customer_name},
            "loyalty": loyalty or {},
        },
    )
