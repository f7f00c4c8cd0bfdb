"""Render notification e-mails from published event envelopes.

Each event yields a customer copy (when the payload carries an address) and an
operations copy (when an admin address is configured). Events with no
notification attached render to an empty list.
"""

from __future__ import annotations

from html import escape
from typing import Any

from resto.application.ports.mailer import OutboundEmail


def _money(value: dict[str, Any] | None) -> str:
    if not value:
        return "-"
    return f"{value.get('currency', '')} {int(value.get('amountCents', 0)) / 100:.2f}".strip()


def _item_lines(payload: dict[str, Any]) -> tuple[str, str]:
    text_rows = []
    html_rows = []
    for line in payload.get("lines", []):
        text_rows.append(
            f"- {line['quantity']} x {line['name']} @ {_money(line.get('unitPrice'))}"
            f" = {_money(line.get('lineTotal'))}"
        )
        html_rows.append(
            f"<li>{line['quantity']} &times; {escape(line['name'])} @ {_money(line.get('unitPrice'))}"
            f" = <strong>{_money(line.get('lineTotal'))}</strong></li>"
        )
    return "\n".join(text_rows), "".join(html_rows)


def _booking_confirmed(payload: dict[str, Any], admin_email: str | None) -> list[OutboundEmail]:
    table_number = payload.get("tableNumber")
    when = payload.get("bookingDate")
    guests = payload.get("numberOfGuests")
    requests = payload.get("specialRequests") or "None"
    customer = payload.get("customer") or {}
    messages = []

    if customer.get("email"):
        messages.append(
            OutboundEmail(
                to=customer["email"],
                subject=f"Table Booking Confirmation - Table #{table_number}",
                text=(
                    "Your table booking is confirmed.\n\n"
                    f"Details:\nTable: #{table_number}\nDate/Time: {when}\nGuests: {guests}\n"
                    f"Special Requests: {requests}\n\nBooking ID: {payload.get('bookingId')}"
                ),
                html=(
                    "<h2>Table Booking Confirmed</h2>"
                    f"<p><strong>Table:</strong> #{table_number}</p>"
                    f"<p><strong>Date &amp; Time:</strong> {escape(str(when))}</p>"
                    f"<p><strong>Number of Guests:</strong> {guests}</p>"
                    f"<p><strong>Special Requests:</strong> {escape(requests)}</p>"
                    f"<p><strong>Booking ID:</strong> {escape(str(payload.get('bookingId')))}</p>"
                    "<p>Thank you for booking with us!</p>"
                ),
            )
        )
    if admin_email:
        guest_name = customer.get("name") or customer.get("email") or "-"
        messages.append(
            OutboundEmail(
                to=admin_email,
                subject=f"New Table Booking - Table #{table_number}",
                text=(
                    "New booking received.\n\n"
                    f"Table: #{table_number}\nGuest: {guest_name}\nDate/Time: {when}\nGuests: {guests}"
                ),
                html=(
                    "<p><strong>New Table Booking</strong></p>"
                    f"<p><strong>Table:</strong> #{table_number}</p>"
                    f"<p><strong>Guest Name:</strong> {escape(guest_name)}</p>"
                    f"<p><strong>Date &amp; Time:</strong> {escape(str(when))}</p>"
                    f"<p><strong>Number of Guests:</strong> {guests}</p>"
                ),
            )
        )
    return messages


def _booking_cancelled(payload: dict[str, Any], admin_email: str | None) -> list[OutboundEmail]:
    customer = payload.get("customer") or {}
    if not customer.get("email"):
        return []
    table_number = payload.get("tableNumber")
    return [
        OutboundEmail(
            to=customer["email"],
            subject=f"Booking Cancellation - Table #{table_number}",
            text=f"Your table booking has been cancelled.\n\nBooking ID: {payload.get('bookingId')}",
            html=(
                f"<p>Your table booking for <strong>Table #{table_number}</strong>"
                " has been cancelled.</p>"
            ),
        )
    ]


def _order_placed(payload: dict[str, Any], admin_email: str | None) -> list[OutboundEmail]:
    order_id = payload.get("orderId")
    total = _money(payload.get("totalMoney"))
    points = payload.get("pointsEarned", 0)
    items_text, items_html = _item_lines(payload)
    customer = payload.get("customer") or {}
    messages = []

    if customer.get("email"):
        messages.append(
            OutboundEmail(
                to=customer["email"],
                subject=f"Order Confirmation #{order_id}",
                text=(
                    f"Thank you for your order!\n\nItems:\n{items_text}\n\nTotal: {total}\n"
                    f"Points on completion: {points}\n\n"
                    "We will notify you when the status changes."
                ),
                html=(
                    "<h2>Order confirmed</h2>"
                    "<p>Thanks for dining with us. Here are your order details:</p>"
                    f"<ul>{items_html}</ul>"
                    f"<p><strong>Total:</strong> {total}</p>"
                    f"<p><strong>Points after completion:</strong> {points}</p>"
                    "<p>We will notify you once your order status changes.</p>"
                ),
            )
        )
    if admin_email:
        name = customer.get("name") or customer.get("email") or "-"
        messages.append(
            OutboundEmail(
                to=admin_email,
                subject=f"New order placed #{order_id}",
                text=f"Customer: {name}\nTotal: {total}\nPoints awarded: {points}\n\nItems:\n{items_text}",
                html=(
                    f"<p><strong>Customer:</strong> {escape(name)}</p>"
                    f"<p><strong>Total:</strong> {total}</p>"
                    f"<p><strong>Points awarded:</strong> {points}</p>"
                    f"<ul>{items_html}</ul>"
                ),
            )
        )
    return messages


def _order_cancelled(payload: dict[str, Any], admin_email: str | None) -> list[OutboundEmail]:
    order_id = payload.get("orderId")
    refunded = payload.get("redeemedPoints", 0)
    removed = payload.get("pointsEarned", 0) if payload.get("pointsCredited") else 0
    items_text, items_html = _item_lines(payload)
    customer = payload.get("customer") or {}
    messages = []

    if customer.get("email"):
        messages.append(
            OutboundEmail(
                to=customer["email"],
                subject=f"Order Cancelled #{order_id}",
                text=(
                    f"Your order has been cancelled.\n\nItems:\n{items_text}\n\n"
                    f"Any redeemed points ({refunded}) were refunded to your balance."
                ),
                html=(
                    "<h3>Your order has been cancelled</h3>"
                    f"<ul>{items_html}</ul>"
                    f"<p><strong>Redeemed points refunded:</strong> {refunded}</p>"
                    f"<p><strong>Points removed:</strong> {removed}</p>"
                ),
            )
        )
    if admin_email:
        name = customer.get("name") or customer.get("email") or "-"
        messages.append(
            OutboundEmail(
                to=admin_email,
                subject=f"Order cancelled #{order_id}",
                text=(
                    f"Customer: {name}\nPoints removed: {removed}\n"
                    f"Redeemed refunded: {refunded}\n\nItems:\n{items_text}"
                ),
                html=(
                    f"<p><strong>Customer:</strong> {escape(name)}</p>"
                    f"<p><strong>Points removed:</strong> {removed}</p>"
                    f"<p><strong>Redeemed refunded:</strong> {refunded}</p>"
                    f"<ul>{items_html}</ul>"
                ),
            )
        )
    return messages


_RENDERERS = {
    "booking.confirmed": _booking_confirmed,
    "booking.cancelled": _booking_cancelled,
    "order.placed": _order_placed,
    "order.cancelled": _order_cancelled,
}


def render_messages(event: dict[str, Any], admin_email: str | None) -> list[OutboundEmail]:
    renderer = _RENDERERS.get(event.get("event_type", ""))
    if renderer is None:
        return []
    return renderer(event.get("payload") or {}, admin_email)
