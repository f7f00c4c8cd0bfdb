from __future__ import annotations

from resto.application.dto.responses import (
    MoneyResponse,
    OrderLineResponse,
    OrderMetaResponse,
    OrderResponse,
)
from resto.domain.common.money import Money
from resto.domain.order.entities import Order


def to_money_response(money: Money) -> MoneyResponse:
    return MoneyResponse(amountCents=money.amount_cents, currency=money.currency)


def to_order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        orderId=str(order.order_id),
        userId=str(order.user_id),
        orderStatus=order.status.value,
        items=[
            OrderLineResponse(
                lineId=str(line.line_id),
                menuItem=str(line.item_id),
                name=line.name,
                quantity=line.quantity,
                unitPrice=to_money_response(line.unit_price),
                lineTotal=to_money_response(line.line_total),
            )
            for line in order.lines
        ],
        subtotal=to_money_response(order.subtotal),
        totalAmount=to_money_response(order.total),
        meta=OrderMetaResponse(
            pointsEarned=order.loyalty.points_earned,
            pointsCredited=order.loyalty.points_credited,
            pointsCreditedAt=order.loyalty.points_credited_at,
            redeemedPoints=order.loyalty.redeemed_points,
            discountApplied=MoneyResponse(
                amountCents=order.loyalty.discount_applied_cents,
                currency=order.total.currency,
            ),
        ),
        version=order.version,
        createdAt=order.created_at,
        updatedAt=order.updated_at,
    )
