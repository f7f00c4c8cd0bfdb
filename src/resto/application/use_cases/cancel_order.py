from __future__ import annotations

import logging
from datetime import datetime, timezone

from resto.application.dto.responses import OrderLoyaltyStateResponse, OrderWithLoyaltyResponse
from resto.application.mappers.event_envelope import serialize_order_event
from resto.application.mappers.order_mapper import to_order_response
from resto.application.ports.publisher import ORDER_EVENTS_CHANNEL, EventPublisher
from resto.application.ports.repositories import (
    AuditRepository,
    OrderRepository,
    UserRepository,
)
from resto.application.use_cases.context import Actor, TraceContext
from resto.application.use_cases.errors import NotResourceOwnerError, OrderNotFoundError
from resto.application.use_cases.order_points import reverse_and_cancel
from resto.application.use_cases.side_effects import publish_event, record_audit
from resto.domain.common.ids import OrderId

logger = logging.getLogger(__name__)


class CancelOrder:
    def __init__(
        self,
        order_repository: OrderRepository,
        user_repository: UserRepository,
        audit_repository: AuditRepository,
        publisher: EventPublisher,
        allow_cancel_after_delivery: bool = True,
    ) -> None:
        self._order_repository = order_repository
        self._user_repository = user_repository
        self._audit_repository = audit_repository
        self._publisher = publisher
        self._allow_cancel_after_delivery = allow_cancel_after_delivery

    def execute(
        self,
        actor: Actor,
        order_id: OrderId,
        trace_ctx: TraceContext,
    ) -> OrderWithLoyaltyResponse:
        order = self._order_repository.get(order_id)
        if order is None:
            raise OrderNotFoundError(f"order not found for order_id={order_id}")
        if str(order.user_id) != str(actor.user_id):
            raise NotResourceOwnerError("only the customer who placed the order can cancel it")

        now = datetime.now(timezone.utc)
        cancelled, balance = reverse_and_cancel(
            self._order_repository,
            order,
            now,
            allow_after_delivery=self._allow_cancel_after_delivery,
        )
        logger.info(
            "order_cancelled",
            extra={"order_id": str(order_id), "from_status": order.status.value, "balance": balance},
        )

        user = self._user_repository.get(order.user_id)
        publish_event(
            self._publisher,
            channel=ORDER_EVENTS_CHANNEL,
            message=serialize_order_event(
                event_type="order.cancelled",
                occurred_at=now,
                order=cancelled,
                customer_email=user.email if user is not None else None,
                customer_name=user.display_name if user is not None else None,
                trace_id=trace_ctx.trace_id,
                request_id=trace_ctx.request_id,
                loyalty={"currentPoints": balance},
            ),
        )
        record_audit(
            self._audit_repository,
            actor_id=actor.user_id,
            action="order_cancelled",
            resource="order",
            resource_id=str(order_id),
            meta={
                "fromStatus": order.status.value,
                "pointsReversed": order.loyalty.points_earned if order.loyalty.points_credited else 0,
                "pointsRefunded": order.loyalty.redeemed_points,
            },
        )

        return OrderWithLoyaltyResponse(
            order=to_order_response(cancelled),
            loyalty=OrderLoyaltyStateResponse(currentPoints=balance),
        )
