from __future__ import annotations

import logging
from datetime import datetime, timezone

from resto.application.dto.responses import OrderResponse
from resto.application.mappers.event_envelope import serialize_order_event
from resto.application.mappers.order_mapper import to_order_response
from resto.application.metrics.lifecycle import (
    record_loyalty_credit_failure,
    record_points,
    record_time_to_deliver,
    record_transition,
)
from resto.application.ports.publisher import ORDER_EVENTS_CHANNEL, EventPublisher
from resto.application.ports.repositories import (
    AuditRepository,
    OrderRepository,
    UserRepository,
)
from resto.application.use_cases.context import Actor, TraceContext
from resto.application.use_cases.errors import (
    InvalidInputError,
    InvalidStateError,
    OrderConflictError,
    OrderNotFoundError,
)
from resto.application.use_cases.order_points import (
    reverse_and_cancel,
    save_order,
    save_with_points,
)
from resto.application.use_cases.side_effects import publish_event, record_audit
from resto.domain.common.ids import OrderId
from resto.domain.order.entities import Order, OrderStatus

logger = logging.getLogger(__name__)


class InvalidOrderStatusError(InvalidInputError):
    pass


class OrderCancelledError(InvalidStateError):
    pass


def parse_order_status(value: str | None) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError as exc:
        allowed = ", ".join(status.value for status in OrderStatus)
        raise InvalidOrderStatusError(f"orderStatus must be one of: {allowed}") from exc


class UpdateOrderStatus:
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
        order_status: str | None,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        new_status = parse_order_status(order_status)

        order = self._order_repository.get(order_id)
        if order is None:
            raise OrderNotFoundError(f"order not found for order_id={order_id}")
        if order.is_cancelled:
            raise OrderCancelledError(f"order {order_id} is cancelled")

        now = datetime.now(timezone.utc)
        if new_status == OrderStatus.CANCELLED:
            persisted, _ = reverse_and_cancel(
                self._order_repository,
                order,
                now,
                allow_after_delivery=self._allow_cancel_after_delivery,
            )
        else:
            persisted = self._advance(order, new_status, now)

        record_audit(
            self._audit_repository,
            actor_id=actor.user_id,
            action="order_status_updated",
            resource="order",
            resource_id=str(order_id),
            meta={
                "from": order.status.value,
                "to": persisted.status.value,
                "pointsCredited": persisted.loyalty.points_credited,
            },
        )
        self._publish(persisted, now, trace_ctx)
        return to_order_response(persisted)

    def _advance(self, order: Order, new_status: OrderStatus, now: datetime) -> Order:
        updated = order.with_status(new_status, now)
        persisted = None

        if new_status == OrderStatus.DELIVERED:
            credited, movement = updated.credit_points(now)
            if not movement.is_empty:
                try:
                    persisted, balance = save_with_points(
                        self._order_repository, credited, order.version, movement
                    )
                except OrderConflictError:
                    raise
                except Exception:
                    # The status change still goes through; the order stays uncredited.
                    record_loyalty_credit_failure()
                    logger.exception(
                        "loyalty_credit_failed",
                        extra={
                            "order_id": str(order.order_id),
                            "user_id": str(order.user_id),
                            "points": movement.credit,
                        },
                    )
                else:
                    record_points("earned", movement.credit)
                    logger.info(
                        "loyalty_points_credited",
                        extra={
                            "order_id": str(order.order_id),
                            "points": movement.credit,
                            "balance": balance,
                        },
                    )

        if persisted is None:
            persisted = save_order(self._order_repository, updated, order.version)

        record_transition(order.status, persisted.status)
        if persisted.status == OrderStatus.DELIVERED and order.status != OrderStatus.DELIVERED:
            record_time_to_deliver(persisted, now)
        return persisted

    def _publish(
        self,
        order: Order,
        now: datetime,
        trace_ctx: TraceContext,
    ) -> None:
        user = self._user_repository.get(order.user_id)
        event_type = "order.cancelled" if order.is_cancelled else "order.status_changed"
        publish_event(
            self._publisher,
            channel=ORDER_EVENTS_CHANNEL,
            message=serialize_order_event(
                event_type=event_type,
                occurred_at=now,
                order=order,
                customer_email=user.email if user is not None else None,
                customer_name=user.display_name if user is not None else None,
                trace_id=trace_ctx.trace_id,
                request_id=trace_ctx.request_id,
            ),
        )
