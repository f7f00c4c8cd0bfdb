from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import uuid4

from resto.application.dto.requests import MAX_INT32, PlaceOrderRequest
from resto.application.dto.responses import OrderLoyaltyStateResponse, OrderWithLoyaltyResponse
from resto.application.mappers.event_envelope import serialize_order_event
from resto.application.mappers.order_mapper import to_order_response
from resto.application.metrics.lifecycle import record_order_status
from resto.application.ports.publisher import ORDER_EVENTS_CHANNEL, EventPublisher
from resto.application.ports.repositories import (
    AuditRepository,
    MenuRepository,
    OrderRepository,
    UserRepository,
)
from resto.application.use_cases.context import Actor, TraceContext
from resto.application.use_cases.errors import (
    InvalidInputError,
    MenuItemNotFoundError,
    UserNotFoundError,
)
from resto.application.use_cases.side_effects import publish_event, record_audit
from resto.domain.common.ids import MenuItemId, OrderId, OrderLineId
from resto.domain.common.money import Money
from resto.domain.loyalty.points import LoyaltyPolicy
from resto.domain.order.entities import OrderLine, create_pending_order

logger = logging.getLogger(__name__)


class EmptyOrderError(InvalidInputError):
    pass


class InvalidQuantityError(InvalidInputError):
    pass


class MenuItemUnavailableError(InvalidInputError):
    pass


class OrderTooLargeError(InvalidInputError):
    pass


class PlaceOrder:
    def __init__(
        self,
        menu_repository: MenuRepository,
        user_repository: UserRepository,
        order_repository: OrderRepository,
        audit_repository: AuditRepository,
        publisher: EventPublisher,
        policy: LoyaltyPolicy,
    ) -> None:
        self._menu_repository = menu_repository
        self._user_repository = user_repository
        self._order_repository = order_repository
        self._audit_repository = audit_repository
        self._publisher = publisher
        self._policy = policy

    def execute(
        self,
        actor: Actor,
        request_dto: PlaceOrderRequest,
        trace_ctx: TraceContext,
    ) -> OrderWithLoyaltyResponse:
        if not request_dto.items:
            raise EmptyOrderError("order must contain at least one item")
        for request_line in request_dto.items:
            if request_line.quantity < 1:
                raise InvalidQuantityError("quantity must be an integer >= 1")

        user = self._user_repository.get(actor.user_id)
        if user is None:
            raise UserNotFoundError(f"user not found for user_id={actor.user_id}")

        requested_ids = list(dict.fromkeys(MenuItemId(line.menu_item) for line in request_dto.items))
        menu_items = {str(item.item_id): item for item in self._menu_repository.get_items(requested_ids)}

        order_lines: list[OrderLine] = []
        for request_line in request_dto.items:
            menu_item = menu_items.get(request_line.menu_item)
            if menu_item is None:
                raise MenuItemNotFoundError(f"menu item {request_line.menu_item} does not exist")
            if not menu_item.is_available:
                raise MenuItemUnavailableError(f"menu item {menu_item.name} is unavailable")

            order_lines.append(
                OrderLine(
                    line_id=OrderLineId(f"orl_{uuid4().hex[:12]}"),
                    item_id=menu_item.item_id,
                    name=menu_item.name,
                    quantity=request_line.quantity,
                    unit_price=menu_item.price_money,
                    line_total=menu_item.price_money.times(request_line.quantity),
                )
            )

        if len({line.unit_price.currency for line in order_lines}) > 1:
            raise InvalidInputError("all menu items in an order must share one currency")

        now = datetime.now(timezone.utc)
        subtotal = Money(
            amount_cents=sum(line.line_total.amount_cents for line in order_lines),
            currency=order_lines[0].line_total.currency,
        )
        if subtotal.amount_cents > MAX_INT32:
            raise OrderTooLargeError("order total exceeds the largest storable amount")
        points_earned = self._policy.points_for(subtotal)
        order = create_pending_order(
            order_id=OrderId(f"ord_{uuid4().hex[:12]}"),
            user_id=actor.user_id,
            lines=order_lines,
            points_earned=points_earned,
            now=now,
        )
        self._order_repository.add(order)
        record_order_status(order)
        logger.info(
            "order_created",
            extra={"order_id": str(order.order_id), "points_earned": points_earned},
        )

        publish_event(
            self._publisher,
            channel=ORDER_EVENTS_CHANNEL,
            message=serialize_order_event(
                event_type="order.placed",
                occurred_at=now,
                order=order,
                customer_email=user.email,
                customer_name=user.display_name,
                trace_id=trace_ctx.trace_id,
                request_id=trace_ctx.request_id,
            ),
        )
        record_audit(
            self._audit_repository,
            actor_id=actor.user_id,
            action="order_created",
            resource="order",
            resource_id=str(order.order_id),
            meta={
                "totalAmountCents": order.total.amount_cents,
                "pointsEarned": points_earned,
                "itemCount": len(order_lines),
            },
        )

        return OrderWithLoyaltyResponse(
            order=to_order_response(order),
            loyalty=OrderLoyaltyStateResponse(
                currentPoints=user.points,
                pointsEarned=points_earned,
            ),
        )
