from __future__ import annotations

from resto.application.dto.responses import DeletedResponse, OrderListResponse, OrderResponse
from resto.application.mappers.order_mapper import to_order_response
from resto.application.ports.repositories import AuditRepository, OrderRepository
from resto.application.use_cases.context import Actor
from resto.application.use_cases.errors import NotResourceOwnerError, OrderNotFoundError
from resto.application.use_cases.list_bookings import parse_filter_date
from resto.application.use_cases.side_effects import record_audit
from resto.application.use_cases.update_order_status import parse_order_status
from resto.domain.common.ids import OrderId, UserId


class GetOrder:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, actor: Actor, order_id: OrderId) -> OrderResponse:
        order = self._order_repository.get(order_id)
        if order is None:
            raise OrderNotFoundError(f"order not found for order_id={order_id}")
        if not actor.can_access(order.user_id):
            raise NotResourceOwnerError("not allowed to view this order")
        return to_order_response(order)


class ListUserOrders:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, actor: Actor) -> OrderListResponse:
        orders = sorted(
            self._order_repository.list_for_user(actor.user_id),
            key=lambda order: order.created_at,
            reverse=True,
        )
        return OrderListResponse(
            count=len(orders),
            orders=[to_order_response(order) for order in orders],
        )


class ListAllOrders:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(
        self,
        status: str | None = None,
        date_from: str | None = None,
        date_to: str | None = None,
        user_id: str | None = None,
    ) -> OrderListResponse:
        statuses = None
        if status:
            statuses = [parse_order_status(part.strip()) for part in status.split(",") if part.strip()]

        orders = sorted(
            self._order_repository.list_all(
                statuses=statuses or None,
                date_from=parse_filter_date(date_from),
                date_to=parse_filter_date(date_to, end_of_day=True),
                user_id=UserId(user_id) if user_id else None,
            ),
            key=lambda order: order.created_at,
            reverse=True,
        )
        return OrderListResponse(
            count=len(orders),
            orders=[to_order_response(order) for order in orders],
        )


class DeleteOrder:
    def __init__(self, order_repository: OrderRepository, audit_repository: AuditRepository) -> None:
        self._order_repository = order_repository
        self._audit_repository = audit_repository

    def execute(self, actor: Actor, order_id: OrderId) -> DeletedResponse:
        if not self._order_repository.delete(order_id):
            raise OrderNotFoundError(f"order not found for order_id={order_id}")
        record_audit(
            self._audit_repository,
            actor_id=actor.user_id,
            action="order_deleted",
            resource="order",
            resource_id=str(order_id),
        )
        return DeletedResponse(id=str(order_id))
