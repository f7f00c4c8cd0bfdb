from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from resto.api.auth import get_actor, require_admin
from resto.api.tracing import trace_context
from resto.application.dto.requests import (
    PlaceOrderRequest,
    RedeemPointsRequest,
    UpdateOrderStatusRequest,
)
from resto.application.dto.responses import (
    DeletedResponse,
    OrderListResponse,
    OrderResponse,
    OrderWithLoyaltyResponse,
)
from resto.application.use_cases.cancel_order import CancelOrder
from resto.application.use_cases.context import Actor
from resto.application.use_cases.list_orders import (
    DeleteOrder,
    GetOrder,
    ListAllOrders,
    ListUserOrders,
)
from resto.application.use_cases.place_order import PlaceOrder
from resto.application.use_cases.redeem_points import RedeemPoints
from resto.application.use_cases.update_order_status import UpdateOrderStatus
from resto.config import get_settings
from resto.domain.common.ids import OrderId
from resto.infrastructure.db.repositories.audit_repo import SqlAlchemyAuditRepository
from resto.infrastructure.db.repositories.menu_repo import SqlAlchemyMenuRepository
from resto.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from resto.infrastructure.db.repositories.user_repo import SqlAlchemyUserRepository
from resto.infrastructure.messaging.redis_publisher import RedisEventPublisher

router = APIRouter()


def _place_order_use_case() -> PlaceOrder:
    return PlaceOrder(
        menu_repository=SqlAlchemyMenuRepository(),
        user_repository=SqlAlchemyUserRepository(),
        order_repository=SqlAlchemyOrderRepository(),
        audit_repository=SqlAlchemyAuditRepository(),
        publisher=RedisEventPublisher(),
        policy=get_settings().loyalty,
    )


def _update_order_status_use_case() -> UpdateOrderStatus:
    return UpdateOrderStatus(
        order_repository=SqlAlchemyOrderRepository(),
        user_repository=SqlAlchemyUserRepository(),
        audit_repository=SqlAlchemyAuditRepository(),
        publisher=RedisEventPublisher(),
        allow_cancel_after_delivery=get_settings().allow_cancel_after_delivery,
    )


def _cancel_order_use_case() -> CancelOrder:
    return CancelOrder(
        order_repository=SqlAlchemyOrderRepository(),
        user_repository=SqlAlchemyUserRepository(),
        audit_repository=SqlAlchemyAuditRepository(),
        publisher=RedisEventPublisher(),
        allow_cancel_after_delivery=get_settings().allow_cancel_after_delivery,
    )


def _redeem_points_use_case() -> RedeemPoints:
    return RedeemPoints(
        order_repository=SqlAlchemyOrderRepository(),
        user_repository=SqlAlchemyUserRepository(),
        audit_repository=SqlAlchemyAuditRepository(),
        policy=get_settings().loyalty,
    )


def _get_order_use_case() -> GetOrder:
    return GetOrder(order_repository=SqlAlchemyOrderRepository())


def _list_user_orders_use_case() -> ListUserOrders:
    return ListUserOrders(order_repository=SqlAlchemyOrderRepository())


def _list_all_orders_use_case() -> ListAllOrders:
    return ListAllOrders(order_repository=SqlAlchemyOrderRepository())


def _delete_order_use_case() -> DeleteOrder:
    return DeleteOrder(
        order_repository=SqlAlchemyOrderRepository(),
        audit_repository=SqlAlchemyAuditRepository(),
    )


@router.post(
    "/v1/orders",
    response_model=OrderWithLoyaltyResponse,
    status_code=status.HTTP_201_CREATED,
)
def place_order(
    request_dto: PlaceOrderRequest,
    actor: Actor = Depends(get_actor),
) -> OrderWithLoyaltyResponse:
    return _place_order_use_case().execute(actor, request_dto, trace_context())


@router.get("/v1/orders/me", response_model=OrderListResponse)
def my_orders(actor: Actor = Depends(get_actor)) -> OrderListResponse:
    return _list_user_orders_use_case().execute(actor)


@router.get("/v1/orders", response_model=OrderListResponse)
def all_orders(
    order_status: str | None = Query(default=None, alias="status"),
    date_from: str | None = Query(default=None, alias="from"),
    date_to: str | None = Query(default=None, alias="to"),
    user: str | None = Query(default=None),
    _: Actor = Depends(require_admin),
) -> OrderListResponse:
    return _list_all_orders_use_case().execute(
        status=order_status,
        date_from=date_from,
        date_to=date_to,
        user_id=user,
    )


@router.get("/v1/orders/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, actor: Actor = Depends(get_actor)) -> OrderResponse:
    return _get_order_use_case().execute(actor, OrderId(order_id))


@router.put("/v1/orders/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: str,
    request_dto: UpdateOrderStatusRequest,
    actor: Actor = Depends(require_admin),
) -> OrderResponse:
    return _update_order_status_use_case().execute(
        actor,
        OrderId(order_id),
        request_dto.order_status,
        trace_context(),
    )


@router.delete("/v1/orders/{order_id}/cancel", response_model=OrderWithLoyaltyResponse)
def cancel_order(order_id: str, actor: Actor = Depends(get_actor)) -> OrderWithLoyaltyResponse:
    return _cancel_order_use_case().execute(actor, OrderId(order_id), trace_context())


@router.post("/v1/orders/{order_id}/redeem", response_model=OrderWithLoyaltyResponse)
def redeem_points(
    order_id: str,
    request_dto: RedeemPointsRequest,
    actor: Actor = Depends(get_actor),
) -> OrderWithLoyaltyResponse:
    return _redeem_points_use_case().execute(
        actor,
        OrderId(order_id),
        request_dto.requested_points,
    )


@router.delete("/v1/orders/{order_id}", response_model=DeletedResponse)
def delete_order(order_id: str, actor: Actor = Depends(require_admin)) -> DeletedResponse:
    return _delete_order_use_case().execute(actor, OrderId(order_id))
