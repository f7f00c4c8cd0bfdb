from __future__ import annotations

import sys
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from resto.application.dto.requests import PlaceOrderLineRequest, PlaceOrderRequest
from resto.application.use_cases.errors import NotResourceOwnerError, OrderNotFoundError
from resto.application.use_cases.list_orders import (
    DeleteOrder,
    GetOrder,
    ListAllOrders,
    ListUserOrders,
)
from resto.application.use_cases.place_order import PlaceOrder
from resto.application.use_cases.update_order_status import InvalidOrderStatusError
from resto.domain.common.ids import OrderId
from resto.domain.order.entities import OrderStatus
from resto.domain.user.entities import UserRole


def _place(world, actor, created_at: datetime, status: OrderStatus = OrderStatus.PENDING) -> str:
    world.add_menu_item("itm_1", "Masala Dosa", 18000)
    result = PlaceOrder(
        world.menu, world.users, world.orders, world.audit, world.publisher, world.policy
    ).execute(
        actor,
        PlaceOrderRequest(items=[PlaceOrderLineRequest(menuItem="itm_1", quantity=1)]),
        world.trace_ctx,
    )
    order_id = result.order.orderId
    stored = world.orders.get(order_id)
    world.orders.orders[order_id] = replace(stored, created_at=created_at, status=status)
    return order_id


def test_user_orders_newest_first(world) -> None:
    customer = world.add_user("usr_1")
    other = world.add_user("usr_2")
    older = _place(world, customer, datetime(2026, 4, 1, tzinfo=timezone.utc))
    newer = _place(world, customer, datetime(2026, 4, 2, tzinfo=timezone.utc))
    _place(world, other, datetime(2026, 4, 3, tzinfo=timezone.utc))

    listing = ListUserOrders(world.orders).execute(customer)

    assert listing.count == 2
    assert [order.orderId for order in listing.orders] == [newer, older]


def test_admin_listing_filters(world) -> None:
    first = world.add_user("usr_1")
    second = world.add_user("usr_2")
    base = datetime(2026, 4, 1, 12, 0, tzinfo=timezone.utc)
    pending = _place(world, first, base)
    preparing = _place(world, first, base + timedelta(days=1), OrderStatus.PREPARING)
    delivered = _place(world, second, base + timedelta(days=2), OrderStatus.DELIVERED)
    use_case = ListAllOrders(world.orders)

    by_status = use_case.execute(status="Pending,Delivered")
    assert {order.orderId for order in by_status.orders} == {pending, delivered}

    by_user = use_case.execute(user_id="usr_1")
    assert [order.orderId for order in by_user.orders] == [preparing, pending]

    by_range = use_case.execute(date_from="2026-04-02", date_to="2026-04-02")
    assert [order.orderId for order in by_range.orders] == [preparing]

    assert use_case.execute().count == 3
    with pytest.raises(InvalidOrderStatusError):
        use_case.execute(status="Served")


def test_get_order_visibility(world) -> None:
    customer = world.add_user("usr_1")
    stranger = world.add_user("usr_2")
    admin = world.add_user("adm_1", role=UserRole.ADMIN)
    order_id = _place(world, customer, datetime(2026, 4, 1, tzinfo=timezone.utc))
    use_case = GetOrder(world.orders)

    assert use_case.execute(customer, OrderId(order_id)).orderId == order_id
    assert use_case.execute(admin, OrderId(order_id)).orderId == order_id
    with pytest.raises(NotResourceOwnerError):
        use_case.execute(stranger, OrderId(order_id))


def test_delete_order(world) -> None:
    customer = world.add_user("usr_1")
    admin = world.add_user("adm_1", role=UserRole.ADMIN)
    order_id = _place(world, customer, datetime(2026, 4, 1, tzinfo=timezone.utc))

    response = DeleteOrder(world.orders, world.audit).execute(admin, OrderId(order_id))

    assert response.deleted is True
    assert world.orders.get(order_id) is None
    assert world.audit.actions()[-1] == "order_deleted"
    with pytest.raises(OrderNotFoundError):
        DeleteOrder(world.orders, world.audit).execute(admin, OrderId(order_id))
