from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from resto.application.dto.requests import MAX_INT32, PlaceOrderLineRequest, PlaceOrderRequest
from resto.application.ports.publisher import ORDER_EVENTS_CHANNEL
from resto.application.use_cases.context import Actor
from resto.application.use_cases.errors import InvalidInputError, MenuItemNotFoundError, UserNotFoundError
from resto.application.use_cases.place_order import (
    EmptyOrderError,
    InvalidQuantityError,
    MenuItemUnavailableError,
    OrderTooLargeError,
    PlaceOrder,
)
from resto.domain.common.ids import UserId
from resto.domain.order.entities import OrderStatus
from resto.domain.user.entities import UserRole


def _use_case(world) -> PlaceOrder:
    return PlaceOrder(
        menu_repository=world.menu,
        user_repository=world.users,
        order_repository=world.orders,
        audit_repository=world.audit,
        publisher=world.publisher,
        policy=world.policy,
    )


def _request(*lines: tuple[str, int]) -> PlaceOrderRequest:
    return PlaceOrderRequest(
        items=[PlaceOrderLineRequest(menuItem=item_id, quantity=qty) for item_id, qty in lines]
    )


def test_place_order_snapshots_prices_and_points(world) -> None:
    actor = world.add_user("usr_1", points=40)
    world.add_menu_item("itm_1", "Butter Chicken", 42000)
    world.add_menu_item("itm_2", "Garlic Naan", 8000)

    result = _use_case(world).execute(actor, _request(("itm_1", 1), ("itm_2", 1)), world.trace_ctx)

    assert result.order.orderStatus == OrderStatus.PENDING.value
    assert result.order.totalAmount.amountCents == 50000
    assert result.order.meta.pointsEarned == 500
    assert result.order.meta.pointsCredited is False
    assert result.loyalty.currentPoints == 40
    assert result.loyalty.pointsEarned == 500
    assert world.balance("usr_1") == 40

    stored = world.orders.get(result.order.orderId)
    assert [line.name for line in stored.lines] == ["Butter Chicken", "Garlic Naan"]

    channel, message = world.publisher.messages[0]
    assert channel == ORDER_EVENTS_CHANNEL
    event = json.loads(message)
    assert event["event_type"] == "order.placed"
    assert event["payload"]["pointsEarned"] == 500
    assert world.audit.actions() == ["order_created"]


def test_price_changes_after_placement_do_not_touch_order(world) -> None:
    actor = world.add_user("usr_1")
    world.add_menu_item("itm_1", "Dal Makhani", 30000)
    result = _use_case(world).execute(actor, _request(("itm_1", 2)), world.trace_ctx)

    world.add_menu_item("itm_1", "Dal Makhani", 99900)

    assert world.orders.get(result.order.orderId).total.amount_cents == 60000


def test_empty_order_rejected(world) -> None:
    actor = world.add_user("usr_1")
    with pytest.raises(EmptyOrderError):
        _use_case(world).execute(actor, PlaceOrderRequest(items=[]), world.trace_ctx)


def test_zero_quantity_rejected(world) -> None:
    actor = world.add_user("usr_1")
    world.add_menu_item("itm_1", "Dal Makhani", 30000)
    with pytest.raises(InvalidQuantityError):
        _use_case(world).execute(actor, _request(("itm_1", 0)), world.trace_ctx)


def test_unknown_item_not_found(world) -> None:
    actor = world.add_user("usr_1")
    with pytest.raises(MenuItemNotFoundError):
        _use_case(world).execute(actor, _request(("itm_missing", 1)), world.trace_ctx)
    assert world.orders.orders == {}


def test_unavailable_item_rejected(world) -> None:
    actor = world.add_user("usr_1")
    world.add_menu_item("itm_1", "Tiramisu", 15000, is_available=False)
    with pytest.raises(MenuItemUnavailableError):
        _use_case(world).execute(actor, _request(("itm_1", 1)), world.trace_ctx)


def test_mixed_currencies_rejected(world) -> None:
    actor = world.add_user("usr_1")
    world.add_menu_item("itm_1", "Thali", 30000)
    world.add_menu_item("itm_2", "Burger", 1200, currency="USD")
    with pytest.raises(InvalidInputError):
        _use_case(world).execute(actor, _request(("itm_1", 1), ("itm_2", 1)), world.trace_ctx)


def test_unknown_user_not_found(world) -> None:
    world.add_menu_item("itm_1", "Thali", 30000)
    ghost = Actor(user_id=UserId("usr_ghost"), role=UserRole.CUSTOMER)
    with pytest.raises(UserNotFoundError):
        _use_case(world).execute(ghost, _request(("itm_1", 1)), world.trace_ctx)


def test_order_total_beyond_storable_range_rejected(world) -> None:
    actor = world.add_user("usr_1")
    world.add_menu_item("itm_1", "Dal Makhani", 30000)

    with pytest.raises(OrderTooLargeError):
        _use_case(world).execute(actor, _request(("itm_1", MAX_INT32)), world.trace_ctx)
    assert world.orders.orders == {}
