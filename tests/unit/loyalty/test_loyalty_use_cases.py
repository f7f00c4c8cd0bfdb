from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from resto.application.dto.requests import (
    MAX_INT32,
    AdjustPointsRequest,
    PlaceOrderLineRequest,
    PlaceOrderRequest,
)
from resto.application.use_cases.adjust_points import AdjustUserPoints, InvalidAdjustmentError
from resto.application.use_cases.errors import UserNotFoundError
from resto.application.use_cases.loyalty_overview import GetLoyaltyOverview
from resto.application.use_cases.loyalty_summary import GetLoyaltySummary
from resto.application.use_cases.place_order import PlaceOrder
from resto.application.use_cases.redeem_points import RedeemPoints
from resto.domain.common.ids import OrderId
from resto.domain.user.entities import UserRole


def _place(world, actor, price_cents: int = 30000) -> OrderId:
    world.add_menu_item("itm_1", "Biryani", price_cents)
    result = PlaceOrder(
        world.menu, world.users, world.orders, world.audit, world.publisher, world.policy
    ).execute(
        actor,
        PlaceOrderRequest(items=[PlaceOrderLineRequest(menuItem="itm_1", quantity=1)]),
        world.trace_ctx,
    )
    return OrderId(result.order.orderId)


def _adjust(world) -> AdjustUserPoints:
    return AdjustUserPoints(world.users, world.audit)


def test_negative_delta_clamps_at_zero(world) -> None:
    admin = world.add_user("adm_1", role=UserRole.ADMIN)
    world.add_user("usr_1", points=50)

    response = _adjust(world).execute(admin, "usr_1", AdjustPointsRequest(delta=-1000))

    assert response.points == 0
    assert world.balance("usr_1") == 0
    assert world.audit.entries[-1].meta == {"target": "usr_1", "delta": -1000, "points": 0}


def test_absolute_points_and_email_lookup(world) -> None:
    admin = world.add_user("adm_1", role=UserRole.ADMIN)
    world.add_user("usr_1", points=50, email="Guest@Example.com")

    by_email = _adjust(world).execute(admin, "guest@example.com", AdjustPointsRequest(points=75))
    assert by_email.id == "usr_1"
    assert by_email.points == 75

    by_body = _adjust(world).execute(
        admin, "unknown", AdjustPointsRequest(delta=5, email="guest@example.com")
    )
    assert by_body.points == 80


def test_adjust_requires_exactly_one_of_delta_or_points(world) -> None:
    admin = world.add_user("adm_1", role=UserRole.ADMIN)
    world.add_user("usr_1")
    with pytest.raises(InvalidAdjustmentError):
        _adjust(world).execute(admin, "usr_1", AdjustPointsRequest())
    with pytest.raises(InvalidAdjustmentError):
        _adjust(world).execute(admin, "usr_1", AdjustPointsRequest(delta=1, points=1))


def test_adjust_unknown_user(world) -> None:
    admin = world.add_user("adm_1", role=UserRole.ADMIN)
    with pytest.raises(UserNotFoundError):
        _adjust(world).execute(admin, "usr_missing", AdjustPointsRequest(delta=10))


def test_adjust_rejects_balance_beyond_storable_range(world) -> None:
    admin = world.add_user("adm_1", role=UserRole.ADMIN)
    world.add_user("usr_1", points=10)

    with pytest.raises(InvalidAdjustmentError):
        _adjust(world).execute(admin, "usr_1", AdjustPointsRequest(delta=MAX_INT32))
    assert world.balance("usr_1") == 10


def test_summary_reports_balance_and_lifetime_totals(world) -> None:
    customer = world.add_user("usr_1", points=100)
    first = _place(world, customer, price_cents=30000)
    for _ in range(5):
        _place(world, customer, price_cents=1000)
    RedeemPoints(world.orders, world.users, world.audit, world.policy).execute(customer, first, 40)

    summary = GetLoyaltySummary(world.users, world.orders).execute(customer)

    assert summary.points == 60
    assert summary.lifetimeEarned == 300 + 5 * 10
    assert summary.lifetimeRedeemed == 40
    assert len(summary.recentOrders) == 5


def test_overview_aggregates_wallets_and_redemptions(world) -> None:
    customer = world.add_user("usr_1", points=100)
    world.add_user("usr_2", points=30)
    world.add_user("usr_3")
    order_id = _place(world, customer)
    RedeemPoints(world.orders, world.users, world.audit, world.policy).execute(customer, order_id, 25)

    overview = GetLoyaltyOverview(world.users, world.orders).execute()

    assert overview.totals.totalPointsInWallets == 105
    assert overview.totals.usersWithPoints == 2
    assert overview.totals.totalPointsEarned == 300
    assert overview.totals.totalPointsRedeemed == 25
    assert [user.id for user in overview.topUsers] == ["usr_1", "usr_2"]
    assert overview.recentRedemptions[0].redeemedPoints == 25
    assert overview.recentRedemptions[0].discountApplied.amountCents == 2500
    assert overview.recentRedemptions[0].user.username == "usr_1"


def test_summary_and_overview_are_stable_without_writes(world) -> None:
    customer = world.add_user("usr_1", points=100)
    world.add_user("usr_2", points=30)
    order_id = _place(world, customer)
    _place(world, customer, price_cents=1000)
    RedeemPoints(world.orders, world.users, world.audit, world.policy).execute(customer, order_id, 25)
    summary = GetLoyaltySummary(world.users, world.orders)
    overview = GetLoyaltyOverview(world.users, world.orders)

    first_summary = summary.execute(customer)
    second_summary = summary.execute(customer)
    first_overview = overview.execute()
    second_overview = overview.execute()

    assert first_summary == second_summary
    assert first_overview == second_overview
    assert world.balance("usr_1") == 75
