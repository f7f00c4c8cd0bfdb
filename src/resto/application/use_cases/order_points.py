"""Order writes that move the owner's points balance in the same transaction."""

from __future__ import annotations

from datetime import datetime

from resto.application.metrics.lifecycle import record_points, record_transition
from resto.application.ports.repositories import (
    InsufficientBalanceAtWriteError,
    OptimisticConcurrencyError,
    OrderRepository,
)
from resto.application.use_cases.errors import (
    InsufficientBalanceError,
    InvalidStateError,
    OrderConflictError,
)
from resto.domain.loyalty.points import PointsMovement
from resto.domain.order.entities import (
    Order,
    OrderAlreadyCancelledError,
    OrderTransitionError,
)


class OrderAlreadyCancelledStateError(InvalidStateError):
    pass


class OrderNotCancellableError(InvalidStateError):
    pass


class NotEnoughPointsError(InsufficientBalanceError):
    pass


def save_with_points(
    order_repository: OrderRepository,
    order: Order,
    expected_version: int,
    movement: PointsMovement,
) -> tuple[Order, int]:
    try:
        return order_repository.update_with_points(order, expected_version, movement)
    except OptimisticConcurrencyError as exc:
        raise OrderConflictError(
            f"order {order.order_id} was modified concurrently, retry the request"
        ) from exc
    except InsufficientBalanceAtWriteError as exc:
        raise NotEnoughPointsError(str(exc)) from exc


def save_order(order_repository: OrderRepository, order: Order, expected_version: int) -> Order:
    try:
        return order_repository.update_with_version(order, expected_version)
    except OptimisticConcurrencyError as exc:
        raise OrderConflictError(
            f"order {order.order_id} was modified concurrently, retry the request"
        ) from exc


def reverse_and_cancel(
    order_repository: OrderRepository,
    order: Order,
    now: datetime,
    *,
    allow_after_delivery: bool,
) -> tuple[Order, int]:
    """Cancel an order, taking back credited points and refunding redeemed ones."""
    try:
        cancelled, movement = order.cancel(now, allow_after_delivery=allow_after_delivery)
    except OrderAlreadyCancelledError as exc:
        raise OrderAlreadyCancelledStateError(str(exc)) from exc
    except OrderTransitionError as exc:
        raise OrderNotCancellableError(str(exc)) from exc

    persisted, balance = save_with_points(order_repository, cancelled, order.version, movement)
    record_transition(order.status, persisted.status)
    record_points("reversed", movement.debit)
    record_points("refunded", movement.credit)
    return persisted, balance
