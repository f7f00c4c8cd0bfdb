from __future__ import annotations

import logging
from datetime import datetime, timezone

from resto.application.dto.responses import OrderLoyaltyStateResponse, OrderWithLoyaltyResponse
from resto.application.mappers.order_mapper import to_order_response
from resto.application.metrics.lifecycle import record_points
from resto.application.ports.repositories import (
    AuditRepository,
    OrderRepository,
    UserRepository,
)
from resto.application.use_cases.context import Actor
from resto.application.use_cases.errors import (
    AlreadyRedeemedError,
    InvalidInputError,
    InvalidStateError,
    NotResourceOwnerError,
    OrderNotFoundError,
    UserNotFoundError,
)
from resto.application.use_cases.order_points import NotEnoughPointsError, save_with_points
from resto.application.use_cases.side_effects import record_audit
from resto.domain.common.ids import OrderId
from resto.domain.loyalty.points import LoyaltyPolicy
from resto.domain.order.entities import OrderTransitionError, PointsAlreadyRedeemedError

logger = logging.getLogger(__name__)


class InvalidPointsError(InvalidInputError):
    pass


class RedeemOnCancelledOrderError(InvalidStateError):
    pass


class PointsAlreadyAppliedError(AlreadyRedeemedError):
    pass


class RedeemPoints:
    def __init__(
        self,
        order_repository: OrderRepository,
        user_repository: UserRepository,
        audit_repository: AuditRepository,
        policy: LoyaltyPolicy,
    ) -> None:
        self._order_repository = order_repository
        self._user_repository = user_repository
        self._audit_repository = audit_repository
        self._policy = policy

    def execute(
        self,
        actor: Actor,
        order_id: OrderId,
        points: int | None,
    ) -> OrderWithLoyaltyResponse:
        if isinstance(points, bool) or not isinstance(points, int) or points < 1:
            raise InvalidPointsError("points must be a positive integer")

        order = self._order_repository.get(order_id)
        if order is None:
            raise OrderNotFoundError(f"order not found for order_id={order_id}")
        if str(order.user_id) != str(actor.user_id):
            raise NotResourceOwnerError("only the customer who placed the order can redeem on it")
        if order.is_cancelled:
            raise RedeemOnCancelledOrderError("cannot redeem points on a cancelled order")
        if order.loyalty.has_redemption:
            raise PointsAlreadyAppliedError(f"points already redeemed for order {order_id}")

        user = self._user_repository.get(order.user_id)
        if user is None:
            raise UserNotFoundError(f"user not found for user_id={order.user_id}")
        if user.points < points:
            raise NotEnoughPointsError(
                f"insufficient points: balance={user.points}, requested={points}"
            )

        discount = self._policy.discount_for(points, order.total.currency)
        try:
            redeemed, movement = order.redeem(points, discount, datetime.now(timezone.utc))
        except PointsAlreadyRedeemedError as exc:
            raise PointsAlreadyAppliedError(str(exc)) from exc
        except OrderTransitionError as exc:
            raise RedeemOnCancelledOrderError(str(exc)) from exc

        persisted, balance = save_with_points(self._order_repository, redeemed, order.version, movement)
        record_points("redeemed", points)
        logger.info(
            "loyalty_points_redeemed",
            extra={"order_id": str(order_id), "points": points, "balance": balance},
        )

        record_audit(
            self._audit_repository,
            actor_id=actor.user_id,
            action="redeem_points",
            resource="order",
            resource_id=str(order_id),
            meta={
                "points": points,
                "discountCents": discount.amount_cents,
                "totalAmountCents": persisted.total.amount_cents,
            },
        )

        return OrderWithLoyaltyResponse(
            order=to_order_response(persisted),
            loyalty=OrderLoyaltyStateResponse(
                currentPoints=balance,
                redeemedPoints=points,
            ),
        )
