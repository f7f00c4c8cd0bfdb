from __future__ import annotations

from resto.application.dto.responses import LoyaltyRecentOrderResponse, LoyaltySummaryResponse
from resto.application.mappers.order_mapper import to_money_response
from resto.application.ports.repositories import OrderRepository, UserRepository
from resto.application.use_cases.context import Actor
from resto.application.use_cases.errors import UserNotFoundError

RECENT_ORDERS_LIMIT = 5


class GetLoyaltySummary:
    def __init__(self, user_repository: UserRepository, order_repository: OrderRepository) -> None:
        self._user_repository = user_repository
        self._order_repository = order_repository

    def execute(self, actor: Actor) -> LoyaltySummaryResponse:
        user = self._user_repository.get(actor.user_id)
        if user is None:
            raise UserNotFoundError(f"user not found for user_id={actor.user_id}")

        orders = sorted(
            self._order_repository.list_for_user(actor.user_id),
            key=lambda order: order.created_at,
            reverse=True,
        )
        return LoyaltySummaryResponse(
            points=user.points,
            lifetimeEarned=sum(order.loyalty.points_earned for order in orders),
            lifetimeRedeemed=sum(order.loyalty.redeemed_points for order in orders),
            recentOrders=[
                LoyaltyRecentOrderResponse(
                    id=str(order.order_id),
                    createdAt=order.created_at,
                    totalAmount=to_money_response(order.total),
                    orderStatus=order.status.value,
                    pointsEarned=order.loyalty.points_earned,
                    redeemedPoints=order.loyalty.redeemed_points,
                )
                for order in orders[:RECENT_ORDERS_LIMIT]
            ],
        )
