from __future__ import annotations

from resto.application.dto.responses import (
    LoyaltyOverviewResponse,
    LoyaltyRedemptionResponse,
    LoyaltyTotalsResponse,
    LoyaltyUserResponse,
)
from resto.application.mappers.order_mapper import to_money_response
from resto.application.ports.repositories import OrderRepository, UserRepository
from resto.domain.common.money import Money

OVERVIEW_LIMIT = 5


class GetLoyaltyOverview:
    def __init__(self, user_repository: UserRepository, order_repository: OrderRepository) -> None:
        self._user_repository = user_repository
        self._order_repository = order_repository

    def execute(self) -> LoyaltyOverviewResponse:
        wallet_totals = self._user_repository.points_totals()
        ledger_totals = self._order_repository.loyalty_totals()
        top_users = [
            user for user in self._user_repository.top_by_points(OVERVIEW_LIMIT) if user.points > 0
        ]

        redemptions = []
        for row in self._order_repository.recent_redemptions(OVERVIEW_LIMIT):
            order = row.order
            redemptions.append(
                LoyaltyRedemptionResponse(
                    id=str(order.order_id),
                    user=LoyaltyUserResponse(
                        id=str(order.user_id),
                        username=row.username,
                        email=row.email,
                    ),
                    redeemedPoints=order.loyalty.redeemed_points,
                    discountApplied=to_money_response(
                        Money(
                            amount_cents=order.loyalty.discount_applied_cents,
                            currency=order.total.currency,
                        )
                    ),
                    totalAmount=to_money_response(order.total),
                    updatedAt=order.updated_at,
                )
            )

        return LoyaltyOverviewResponse(
            totals=LoyaltyTotalsResponse(
                totalPointsInWallets=wallet_totals.total_points,
                usersWithPoints=wallet_totals.users_with_points,
                totalPointsEarned=ledger_totals.total_earned,
                totalPointsRedeemed=ledger_totals.total_redeemed,
            ),
            topUsers=[
                LoyaltyUserResponse(
                    id=str(user.user_id),
                    username=user.username,
                    email=user.email,
                    points=user.points,
                )
                for user in top_users
            ],
            recentRedemptions=redemptions,
        )
