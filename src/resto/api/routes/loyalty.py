from __future__ import annotations

from fastapi import APIRouter, Depends

from resto.api.auth import get_actor, require_admin
from resto.application.dto.requests import AdjustPointsRequest
from resto.application.dto.responses import (
    LoyaltyOverviewResponse,
    LoyaltySummaryResponse,
    PointsAdjustmentResponse,
)
from resto.application.use_cases.adjust_points import AdjustUserPoints
from resto.application.use_cases.context import Actor
from resto.application.use_cases.loyalty_overview import GetLoyaltyOverview
from resto.application.use_cases.loyalty_summary import GetLoyaltySummary
from resto.infrastructure.db.repositories.audit_repo import SqlAlchemyAuditRepository
from resto.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from resto.infrastructure.db.repositories.user_repo import SqlAlchemyUserRepository

router = APIRouter()


def _loyalty_summary_use_case() -> GetLoyaltySummary:
    return GetLoyaltySummary(
        user_repository=SqlAlchemyUserRepository(),
        order_repository=SqlAlchemyOrderRepository(),
    )


def _loyalty_overview_use_case() -> GetLoyaltyOverview:
    return GetLoyaltyOverview(
        user_repository=SqlAlchemyUserRepository(),
        order_repository=SqlAlchemyOrderRepository(),
    )


def _adjust_points_use_case() -> AdjustUserPoints:
    return AdjustUserPoints(
        user_repository=SqlAlchemyUserRepository(),
        audit_repository=SqlAlchemyAuditRepository(),
    )


@router.get("/v1/loyalty/me", response_model=LoyaltySummaryResponse)
def my_loyalty(actor: Actor = Depends(get_actor)) -> LoyaltySummaryResponse:
    return _loyalty_summary_use_case().execute(actor)


@router.get("/v1/loyalty/admin/overview", response_model=LoyaltyOverviewResponse)
def loyalty_overview(_: Actor = Depends(require_admin)) -> LoyaltyOverviewResponse:
    return _loyalty_overview_use_case().execute()


@router.patch(
    "/v1/loyalty/admin/users/{identifier}/points",
    response_model=PointsAdjustmentResponse,
)
def adjust_points(
    identifier: str,
    request_dto: AdjustPointsRequest,
    actor: Actor = Depends(require_admin),
) -> PointsAdjustmentResponse:
    return _adjust_points_use_case().execute(actor, identifier, request_dto)
