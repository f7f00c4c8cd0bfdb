from __future__ import annotations

import logging

from resto.application.dto.requests import MAX_INT32, AdjustPointsRequest
from resto.application.dto.responses import PointsAdjustmentResponse
from resto.application.metrics.lifecycle import record_points
from resto.application.ports.repositories import AuditRepository, UserRepository
from resto.application.use_cases.context import Actor
from resto.application.use_cases.errors import InvalidInputError, UserNotFoundError
from resto.application.use_cases.side_effects import record_audit
from resto.domain.common.ids import UserId
from resto.domain.loyalty.points import PointsMovement
from resto.domain.user.entities import User

logger = logging.getLogger(__name__)


class InvalidAdjustmentError(InvalidInputError):
    pass


class AdjustUserPoints:
    """Admin correction of a user's balance, either by ``delta`` or to an absolute ``points``.

    The identifier may be a user id or an e-mail address; an ``email`` in the
    body is the last resort when the path identifier matches neither.
    """

    def __init__(self, user_repository: UserRepository, audit_repository: AuditRepository) -> None:
        self._user_repository = user_repository
        self._audit_repository = audit_repository

    def execute(
        self,
        actor: Actor,
        identifier: str,
        request_dto: AdjustPointsRequest,
    ) -> PointsAdjustmentResponse:
        delta = request_dto.delta
        points = request_dto.points
        if (delta is None) == (points is None):
            raise InvalidAdjustmentError("provide exactly one of delta or points")

        user = self._resolve(identifier, request_dto.email)
        if user is None:
            raise UserNotFoundError(f"user not found for identifier={identifier}")
        if delta is not None and user.points + delta > MAX_INT32:
            raise InvalidAdjustmentError("resulting balance exceeds the largest storable value")

        if delta is not None:
            balance = self._user_repository.apply_points(user.user_id, PointsMovement.from_delta(delta))
        else:
            balance = self._user_repository.set_points(user.user_id, points)
        if balance is None:
            raise UserNotFoundError(f"user not found for user_id={user.user_id}")

        record_points("adjusted", abs(balance - user.points))
        logger.info(
            "loyalty_points_adjusted",
            extra={"user_id": str(user.user_id), "delta": delta, "balance": balance},
        )
        record_audit(
            self._audit_repository,
            actor_id=actor.user_id,
            action="loyalty_points_adjusted",
            resource="user",
            resource_id=str(user.user_id),
            meta={"target": str(user.user_id), "delta": delta, "points": balance},
        )
        return PointsAdjustmentResponse(id=str(user.user_id), points=balance)

    def _resolve(self, identifier: str, fallback_email: str | None) -> User | None:
        user = self._user_repository.get(UserId(identifier))
        if user is None and "@" in identifier:
            user = self._user_repository.find_by_email(identifier.strip().lower())
        if user is None and fallback_email:
            user = self._user_repository.find_by_email(fallback_email.strip().lower())
        return user
