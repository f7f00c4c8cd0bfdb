from __future__ import annotations

from sqlalchemy import Update, func, update

from resto.domain.common.ids import UserId
from resto.domain.loyalty.points import PointsMovement
from resto.infrastructure.db.models.user import UserModel


def points_update(user_id: UserId, movement: PointsMovement) -> Update:
    """Single-statement form of ``PointsMovement.apply``: ``max(0, points - debit) + credit``."""
    statement = update(UserModel).where(UserModel.id == str(user_id))
    if movement.strict:
        statement = statement.where(UserModel.points >= movement.debit)
    return statement.values(
        points=func.greatest(UserModel.points - movement.debit, 0) + movement.credit
    ).returning(UserModel.points)
