from __future__ import annotations

from datetime import timezone

from sqlalchemy import Engine, func, select, update
from sqlalchemy.orm import Session

from resto.application.ports.repositories import PointsTotalsData, UserRepository
from resto.domain.common.ids import UserId
from resto.domain.loyalty.points import PointsMovement
from resto.domain.user.entities import User, UserRole
from resto.infrastructure.db.models.user import UserModel
from resto.infrastructure.db.repositories.points_sql import points_update
from resto.infrastructure.db.session import get_engine


class SqlAlchemyUserRepository(UserRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get(self, user_id: UserId) -> User | None:
        with Session(self._engine) as session:
            model = session.get(UserModel, str(user_id))
        return _to_domain(model) if model is not None else None

    def find_by_email(self, email: str) -> User | None:
        statement = select(UserModel).where(func.lower(UserModel.email) == email.lower()).limit(1)
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
        return _to_domain(model) if model is not None else None

    def add(self, user: User) -> None:
        with Session(self._engine) as session:
            session.add(
                UserModel(
                    id=str(user.user_id),
                    email=user.email.lower(),
                    username=user.username,
                    role=user.role.value,
                    points=user.points,
                    created_at=user.created_at,
                )
            )
            session.commit()

    def apply_points(self, user_id: UserId, movement: PointsMovement) -> int | None:
        with Session(self._engine) as session:
            balance = session.execute(points_update(user_id, movement)).scalar_one_or_none()
            session.commit()
        return balance

    def set_points(self, user_id: UserId, points: int) -> int | None:
        statement = (
            update(UserModel)
            .where(UserModel.id == str(user_id))
            .values(points=max(0, points))
            .returning(UserModel.points)
        )
        with Session(self._engine) as session:
            balance = session.execute(statement).scalar_one_or_none()
            session.commit()
        return balance

    def top_by_points(self, limit: int) -> list[User]:
        statement = (
            select(UserModel)
            .where(UserModel.points > 0)
            .order_by(UserModel.points.desc(), UserModel.id)
            .limit(limit)
        )
        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
        return [_to_domain(model) for model in models]

    def points_totals(self) -> PointsTotalsData:
        statement = select(
            func.coalesce(func.sum(UserModel.points), 0),
            func.count(UserModel.id).filter(UserModel.points > 0),
        )
        with Session(self._engine) as session:
            total_points, users_with_points = session.execute(statement).one()
        return PointsTotalsData(
            total_points=int(total_points or 0),
            users_with_points=int(users_with_points or 0),
        )


def _to_domain(model: UserModel) -> User:
    created_at = model.created_at
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return User(
        user_id=UserId(model.id),
        email=model.email,
        username=model.username,
        role=UserRole(model.role),
        points=model.points,
        created_at=created_at,
    )
