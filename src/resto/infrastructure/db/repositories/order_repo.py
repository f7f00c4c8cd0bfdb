from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from sqlalchemy import Engine, Select, delete, func, select, update
from sqlalchemy.orm import Session, joinedload

from resto.application.ports.repositories import (
    InsufficientBalanceAtWriteError,
    LoyaltyTotalsData,
    OptimisticConcurrencyError,
    OrderRepository,
    RedemptionRowData,
)
from resto.domain.common.ids import MenuItemId, OrderId, OrderLineId, UserId
from resto.domain.common.money import Money
from resto.domain.loyalty.points import PointsMovement
from resto.domain.order.entities import Order, OrderLine, OrderLoyalty, OrderStatus
from resto.infrastructure.db.models.order import OrderLineModel, OrderModel
from resto.infrastructure.db.models.user import UserModel
from resto.infrastructure.db.repositories.points_sql import points_update
from resto.infrastructure.db.session import get_engine


class SqlAlchemyOrderRepository(OrderRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, order: Order) -> None:
        order_model = self._to_model(order)
        with Session(self._engine) as session:
            session.add(order_model)
            session.commit()

    def get(self, order_id: OrderId) -> Order | None:
        statement = self._orders_query().where(OrderModel.id == str(order_id)).limit(1)
        with Session(self._engine) as session:
            model = session.execute(statement).unique().scalar_one_or_none()

        if model is None:
            return None

        return self._to_domain(model)

    def update_with_version(self, order: Order, expected_version: int) -> Order:
        with Session(self._engine) as session:
            self._write_order(session, order, expected_version)
            session.commit()
        return replace(order, version=expected_version + 1)

    def update_with_points(
        self,
        order: Order,
        expected_version: int,
        movement: PointsMovement,
    ) -> tuple[Order, int]:
        with Session(self._engine) as session:
            self._write_order(session, order, expected_version)

            if movement.is_empty:
                balance = session.execute(
                    select(UserModel.points).where(UserModel.id == str(order.user_id))
                ).scalar_one_or_none()
            else:
                balance = session.execute(points_update(order.user_id, movement)).scalar_one_or_none()

            if balance is None:
                session.rollback()
                if movement.strict and self._user_exists(order.user_id):
                    raise InsufficientBalanceAtWriteError(
                        f"insufficient points to debit {movement.debit} from user {order.user_id}"
                    )
                raise LookupError(f"user {order.user_id} not found")
            session.commit()

        return replace(order, version=expected_version + 1), int(balance)

    def delete(self, order_id: OrderId) -> bool:
        with Session(self._engine) as session:
            result = session.execute(delete(OrderModel).where(OrderModel.id == str(order_id)))
            session.commit()
        return result.rowcount == 1

    def list_for_user(self, user_id: UserId, limit: int | None = None) -> list[Order]:
        statement = (
            self._orders_query()
            .where(OrderModel.user_id == str(user_id))
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        )
        if limit is not None:
            statement = statement.limit(limit)
        with Session(self._engine) as session:
            models = session.execute(statement).unique().scalars().all()
        return [self._to_domain(model) for model in models]

    def list_all(
        self,
        statuses: list[OrderStatus] | None,
        date_from: datetime | None,
        date_to: datetime | None,
        user_id: UserId | None,
    ) -> list[Order]:
        statement = self._orders_query()
        if statuses:
            statement = statement.where(OrderModel.status.in_([status.value for status in statuses]))
        if date_from is not None:
            statement = statement.where(OrderModel.created_at >= date_from)
        if date_to is not None:
            statement = statement.where(OrderModel.created_at <= date_to)
        if user_id is not None:
            statement = statement.where(OrderModel.user_id == str(user_id))
        statement = statement.order_by(OrderModel.created_at.desc(), OrderModel.id.desc())

        with Session(self._engine) as session:
            models = session.execute(statement).unique().scalars().all()
        return [self._to_domain(model) for model in models]

    def loyalty_totals(self) -> LoyaltyTotalsData:
        statement = select(
            func.coalesce(func.sum(OrderModel.points_earned), 0),
            func.coalesce(func.sum(OrderModel.redeemed_points), 0),
        )
        with Session(self._engine) as session:
            earned, redeemed = session.execute(statement).one()
        return LoyaltyTotalsData(total_earned=int(earned or 0), total_redeemed=int(redeemed or 0))

    def recent_redemptions(self, limit: int) -> list[RedemptionRowData]:
        statement = (
            select(OrderModel, UserModel.username, UserModel.email)
            .options(joinedload(OrderModel.lines))
            .join(UserModel, UserModel.id == OrderModel.user_id, isouter=True)
            .where(OrderModel.redeemed_points > 0)
            .order_by(OrderModel.updated_at.desc(), OrderModel.id.desc())
            .limit(limit)
        )
        with Session(self._engine) as session:
            rows = session.execute(statement).unique().all()
        return [
            RedemptionRowData(order=self._to_domain(model), username=username, email=email)
            for model, username, email in rows
        ]

    def _orders_query(self) -> Select:
        return select(OrderModel).options(joinedload(OrderModel.lines))

    def _user_exists(self, user_id: UserId) -> bool:
        with Session(self._engine) as session:
            return session.get(UserModel, str(user_id)) is not None

    def _write_order(self, session: Session, order: Order, expected_version: int) -> None:
        statement = (
            update(OrderModel)
            .where(
                OrderModel.id == str(order.order_id),
                OrderModel.version == expected_version,
            )
            .values(
                status=order.status.value,
                total_cents=order.total.amount_cents,
                points_credited=order.loyalty.points_credited,
                points_credited_at=order.loyalty.points_credited_at,
                redeemed_points=order.loyalty.redeemed_points,
                discount_applied_cents=order.loyalty.discount_applied_cents,
                updated_at=order.updated_at,
                version=OrderModel.version + 1,
            )
        )
        result = session.execute(statement)
        if result.rowcount != 1:
            session.rollback()
            raise OptimisticConcurrencyError(f"order {order.order_id} version conflict")

    def _to_model(self, order: Order) -> OrderModel:
        order_model = OrderModel(
            id=str(order.order_id),
            user_id=str(order.user_id),
            status=order.status.value,
            subtotal_cents=order.subtotal.amount_cents,
            total_cents=order.total.amount_cents,
            currency=order.total.currency,
            points_earned=order.loyalty.points_earned,
            points_credited=order.loyalty.points_credited,
            points_credited_at=order.loyalty.points_credited_at,
            redeemed_points=order.loyalty.redeemed_points,
            discount_applied_cents=order.loyalty.discount_applied_cents,
            version=order.version,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
        order_model.lines = [
            OrderLineModel(
                id=str(line.line_id),
                order_id=str(order.order_id),
                item_id=str(line.item_id),
                name=line.name,
                quantity=line.quantity,
                unit_price_cents=line.unit_price.amount_cents,
                currency=line.unit_price.currency,
                line_total_cents=line.line_total.amount_cents,
            )
            for line in order.lines
        ]
        return order_model

    def _to_domain(self, model: OrderModel) -> Order:
        lines = [
            OrderLine(
                line_id=OrderLineId(line.id),
                item_id=MenuItemId(line.item_id),
                name=line.name,
                quantity=line.quantity,
                unit_price=Money(amount_cents=line.unit_price_cents, currency=line.currency),
                line_total=Money(amount_cents=line.line_total_cents, currency=line.currency),
            )
            for line in model.lines
        ]
        return Order(
            order_id=OrderId(model.id),
            user_id=UserId(model.user_id),
            status=OrderStatus(model.status),
            lines=lines,
            subtotal=Money(amount_cents=model.subtotal_cents, currency=model.currency),
            total=Money(amount_cents=model.total_cents, currency=model.currency),
            loyalty=OrderLoyalty(
                points_earned=model.points_earned,
                points_credited=model.points_credited,
                points_credited_at=_aware(model.points_credited_at),
                redeemed_points=model.redeemed_points,
                discount_applied_cents=model.discount_applied_cents,
            ),
            created_at=_aware(model.created_at),
            updated_at=_aware(model.updated_at),
            version=model.version,
        )


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
