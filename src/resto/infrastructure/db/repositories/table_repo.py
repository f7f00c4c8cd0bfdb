from __future__ import annotations

from sqlalchemy import Engine, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from resto.application.ports.repositories import (
    DuplicateTableNumberError,
    TableHasBookingsError,
    TableRepository,
)
from resto.domain.common.ids import TableId
from resto.domain.table.entities import Table
from resto.infrastructure.db.models.table import TableModel
from resto.infrastructure.db.session import get_engine


class SqlAlchemyTableRepository(TableRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get(self, table_id: TableId) -> Table | None:
        with Session(self._engine) as session:
            model = session.get(TableModel, str(table_id))
        return _to_domain(model) if model is not None else None

    def list_all(self) -> list[Table]:
        statement = select(TableModel).order_by(TableModel.table_number)
        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
        return [_to_domain(model) for model in models]

    def list_available(self) -> list[Table]:
        statement = (
            select(TableModel)
            .where(TableModel.is_available.is_(True))
            .order_by(TableModel.table_number)
        )
        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
        return [_to_domain(model) for model in models]

    def add(self, table: Table) -> None:
        with Session(self._engine) as session:
            session.add(
                TableModel(
                    id=str(table.table_id),
                    table_number=table.table_number,
                    capacity=table.capacity,
                    is_available=table.is_available,
                )
            )
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateTableNumberError(
                    f"table number {table.table_number} already exists"
                ) from exc

    def update(self, table: Table) -> None:
        statement = (
            update(TableModel)
            .where(TableModel.id == str(table.table_id))
            .values(capacity=table.capacity, is_available=table.is_available)
        )
        with Session(self._engine) as session:
            session.execute(statement)
            session.commit()

    def delete(self, table_id: TableId) -> bool:
        with Session(self._engine) as session:
            try:
                result = session.execute(delete(TableModel).where(TableModel.id == str(table_id)))
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                # bookings.table_id is ON DELETE RESTRICT.
                raise TableHasBookingsError(f"table {table_id} still has bookings") from exc
        return result.rowcount == 1


def _to_domain(model: TableModel) -> Table:
    return Table(
        table_id=TableId(model.id),
        table_number=model.table_number,
        capacity=model.capacity,
        is_available=model.is_available,
    )
