from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Engine, Select, exists, select, update
from sqlalchemy.orm import Session, joinedload

from resto.application.ports.repositories import (
    BookingRepository,
    BookingRowData,
    BookingWindowTakenError,
)
from resto.domain.booking.entities import Booking, BookingStatus, OperationalStatus
from resto.domain.common.ids import BookingId, TableId, UserId
from resto.infrastructure.db.models.booking import BookingModel
from resto.infrastructure.db.models.table import TableModel
from resto.infrastructure.db.session import get_engine


def _confirmed_in_window(window_start: datetime, window_end: datetime):
    return (
        BookingModel.booking_status == BookingStatus.CONFIRMED.value,
        BookingModel.booking_date >= window_start,
        BookingModel.booking_date <= window_end,
    )


class SqlAlchemyBookingRepository(BookingRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get(self, booking_id: BookingId) -> BookingRowData | None:
        statement = self._rows_query().where(BookingModel.id == str(booking_id)).limit(1)
        with Session(self._engine) as session:
            model = session.execute(statement).unique().scalar_one_or_none()
            return _to_row(model) if model is not None else None

    def has_conflict(self, table_id: TableId, window_start: datetime, window_end: datetime) -> bool:
        statement = select(
            exists().where(
                BookingModel.table_id == str(table_id),
                *_confirmed_in_window(window_start, window_end),
            )
        )
        with Session(self._engine) as session:
            return bool(session.execute(statement).scalar())

    def booked_table_ids(self, window_start: datetime, window_end: datetime) -> set[TableId]:
        statement = (
            select(BookingModel.table_id)
            .where(*_confirmed_in_window(window_start, window_end))
            .distinct()
        )
        with Session(self._engine) as session:
            return {TableId(value) for value in session.execute(statement).scalars()}

    def add_if_available(
        self,
        booking: Booking,
        window_start: datetime,
        window_end: datetime,
    ) -> None:
        lock_table = select(TableModel.id).where(TableModel.id == str(booking.table_id)).with_for_update()
        conflict = select(
            exists().where(
                BookingModel.table_id == str(booking.table_id),
                *_confirmed_in_window(window_start, window_end),
            )
        )
        with Session(self._engine) as session:
            # Bookings for one table are serialized on the table row.
            session.execute(lock_table)
            if session.execute(conflict).scalar():
                session.rollback()
                raise BookingWindowTakenError(
                    "table is already booked within one hour of the requested time"
                )
            session.add(_to_model(booking))
            session.commit()

    def update(self, booking: Booking) -> None:
        statement = (
            update(BookingModel)
            .where(BookingModel.id == str(booking.booking_id))
            .values(
                booking_status=booking.status.value,
                operational_status=booking.operational_status.value,
                updated_at=booking.updated_at,
            )
        )
        with Session(self._engine) as session:
            session.execute(statement)
            session.commit()

    def list_for_user(self, user_id: UserId) -> list[BookingRowData]:
        statement = (
            self._rows_query()
            .where(BookingModel.user_id == str(user_id))
            .order_by(BookingModel.booking_date.desc())
        )
        with Session(self._engine) as session:
            models = session.execute(statement).unique().scalars().all()
            return [_to_row(model) for model in models]

    def list_all(
        self,
        status: BookingStatus | None,
        date_from: datetime | None,
        date_to: datetime | None,
    ) -> list[BookingRowData]:
        statement = self._rows_query()
        if status is not None:
            statement = statement.where(BookingModel.booking_status == status.value)
        if date_from is not None:
            statement = statement.where(BookingModel.booking_date >= date_from)
        if date_to is not None:
            statement = statement.where(BookingModel.booking_date <= date_to)
        statement = statement.order_by(BookingModel.booking_date.desc())

        with Session(self._engine) as session:
            models = session.execute(statement).unique().scalars().all()
            return [_to_row(model) for model in models]

    def _rows_query(self) -> Select:
        return select(BookingModel).options(
            joinedload(BookingModel.table),
            joinedload(BookingModel.user),
        )


def _aware(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def _to_model(booking: Booking) -> BookingModel:
    return BookingModel(
        id=str(booking.booking_id),
        user_id=str(booking.user_id),
        table_id=str(booking.table_id),
        booking_date=booking.booking_date,
        number_of_guests=booking.number_of_guests,
        special_requests=booking.special_requests,
        booking_status=booking.status.value,
        operational_status=booking.operational_status.value,
        confirmation_email=booking.confirmation_email,
        created_at=booking.created_at,
        updated_at=booking.updated_at,
    )


def _to_row(model: BookingModel) -> BookingRowData:
    booking = Booking(
        booking_id=BookingId(model.id),
        user_id=UserId(model.user_id),
        table_id=TableId(model.table_id),
        booking_date=_aware(model.booking_date),
        number_of_guests=model.number_of_guests,
        special_requests=model.special_requests,
        status=BookingStatus(model.booking_status),
        operational_status=OperationalStatus(model.operational_status),
        confirmation_email=model.confirmation_email,
        created_at=_aware(model.created_at),
        updated_at=_aware(model.updated_at),
    )
    return BookingRowData(
        booking=booking,
        table_number=model.table.table_number if model.table is not None else None,
        table_capacity=model.table.capacity if model.table is not None else None,
        username=model.user.username if model.user is not None else None,
        email=model.user.email if model.user is not None else None,
    )
