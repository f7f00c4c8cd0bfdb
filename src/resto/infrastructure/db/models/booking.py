from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from resto.infrastructure.db.models.base import Base
from resto.infrastructure.db.models.table import TableModel
from resto.infrastructure.db.models.user import UserModel


class BookingModel(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    table_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("tables.id", ondelete="RESTRICT"),
        nullable=False,
    )
    booking_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    number_of_guests: Mapped[int] = mapped_column(Integer, nullable=False)
    special_requests: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    booking_status: Mapped[str] = mapped_column(String(20), nullable=False)
    operational_status: Mapped[str] = mapped_column(String(30), nullable=False)
    confirmation_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    table: Mapped[TableModel] = relationship()
    user: Mapped[UserModel] = relationship()

    __table_args__ = (
        Index("ix_bookings_table_status_date", "table_id", "booking_status", "booking_date"),
    )
