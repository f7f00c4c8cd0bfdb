from __future__ import annotations

from sqlalchemy import Boolean, CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from resto.infrastructure.db.models.base import Base


class TableModel(Base):
    __tablename__ = "tables"
    __table_args__ = (CheckConstraint("capacity > 0", name="ck_tables_capacity_positive"),)

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    table_number: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
