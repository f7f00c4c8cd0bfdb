from __future__ import annotations

import concurrent.futures
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from uuid import uuid4

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from resto.application.dto.requests import BookTableRequest
from resto.application.use_cases.book_table import BookingConflictError, BookTable
from resto.application.use_cases.context import Actor, TraceContext
from resto.domain.common.ids import TableId, UserId
from resto.domain.table.entities import Table
from resto.domain.user.entities import User, UserRole
from resto.infrastructure.db.repositories.audit_repo import SqlAlchemyAuditRepository
from resto.infrastructure.db.repositories.booking_repo import SqlAlchemyBookingRepository
from resto.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository
from resto.infrastructure.db.repositories.user_repo import SqlAlchemyUserRepository
from resto.infrastructure.messaging.redis_publisher import RedisEventPublisher


def _new_user() -> Actor:
    suffix = uuid4().hex[:10]
    SqlAlchemyUserRepository().add(
        User(
            user_id=UserId(f"usr_{suffix}"),
            email=f"{suffix}@example.com",
            username=f"guest_{suffix}",
            role=UserRole.CUSTOMER,
            points=0,
            created_at=datetime.now(timezone.utc),
        )
    )
    return Actor(user_id=UserId(f"usr_{suffix}"), role=UserRole.CUSTOMER)


def _new_table() -> Table:
    table = Table(
        table_id=TableId(f"tbl_{uuid4().hex[:10]}"),
        table_number=random.randint(1_000, 1_000_000),
        capacity=4,
        is_available=True,
    )
    SqlAlchemyTableRepository().add(table)
    return table


def _book(actor: Actor, table: Table, at: datetime) -> str:
    use_case = BookTable(
        table_repository=SqlAlchemyTableRepository(),
        booking_repository=SqlAlchemyBookingRepository(),
        user_repository=SqlAlchemyUserRepository(),
        audit_repository=SqlAlchemyAuditRepository(),
        publisher=RedisEventPublisher(),
    )
    try:
        response = use_case.execute(
            actor,
            BookTableRequest(tableId=str(table.table_id), bookingDate=at, numberOfGuests=2),
            TraceContext(trace_id=None, request_id=None),
        )
    except BookingConflictError:
        return "CONFLICT"
    return response.bookingStatus


def test_concurrent_bookings_for_same_window_admit_one() -> None:
    table = _new_table()
    first, second = _new_user(), _new_user()
    at = datetime(2030, 1, 1, 19, 0, tzinfo=timezone.utc)

    with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
        results = list(
            executor.map(
                lambda args: _book(*args),
                [(first, table, at), (second, table, at + timedelta(minutes=30))],
            )
        )

    assert sorted(results) == ["CONFLICT", "Confirmed"]
    assert _book(first, table, at + timedelta(hours=2, minutes=30)) == "Confirmed"
