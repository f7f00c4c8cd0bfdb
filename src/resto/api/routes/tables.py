from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from resto.api.auth import require_admin
from resto.application.dto.requests import CreateTableRequest, UpdateTableRequest
from resto.application.dto.responses import DeletedResponse, TableResponse
from resto.application.use_cases.context import Actor
from resto.application.use_cases.find_available_tables import FindAvailableTables
from resto.application.use_cases.table_admin import (
    CreateTable,
    DeleteTable,
    ListAllTables,
    UpdateTable,
)
from resto.domain.common.ids import TableId
from resto.infrastructure.db.repositories.audit_repo import SqlAlchemyAuditRepository
from resto.infrastructure.db.repositories.booking_repo import SqlAlchemyBookingRepository
from resto.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository

router = APIRouter()


def _find_available_tables_use_case() -> FindAvailableTables:
    return FindAvailableTables(
        table_repository=SqlAlchemyTableRepository(),
        booking_repository=SqlAlchemyBookingRepository(),
    )


def _list_tables_use_case() -> ListAllTables:
    return ListAllTables(table_repository=SqlAlchemyTableRepository())


def _create_table_use_case() -> CreateTable:
    return CreateTable(
        table_repository=SqlAlchemyTableRepository(),
        audit_repository=SqlAlchemyAuditRepository(),
    )


def _update_table_use_case() -> UpdateTable:
    return UpdateTable(
        table_repository=SqlAlchemyTableRepository(),
        audit_repository=SqlAlchemyAuditRepository(),
    )


def _delete_table_use_case() -> DeleteTable:
    return DeleteTable(
        table_repository=SqlAlchemyTableRepository(),
        audit_repository=SqlAlchemyAuditRepository(),
    )


@router.get("/v1/tables/available", response_model=list[TableResponse])
def available_tables(
    booking_date: str | None = Query(default=None, alias="bookingDate"),
) -> list[TableResponse]:
    return _find_available_tables_use_case().execute(booking_date)


@router.get("/v1/tables", response_model=list[TableResponse])
def list_tables(_: Actor = Depends(require_admin)) -> list[TableResponse]:
    return _list_tables_use_case().execute()


@router.post("/v1/tables", response_model=TableResponse, status_code=status.HTTP_201_CREATED)
def create_table(
    request_dto: CreateTableRequest,
    actor: Actor = Depends(require_admin),
) -> TableResponse:
    return _create_table_use_case().execute(actor, request_dto)


@router.put("/v1/tables/{table_id}", response_model=TableResponse)
def update_table(
    table_id: str,
    request_dto: UpdateTableRequest,
    actor: Actor = Depends(require_admin),
) -> TableResponse:
    return _update_table_use_case().execute(actor, TableId(table_id), request_dto)


@router.delete("/v1/tables/{table_id}", response_model=DeletedResponse)
def delete_table(table_id: str, actor: Actor = Depends(require_admin)) -> DeletedResponse:
    return _delete_table_use_case().execute(actor, TableId(table_id))
