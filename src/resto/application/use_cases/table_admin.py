from __future__ import annotations

from uuid import uuid4

from resto.application.dto.requests import CreateTableRequest, UpdateTableRequest
from resto.application.dto.responses import DeletedResponse, TableResponse
from resto.application.mappers.table_mapper import to_table_response
from resto.application.ports.repositories import (
    AuditRepository,
    DuplicateTableNumberError,
    TableHasBookingsError,
    TableRepository,
)
from resto.application.use_cases.context import Actor
from resto.application.use_cases.errors import (
    ConflictError,
    InvalidInputError,
    TableNotFoundError,
)
from resto.application.use_cases.side_effects import record_audit
from resto.domain.common.ids import TableId
from resto.domain.table.entities import Table


class DuplicateTableError(ConflictError):
    pass


class InvalidTableError(InvalidInputError):
    pass


class TableInUseError(ConflictError):
    pass


class ListAllTables:
    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(self) -> list[TableResponse]:
        tables = sorted(self._table_repository.list_all(), key=lambda t: t.table_number)
        return [to_table_response(table) for table in tables]


class CreateTable:
    def __init__(self, table_repository: TableRepository, audit_repository: AuditRepository) -> None:
        self._table_repository = table_repository
        self._audit_repository = audit_repository

    def execute(self, actor: Actor, request_dto: CreateTableRequest) -> TableResponse:
        try:
            table = Table(
                table_id=TableId(f"tbl_{uuid4().hex[:12]}"),
                table_number=request_dto.table_number,
                capacity=request_dto.capacity,
                is_available=True,
            )
        except ValueError as exc:
            raise InvalidTableError(str(exc)) from exc

        try:
            self._table_repository.add(table)
        except DuplicateTableNumberError as exc:
            raise DuplicateTableError(
                f"table number {request_dto.table_number} already exists"
            ) from exc

        record_audit(
            self._audit_repository,
            actor_id=actor.user_id,
            action="table_created",
            resource="table",
            resource_id=str(table.table_id),
            meta={"tableNumber": table.table_number, "capacity": table.capacity},
        )
        return to_table_response(table)


class UpdateTable:
    def __init__(self, table_repository: TableRepository, audit_repository: AuditRepository) -> None:
        self._table_repository = table_repository
        self._audit_repository = audit_repository

    def execute(
        self,
        actor: Actor,
        table_id: TableId,
        request_dto: UpdateTableRequest,
    ) -> TableResponse:
        table = self._table_repository.get(table_id)
        if table is None:
            raise TableNotFoundError(f"table not found for table_id={table_id}")

        try:
            updated = table.with_changes(
                capacity=request_dto.capacity,
                is_available=request_dto.is_available,
            )
        except ValueError as exc:
            raise InvalidTableError(str(exc)) from exc

        self._table_repository.update(updated)
        record_audit(
            self._audit_repository,
            actor_id=actor.user_id,
            action="table_updated",
            resource="table",
            resource_id=str(table_id),
            meta=request_dto.model_dump(by_alias=True, exclude_none=True),
        )
        return to_table_response(updated)


class DeleteTable:
    def __init__(self, table_repository: TableRepository, audit_repository: AuditRepository) -> None:
        self._table_repository = table_repository
        self._audit_repository = audit_repository

    def execute(self, actor: Actor, table_id: TableId) -> DeletedResponse:
        try:
            deleted = self._table_repository.delete(table_id)
        except TableHasBookingsError as exc:
            raise TableInUseError(
                f"table {table_id} has bookings; mark it unavailable instead"
            ) from exc
        if not deleted:
            raise TableNotFoundError(f"table not found for table_id={table_id}")

        record_audit(
            self._audit_repository,
            actor_id=actor.user_id,
            action="table_deleted",
            resource="table",
            resource_id=str(table_id),
        )
        return DeletedResponse(id=str(table_id))
