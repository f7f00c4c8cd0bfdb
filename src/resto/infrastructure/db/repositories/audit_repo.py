from __future__ import annotations

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from resto.application.ports.repositories import AuditRepository
from resto.domain.audit.entities import AuditEntry
from resto.infrastructure.db.models.audit import AuditLogModel
from resto.infrastructure.db.session import get_engine


class SqlAlchemyAuditRepository(AuditRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, entry: AuditEntry) -> None:
        with Session(self._engine) as session:
            session.add(
                AuditLogModel(
                    id=str(entry.entry_id),
                    actor_id=str(entry.actor_id) if entry.actor_id is not None else None,
                    action=entry.action,
                    resource=entry.resource,
                    resource_id=entry.resource_id,
                    meta=dict(entry.meta),
                    created_at=entry.created_at,
                )
            )
            session.commit()
