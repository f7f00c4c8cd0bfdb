from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from resto.application.metrics.lifecycle import record_event_publish_failure
from resto.application.ports.publisher import EventPublisher
from resto.application.ports.repositories import AuditRepository
from resto.domain.audit.entities import AuditEntry
from resto.domain.common.ids import AuditEntryId, UserId

logger = logging.getLogger(__name__)


def publish_event(publisher: EventPublisher, *, channel: str, message: str) -> None:
    """Publish without letting a broker outage fail the state change that already happened."""
    try:
        publisher.publish(channel=channel, message=message)
    except Exception:
        record_event_publish_failure(channel=channel)
        logger.exception("event_publish_failed", extra={"channel": channel})


def record_audit(
    audit_repository: AuditRepository,
    *,
    actor_id: UserId | None,
    action: str,
    resource: str,
    resource_id: str,
    meta: dict[str, Any] | None = None,
) -> None:
    entry = AuditEntry(
        entry_id=AuditEntryId(f"aud_{uuid4().hex[:12]}"),
        actor_id=actor_id,
        action=action,
        resource=resource,
        resource_id=resource_id,
        created_at=datetime.now(timezone.utc),
        meta=meta or {},
    )
    try:
        audit_repository.add(entry)
    except Exception:
        logger.exception("audit_write_failed", extra={"action": action, "resource_id": resource_id})
