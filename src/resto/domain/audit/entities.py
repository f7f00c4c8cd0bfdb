from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from resto.domain.common.ids import AuditEntryId, UserId


@dataclass(frozen=True)
class AuditEntry:
    entry_id: AuditEntryId
    actor_id: UserId | None
    action: str
    resource: str
    resource_id: str
    created_at: datetime
    meta: dict[str, Any] = field(default_factory=dict)
