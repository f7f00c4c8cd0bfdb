from __future__ import annotations

from dataclasses import dataclass

from resto.domain.common.ids import UserId
from resto.domain.user.entities import UserRole


@dataclass(frozen=True)
class TraceContext:
    trace_id: str | None
    request_id: str | None


@dataclass(frozen=True)
class Actor:
    user_id: UserId
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def can_access(self, owner_id: UserId) -> bool:
        return self.is_admin or str(self.user_id) == str(owner_id)
