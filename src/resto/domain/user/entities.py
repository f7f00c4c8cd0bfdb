from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from resto.domain.common.ids import UserId


class UserRole(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


@dataclass(frozen=True)
class User:
    user_id: UserId
    email: str
    username: str
    role: UserRole
    points: int
    created_at: datetime

    def __post_init__(self) -> None:
        if self.points < 0:
            raise ValueError("points must be >= 0")
        if "@" not in self.email:
            raise ValueError("email must contain '@'")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def display_name(self) -> str:
        return self.username or self.email

    def with_points(self, points: int) -> User:
        return replace(self, points=max(0, points))
