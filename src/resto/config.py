"""Runtime settings read from the environment.

Infrastructure endpoints (``DATABASE_URL``, ``REDIS_URL``, OTel) are read where
they are used; this module holds the settings the use cases and the notifier
depend on.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import lru_cache

from resto.domain.loyalty.points import LoyaltyPolicy

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_decimal(name: str, default: str) -> Decimal:
    raw = os.getenv(name, default)
    try:
        value = Decimal(raw)
    except InvalidOperation as exc:
        raise RuntimeError(f"{name} must be numeric, got {raw!r}") from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be > 0")
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class SmtpSettings:
    host: str | None
    port: int
    username: str | None
    password: str | None
    sender: str
    starttls: bool

    @property
    def is_configured(self) -> bool:
        return bool(self.host)


@dataclass(frozen=True)
class Settings:
    currency: str
    loyalty: LoyaltyPolicy
    allow_cancel_after_delivery: bool
    admin_email: str | None
    jwt_secret: str
    jwt_algorithm: str
    menu_cache_ttl_seconds: int
    notifier_enabled: bool
    smtp: SmtpSettings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        currency=os.getenv("CURRENCY", "INR").upper(),
        loyalty=LoyaltyPolicy(
            points_per_amount=_env_decimal("POINTS_PER_AMOUNT", "1"),
            point_value=_env_decimal("POINT_VALUE", "1"),
        ),
        allow_cancel_after_delivery=_env_bool("ALLOW_CANCEL_AFTER_DELIVERY", True),
        admin_email=os.getenv("ADMIN_EMAIL") or None,
        jwt_secret=os.getenv("JWT_SECRET", "dev_jwt_secret"),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        menu_cache_ttl_seconds=_env_int("MENU_CACHE_TTL_SECONDS", 300),
        notifier_enabled=_env_bool("NOTIFIER_ENABLED", True),
        smtp=SmtpSettings(
            host=os.getenv("SMTP_HOST") or None,
            port=_env_int("SMTP_PORT", 587),
            username=os.getenv("SMTP_USER") or None,
            password=os.getenv("SMTP_PASSWORD") or None,
            sender=os.getenv("SMTP_FROM", "no-reply@localhost"),
            starttls=_env_bool("SMTP_STARTTLS", True),
        ),
    )
