from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status

from resto.infrastructure.cache.redis_client import ping_redis
from resto.infrastructure.db.session import ping_database

logger = logging.getLogger(__name__)

router = APIRouter()

READY_TIMEOUT_SECONDS = 1.0


@router.get("/health/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
def ready(response: Response) -> dict[str, object]:
    """Ready only when both Postgres (bookings, ledger) and Redis (menu cache, events) answer."""
    checks = {
        "postgres": ping_database(timeout_seconds=READY_TIMEOUT_SECONDS),
        "redis": ping_redis(timeout_seconds=READY_TIMEOUT_SECONDS),
    }
    if all(checks.values()):
        return {"status": "ok"}

    failing = sorted(name for name, healthy in checks.items() if not healthy)
    logger.warning("readiness_check_failed", extra={"reason": ",".join(failing)})
    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"status": "unavailable", "checks": checks}
