from __future__ import annotations

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from resto.api.error_handling import register_exception_handlers
from resto.api.middleware.request_id import RequestIDMiddleware
from resto.api.routes.bookings import router as bookings_router
from resto.api.routes.health import router as health_router
from resto.api.routes.loyalty import router as loyalty_router
from resto.api.routes.menu import router as menu_router
from resto.api.routes.metrics import router as metrics_router
from resto.api.routes.orders import router as orders_router
from resto.api.routes.tables import router as tables_router
from resto.application.notifications.dispatcher import NotificationDispatcher
from resto.config import get_settings
from resto.infrastructure.mail.smtp_mailer import SmtpMailer
from resto.infrastructure.messaging.redis_event_listener import run_notification_listener
from resto.infrastructure.observability.logging_config import configure_logging
from resto.infrastructure.observability.otel import configure_otel

logger = logging.getLogger("resto.api.access")

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)


def _cors_allow_origins() -> list[str]:
    env = os.getenv("APP_ENV", "dev").lower()

    if env in {"dev", "test"}:
        return ["*"]

    raw_value = os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:5173")
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


def _route_path(request: Request) -> str:
    # Label by route template so ids in the URL do not explode metric cardinality.
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        method = request.method
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - started) * 1000
            path = _route_path(request)
            REQUEST_COUNT.labels(method=method, path=path, status_code="500").inc()
            REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000)
            logger.exception(
                "request_error",
                extra={
                    "method": method,
                    "path": request.url.path,
                    "status_code": 500,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            raise

        duration_ms = (time.perf_counter() - started) * 1000
        path = _route_path(request)
        REQUEST_COUNT.labels(method=method, path=path, status_code=str(response.status_code)).inc()
        REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000)
        logger.info(
            "request_complete",
            extra={
                "method": method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    listener_task: asyncio.Task | None = None
    if settings.notifier_enabled and settings.smtp.is_configured:
        dispatcher = NotificationDispatcher(
            mailer=SmtpMailer(settings.smtp),
            admin_email=settings.admin_email,
        )
        listener_task = asyncio.create_task(run_notification_listener(dispatcher))
    elif settings.notifier_enabled:
        logging.getLogger(__name__).warning(
            "notification_listener_not_started", extra={"reason": "SMTP_HOST missing"}
        )
    app.state.notification_listener_task = listener_task
    try:
        yield
    finally:
        if listener_task is not None:
            listener_task.cancel()
            with suppress(asyncio.CancelledError):
                await listener_task


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="Resto Backend", version="0.1.0", lifespan=lifespan)
    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(menu_router)
    app.include_router(tables_router)
    app.include_router(bookings_router)
    app.include_router(orders_router)
    app.include_router(loyalty_router)

    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id"],
    )

    configure_otel(app)
    return app


app = create_app()
