from __future__ import annotations

from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from resto.api.middleware.request_id import get_request_id
from resto.application.use_cases.book_table import (
    BookingConflictError,
    InvalidGuestCountError,
    TableNotAvailableError,
)
from resto.application.use_cases.booking_status import InvalidOperationalStatusError
from resto.application.use_cases.errors import (
    AlreadyRedeemedError,
    BookingNotFoundError,
    ConflictError,
    ForbiddenError,
    InsufficientBalanceError,
    InvalidInputError,
    InvalidStateError,
    MenuItemNotFoundError,
    NotFoundError,
    OrderConflictError,
    OrderNotFoundError,
    TableNotFoundError,
    UnavailableError,
    UserNotFoundError,
)
from resto.application.use_cases.find_available_tables import InvalidBookingDateError
from resto.application.use_cases.place_order import MenuItemUnavailableError
from resto.application.use_cases.table_admin import DuplicateTableError, TableInUseError
from resto.application.use_cases.update_order_status import InvalidOrderStatusError

_HTTP_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


def _error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
            },
            "requestId": get_request_id(),
        },
        headers=headers,
    )


def _exception_handler(status_code: int, code: str):
    async def handler(_: Request, exc: Exception) -> JSONResponse:
        details = getattr(exc, "details", None)
        return _error_response(
            status_code=status_code,
            code=code,
            message=str(exc),
            details=details if isinstance(details, dict) else None,
        )

    return handler


async def _http_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)
    message = str(http_exc.detail) if http_exc.detail else "request failed"
    return _error_response(
        status_code=http_exc.status_code,
        code=_HTTP_CODES.get(http_exc.status_code, "HTTP_ERROR"),
        message=message,
        headers=getattr(http_exc, "headers", None),
    )


async def _validation_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    validation_exc = cast(RequestValidationError, exc)
    return _error_response(
        status_code=400,
        code="INVALID_REQUEST",
        message="request validation failed",
        details={"errors": validation_exc.errors()},
    )


def register_exception_handlers(app: FastAPI) -> None:
    # Starlette resolves handlers along the MRO, so specific classes win over their bases.
    mappings: list[tuple[type[Exception], int, str]] = [
        (TableNotFoundError, 404, "TABLE_NOT_FOUND"),
        (BookingNotFoundError, 404, "BOOKING_NOT_FOUND"),
        (OrderNotFoundError, 404, "ORDER_NOT_FOUND"),
        (UserNotFoundError, 404, "USER_NOT_FOUND"),
        (MenuItemNotFoundError, 404, "MENU_ITEM_NOT_FOUND"),
        (NotFoundError, 404, "NOT_FOUND"),
        (InvalidBookingDateError, 400, "INVALID_BOOKING_DATE"),
        (InvalidGuestCountError, 400, "INVALID_GUEST_COUNT"),
        (InvalidOperationalStatusError, 400, "INVALID_OPERATIONAL_STATUS"),
        (InvalidOrderStatusError, 400, "INVALID_ORDER_STATUS"),
        (MenuItemUnavailableError, 400, "MENU_ITEM_UNAVAILABLE"),
        (InvalidInputError, 400, "INVALID_INPUT"),
        (ForbiddenError, 403, "FORBIDDEN"),
        (BookingConflictError, 409, "BOOKING_CONFLICT"),
        (DuplicateTableError, 409, "DUPLICATE_TABLE_NUMBER"),
        (TableInUseError, 409, "TABLE_HAS_BOOKINGS"),
        (OrderConflictError, 409, "CONFLICT"),
        (ConflictError, 409, "CONFLICT"),
        (InvalidStateError, 409, "INVALID_STATE"),
        (InsufficientBalanceError, 400, "INSUFFICIENT_BALANCE"),
        (AlreadyRedeemedError, 409, "ALREADY_REDEEMED"),
        (TableNotAvailableError, 400, "TABLE_UNAVAILABLE"),
        (UnavailableError, 400, "UNAVAILABLE"),
    ]

    for exc_cls, status_code, code in mappings:
        app.add_exception_handler(exc_cls, _exception_handler(status_code, code))

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
