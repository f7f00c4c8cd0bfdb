"""Error taxonomy shared by the use cases.

The API layer maps each concrete class to an HTTP status and a stable code.
"""

from __future__ import annotations


class NotFoundError(Exception):
    pass


class InvalidInputError(Exception):
    pass


class ForbiddenError(Exception):
    pass


class ConflictError(Exception):
    pass


class InvalidStateError(Exception):
    pass


class UserNotFoundError(NotFoundError):
    pass


class TableNotFoundError(NotFoundError):
    pass


class BookingNotFoundError(NotFoundError):
    pass


class OrderNotFoundError(NotFoundError):
    pass


class MenuItemNotFoundError(NotFoundError):
    pass


class NotResourceOwnerError(ForbiddenError):
    pass


class OrderConflictError(ConflictError):
    pass


class UnavailableError(Exception):
    pass


class InsufficientBalanceError(Exception):
    pass


class AlreadyRedeemedError(Exception):
    pass
