# surplus/common/errors.py
from __future__ import annotations

from typing import Dict, Optional, Type

from fastapi import HTTPException, status


# -----------------------------------------------------
# Domain Errors
# -----------------------------------------------------
class DomainError(Exception):
    """Base class for every business-rule failure raised by the services."""

    code = "DOMAIN_ERROR"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidRequest(DomainError):
    code = "INVALID_REQUEST"


class NotFound(DomainError):
    code = "NOT_FOUND"


class InsufficientStock(DomainError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, item_id: int, requested: int, available: Optional[int] = None) -> None:
        self.item_id = item_id
        self.requested = requested
        self.available = available
        msg = f"item {item_id}: requested {requested}"
        if available is not None:
            msg += f", only {available} left"
        super().__init__(msg)


class WindowExpired(DomainError):
    code = "WINDOW_EXPIRED"


class StoreUnavailable(DomainError):
    code = "STORE_UNAVAILABLE"


class InvalidTransition(DomainError):
    code = "INVALID_TRANSITION"


class Unauthorized(DomainError):
    code = "UNAUTHORIZED"


class Conflict(DomainError):
    """Concurrent modification detected. The only error a caller should retry."""

    code = "CONFLICT"


_HTTP_STATUS: Dict[Type[DomainError], int] = {
    InvalidRequest: 422,
    NotFound: status.HTTP_404_NOT_FOUND,
    InsufficientStock: status.HTTP_409_CONFLICT,
    WindowExpired: status.HTTP_409_CONFLICT,
    StoreUnavailable: status.HTTP_409_CONFLICT,
    InvalidTransition: status.HTTP_409_CONFLICT,
    Unauthorized: status.HTTP_403_FORBIDDEN,
    Conflict: status.HTTP_409_CONFLICT,
}


def to_http_exception(exc: DomainError) -> HTTPException:
    """Translate a domain error into the HTTP response the routers return."""
    status_code = _HTTP_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    headers = {"Retry-After": "0"} if isinstance(exc, Conflict) else None
    return HTTPException(
        status_code=status_code,
        detail={"code": exc.code, "message": exc.message},
        headers=headers,
    )
