from __future__ import annotations
import logging
from functools import wraps
from typing import Any, Callable, List, Optional

from sqlalchemy.exc import InterfaceError, OperationalError, TimeoutError as PoolTimeoutError

from extensions import db

log = logging.getLogger(__name__)


class BookingError(Exception):
    """Base class for errors surfaced to API callers."""
    code = "booking_error"
    http_status = 400

    def __init__(self, message: str, *, code: str | None = None, field: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.field = field

    def to_dict(self) -> dict:
        body: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.field:
            body["field"] = self.field
        return body


class ValidationError(BookingError):
    """Missing or malformed input. Raised before any write."""
    code = "validation_error"
    http_status = 422

    def __init__(self, message: str, *, field: str | None = None,
                 detail: Optional[List[dict]] = None):
        super().__init__(message, field=field)
        self.detail = detail or ([{"field": field, "msg": message}] if field else [])

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["detail"] = self.detail
        return body


class ConflictError(BookingError):
    """The slot was claimed (or vanished) between listing and commit."""
    code = "slot_unavailable"
    http_status = 409


class NotFoundError(BookingError):
    code = "not_found"
    http_status = 404


class UnavailableError(BookingError):
    """Storage or transport failure; nothing was committed, safe to retry."""
    code = "unavailable"
    http_status = 503


STORAGE_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError)


def storage_guard(fn: Callable) -> Callable:
    """Roll back and translate low-level storage failures into UnavailableError."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except STORAGE_ERRORS as ex:
            log.exception("storage failure in %s", fn.__name__)
            db.session.rollback()
            raise UnavailableError("Serviço temporariamente indisponível. Tente novamente.") from ex
    return wrapper
