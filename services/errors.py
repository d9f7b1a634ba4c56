"""Typed failures raised by the service layer.

Every service function surfaces exactly one of these on failure; raw
SQLAlchemy exceptions never leave the service layer. Each failure also
derives from the builtin exception callers would naturally catch
(``LookupError``, ``PermissionError``, ``ValueError``).
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for service failures."""

    code = "INTERNAL_ERROR"
    http_status = 500

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, str]:
        """Return the error payload used in API responses."""

        return {"code": self.code, "message": self.message}


class NotFoundError(ServiceError, LookupError):
    """A resource, or a parent required by the operation, does not exist."""

    http_status = 404

    def __init__(self, kind: str, resource_id: object, *, code: str | None = None):
        self.kind = kind
        self.resource_id = resource_id
        super().__init__(
            f"{kind.capitalize()} with id {resource_id} not found",
            code=code or f"{kind.upper()}_NOT_FOUND",
        )


class ForbiddenError(ServiceError, PermissionError):
    """The actor lacks the ownership or role the operation requires."""

    http_status = 403

    def __init__(self, reason: str, *, code: str | None = None):
        self.reason = reason
        super().__init__(reason, code=code or "FORBIDDEN")


class ConflictError(ServiceError, ValueError):
    """A uniqueness rule or a relationship attachment would be violated."""

    http_status = 409

    def __init__(self, kind: str, key: object, message: str | None = None, *, code: str | None = None):
        self.kind = kind
        self.key = key
        super().__init__(
            message or f"{kind.capitalize()} '{key}' already exists",
            code=code or f"{kind.upper()}_ALREADY_EXISTS",
        )


class ValidationError(ServiceError, ValueError):
    """Input breaks a business rule that field validation cannot express."""

    http_status = 400

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message, code=code or "VALIDATION_ERROR")


class InternalError(ServiceError):
    """Storage failure that was not anticipated by the business rules."""

    def __init__(self, message: str = "An internal error occurred. Please try again."):
        super().__init__(message, code="INTERNAL_ERROR")


def check_update_fields(kind: str, fields, allowed) -> None:
    """Raise :class:`ValidationError` when ``fields`` names a column outside ``allowed``."""
    unknown = set(fields) - set(allowed)
    if unknown:
        raise ValidationError(f"{kind.capitalize()} fields cannot be updated: {', '.join(sorted(unknown))}")


@contextmanager
def storage_errors(
    action: str,
    *,
    on_conflict: Callable[[], ConflictError] | None = None,
) -> Iterator[None]:
    """Translate SQLAlchemy failures raised inside the block.

    ``IntegrityError`` becomes the conflict built by ``on_conflict`` when one
    is supplied (the unique constraint is the final arbiter for racing
    writers); every other ``SQLAlchemyError`` is logged and re-raised as
    :class:`InternalError`.
    """
    try:
        yield
    except ServiceError:
        raise
    except IntegrityError as exc:
        if on_conflict is not None:
            logger.info("Unique constraint rejected %s: %s", action, exc.orig)
            raise on_conflict() from exc
        logger.exception("Integrity error while attempting to %s", action)
        raise InternalError() from exc
    except SQLAlchemyError as exc:
        logger.exception("Storage error while attempting to %s", action)
        raise InternalError() from exc


__all__ = [
    "ConflictError",
    "ForbiddenError",
    "InternalError",
    "NotFoundError",
    "ServiceError",
    "ValidationError",
    "check_update_fields",
    "storage_errors",
]
