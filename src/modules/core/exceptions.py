"""Domain error taxonomy.

Services and the workflow engine raise ``DomainError`` subclasses; nothing
below the API layer knows about HTTP.  ``HTTP_STATUS_BY_KIND`` is consumed
by ``modules.core.exception_handler``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    PREREQUISITE_NOT_MET = "PREREQUISITE_NOT_MET"
    NOT_FOUND = "NOT_FOUND"
    ORDER_CANNOT_ADVANCE = "ORDER_CANNOT_ADVANCE"
    CONFLICT = "CONFLICT"


HTTP_STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.INVALID_TRANSITION: 400,
    ErrorKind.PREREQUISITE_NOT_MET: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.ORDER_CANNOT_ADVANCE: 400,
    ErrorKind.CONFLICT: 409,
}


class DomainError(Exception):
    """Base class for expected business-rule rejections.

    Carries a ``kind`` from the taxonomy, a human readable ``message`` and,
    where the kind has sub-cases, a machine readable ``reason``.
    """

    kind: ErrorKind = ErrorKind.CONFLICT
    default_message = "The request violates a business rule."

    def __init__(self, message: Optional[str] = None, *, reason: Optional[Enum] = None):
        self.message = message or self.default_message
        self.reason = reason
        super().__init__(self.message)

    @property
    def http_status(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "reason": self.reason.value if self.reason is not None else None,
        }


class Unauthenticated(DomainError):
    """No acting principal could be resolved for the request."""

    kind = ErrorKind.UNAUTHENTICATED
    default_message = "Authentication credentials were not provided."


class Forbidden(DomainError):
    """The actor's role does not permit the requested operation."""

    kind = ErrorKind.FORBIDDEN
    default_message = "You do not have permission to perform this operation."


class NotFound(DomainError):
    """A referenced entity id does not resolve."""

    kind = ErrorKind.NOT_FOUND
    default_message = "Not found."


class Conflict(DomainError):
    """The request clashes with the current state of a resource."""

    kind = ErrorKind.CONFLICT
    default_message = "The request conflicts with the current state."
