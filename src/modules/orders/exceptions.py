"""Order workflow exceptions.

Raised by the workflow engine and the Service Layer.  Each one carries an
``ErrorKind``; the project-wide DRF exception handler turns them into
HTTP responses, so views never catch them.
"""

from __future__ import annotations

from typing import Optional

from modules.core.exceptions import (
    Conflict,
    DomainError,
    ErrorKind,
    Forbidden,
    NotFound,
    Unauthenticated,
)
from modules.orders.constants import PrerequisiteReason

PREREQUISITE_MESSAGES = {
    PrerequisiteReason.NO_CALL_AGENT_ASSIGNED: "A call agent must be assigned to the order first.",
    PrerequisiteReason.CALL_AGENT_INVALID: "The assignee is not a call agent.",
    PrerequisiteReason.CALL_AGENT_INACTIVE: "The call agent is not active.",
    PrerequisiteReason.NO_CONFIRMED_CALL_ATTEMPT: "The order has no confirmed call attempt.",
    PrerequisiteReason.NO_DELIVERY_AGENT_SELECTED: "A delivery agent must be selected first.",
    PrerequisiteReason.DELIVERY_AGENT_INACTIVE: "The delivery agent is not active.",
    PrerequisiteReason.NO_DELIVERY_AGENT_ASSIGNED: "A delivery agent must be assigned first.",
    PrerequisiteReason.OVERRIDE_FLAG_OR_REASON_MISSING: (
        "Assigning a different delivery agent than the selected one requires "
        "the override flag and a reason."
    ),
}


class InvalidTransition(DomainError):
    """The requested status is not an edge of the current status."""

    kind = ErrorKind.INVALID_TRANSITION
    default_message = "This status transition is not allowed."


class PrerequisiteNotMet(DomainError):
    """The edge exists but a named business fact is missing."""

    kind = ErrorKind.PREREQUISITE_NOT_MET

    def __init__(self, reason: PrerequisiteReason, message: Optional[str] = None):
        super().__init__(message or PREREQUISITE_MESSAGES[reason], reason=reason)


class OrderCannotAdvance(DomainError):
    """Fast-forward was requested on a status with no canonical successor."""

    kind = ErrorKind.ORDER_CANNOT_ADVANCE
    default_message = "The order cannot be advanced any further."


class OrderNotFound(NotFound):
    """The requested order does not exist or has been soft-deleted."""

    default_message = "Order not found."


class CustomerNotFound(NotFound):
    """The customer referenced by the order does not exist."""

    default_message = "Customer not found."


class OrderNotDeletable(Conflict):
    """Only PENDING or CANCELLED orders can be deleted."""

    default_message = "Only pending or cancelled orders can be deleted."


__all__ = [
    "CustomerNotFound",
    "DomainError",
    "Forbidden",
    "InvalidTransition",
    "NotFound",
    "OrderCannotAdvance",
    "OrderNotDeletable",
    "OrderNotFound",
    "PrerequisiteNotMet",
    "Unauthenticated",
]
