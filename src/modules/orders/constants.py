"""Order domain constants.

Status and outcome enumerations are closed ``TextChoices``: a value that
is not a member cannot be constructed, so the workflow never sees a
free-form status string.
"""

from enum import Enum

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    CALL_ASSIGNED = "CALL_ASSIGNED", "Call assigned"
    CALL_CONFIRMED = "CALL_CONFIRMED", "Call confirmed"
    PACKED = "PACKED", "Packed"
    DELIVERY_AGENT_SELECTED = "DELIVERY_AGENT_SELECTED", "Delivery agent selected"
    DELIVERY_ASSIGNED = "DELIVERY_ASSIGNED", "Delivery assigned"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY", "Out for delivery"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"
    RETURNED = "RETURNED", "Returned"


class CallOutcome(models.TextChoices):
    CONFIRMED = "CONFIRMED", "Confirmed"
    CUSTOMER_CANCELLED = "CUSTOMER_CANCELLED", "Customer cancelled"
    UNREACHABLE = "UNREACHABLE", "Unreachable"
    WRONG_NUMBER = "WRONG_NUMBER", "Wrong number"


class PrerequisiteReason(str, Enum):
    NO_CALL_AGENT_ASSIGNED = "NO_CALL_AGENT_ASSIGNED"
    CALL_AGENT_INVALID = "CALL_AGENT_INVALID"
    CALL_AGENT_INACTIVE = "CALL_AGENT_INACTIVE"
    NO_CONFIRMED_CALL_ATTEMPT = "NO_CONFIRMED_CALL_ATTEMPT"
    NO_DELIVERY_AGENT_SELECTED = "NO_DELIVERY_AGENT_SELECTED"
    DELIVERY_AGENT_INACTIVE = "DELIVERY_AGENT_INACTIVE"
    NO_DELIVERY_AGENT_ASSIGNED = "NO_DELIVERY_AGENT_ASSIGNED"
    OVERRIDE_FLAG_OR_REASON_MISSING = "OVERRIDE_FLAG_OR_REASON_MISSING"


TERMINAL_STATES = frozenset({OrderStatus.CANCELLED, OrderStatus.RETURNED})

# Order list "phase" filter
CALL_PHASE = frozenset({OrderStatus.PENDING, OrderStatus.CALL_ASSIGNED})
DELIVERY_PHASE = frozenset(
    {
        OrderStatus.CALL_CONFIRMED,
        OrderStatus.PACKED,
        OrderStatus.DELIVERY_AGENT_SELECTED,
        OrderStatus.DELIVERY_ASSIGNED,
        OrderStatus.OUT_FOR_DELIVERY,
    }
)

# Statuses in which an order holds one unit of its delivery agent's load
DELIVERY_LOAD_STATES = frozenset(
    {OrderStatus.DELIVERY_ASSIGNED, OrderStatus.OUT_FOR_DELIVERY}
)

# Orders may only be removed before work starts or after it was abandoned
DELETABLE_STATES = frozenset({OrderStatus.PENDING, OrderStatus.CANCELLED})

DEFAULT_CONFIRMED_NOTE = "Customer confirmed the order"
DEFAULT_CANCELLED_NOTE = "Customer cancelled the order"
ORDER_CREATED_NOTE = "Order created"

ORDER_NUMBER_MAX_RETRIES = 5
