"""Immutable inputs and outputs of the workflow engine.

The engine never reads the database, the request or the clock.  Callers
resolve everything it needs into these value objects first:

- ``OrderSnapshot``: the order fields the rules look at, read under lock.
- ``CallAgentRecord`` / ``DeliveryAgentRecord``: agent facts looked up by id.
- ``TransitionContext``: who is acting, through which operation, and with
  which arguments.
- ``TransitionPlan``: what the caller must persist if the transition is
  allowed.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from modules.accounts.actors import Actor
from modules.accounts.constants import UserRole, UserStatus
from modules.orders.constants import OrderStatus


class Operation(str, Enum):
    """Privileged operations known to the role gate."""

    CREATE_ORDER = "CREATE_ORDER"
    VIEW_ORDERS = "VIEW_ORDERS"
    UPDATE_STATUS = "UPDATE_STATUS"
    DELETE_ORDER = "DELETE_ORDER"
    ASSIGN_CALL_AGENT = "ASSIGN_CALL_AGENT"
    LOG_CALL_ATTEMPT = "LOG_CALL_ATTEMPT"
    VIEW_CALL_ATTEMPTS = "VIEW_CALL_ATTEMPTS"
    SELECT_DELIVERY_AGENT = "SELECT_DELIVERY_AGENT"
    ASSIGN_DELIVERY_AGENT = "ASSIGN_DELIVERY_AGENT"
    OVERRIDE_DELIVERY_AGENT = "OVERRIDE_DELIVERY_AGENT"
    FAST_FORWARD = "FAST_FORWARD"
    VIEW_CALL_AGENTS = "VIEW_CALL_AGENTS"
    MANAGE_DELIVERY_AGENTS = "MANAGE_DELIVERY_AGENTS"


def _str_or_none(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


@dataclass(frozen=True)
class OrderSnapshot:
    id: str
    status: OrderStatus
    customer_id: Optional[str] = None
    call_assigned_to_id: Optional[str] = None
    call_assigned_by_id: Optional[str] = None
    call_assigned_at: Optional[datetime] = None
    call_confirmed_at: Optional[datetime] = None
    call_notes: str = ""
    selected_delivery_agent_id: Optional[str] = None
    delivery_agent_id: Optional[str] = None
    has_confirmed_call_attempt: bool = False

    @classmethod
    def from_order(cls, order: Any, has_confirmed_call_attempt: bool = False) -> OrderSnapshot:
        """Capture an ``Order`` model instance; ids are normalised to ``str``."""
        return cls(
            id=str(order.id),
            status=OrderStatus(order.status),
            customer_id=_str_or_none(order.customer_id),
            call_assigned_to_id=_str_or_none(order.call_assigned_to_id),
            call_assigned_by_id=_str_or_none(order.call_assigned_by_id),
            call_assigned_at=order.call_assigned_at,
            call_confirmed_at=order.call_confirmed_at,
            call_notes=order.call_notes or "",
            selected_delivery_agent_id=_str_or_none(order.selected_delivery_agent_id),
            delivery_agent_id=_str_or_none(order.delivery_agent_id),
            has_confirmed_call_attempt=has_confirmed_call_attempt,
        )


@dataclass(frozen=True)
class CallAgentRecord:
    id: str
    role: UserRole
    status: UserStatus

    @classmethod
    def from_user(cls, user: Any) -> CallAgentRecord:
        return cls(id=str(user.id), role=UserRole(user.role), status=UserStatus(user.status))


@dataclass(frozen=True)
class DeliveryAgentRecord:
    id: str
    is_active: bool

    @classmethod
    def from_agent(cls, agent: Any) -> DeliveryAgentRecord:
        return cls(id=str(agent.id), is_active=bool(agent.is_active))


@dataclass(frozen=True)
class TransitionContext:
    """Everything about the request the rules may consult.

    ``call_agent_id`` / ``delivery_agent_id`` are what the caller asked for
    (``None`` means "use what the order already has"); the matching
    ``*_agent`` records are the caller's lookup results for the effective
    id, or ``None`` if it did not resolve.
    """

    actor: Actor
    operation: Operation
    now: datetime
    notes: str = ""
    call_agent_id: Optional[str] = None
    call_agent: Optional[CallAgentRecord] = None
    delivery_agent_id: Optional[str] = None
    delivery_agent: Optional[DeliveryAgentRecord] = None
    override: bool = False
    reason: str = ""


@dataclass(frozen=True)
class TransitionPlan:
    order_id: str
    from_status: OrderStatus
    to_status: OrderStatus
    field_mutations: Dict[str, Any] = field(default_factory=dict)
    agent_load_adjustments: Dict[str, int] = field(default_factory=dict)
    audit_metadata: Dict[str, Any] = field(default_factory=dict)

    def merged(
        self,
        field_mutations: Optional[Dict[str, Any]] = None,
        audit_metadata: Optional[Dict[str, Any]] = None,
    ) -> TransitionPlan:
        """Return a copy with extra mutations and metadata layered on top."""
        return replace(
            self,
            field_mutations={**self.field_mutations, **(field_mutations or {})},
            audit_metadata={**self.audit_metadata, **(audit_metadata or {})},
        )
