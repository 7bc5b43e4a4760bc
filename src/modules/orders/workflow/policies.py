"""Role-gate policy: the one place that decides who may do what.

Every entry point (services, the engine, the delivery registry) asks this
module instead of comparing roles inline.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional

from modules.accounts.actors import Actor
from modules.accounts.constants import UserRole
from modules.core.exceptions import Forbidden
from modules.orders.workflow.context import Operation, OrderSnapshot

_ADMINS = frozenset({UserRole.SUPER_ADMIN, UserRole.ADMIN})
_SUPER_ADMIN_ONLY = frozenset({UserRole.SUPER_ADMIN})
_CALL_DESK = frozenset({UserRole.SUPER_ADMIN, UserRole.ADMIN, UserRole.CALL_AGENT})

ROLE_GATES: Mapping[Operation, FrozenSet[UserRole]] = MappingProxyType(
    {
        Operation.CREATE_ORDER: _ADMINS,
        Operation.VIEW_ORDERS: _ADMINS,
        Operation.UPDATE_STATUS: _ADMINS,
        Operation.DELETE_ORDER: _ADMINS,
        Operation.ASSIGN_CALL_AGENT: _SUPER_ADMIN_ONLY,
        Operation.LOG_CALL_ATTEMPT: _CALL_DESK,
        Operation.VIEW_CALL_ATTEMPTS: _CALL_DESK,
        Operation.SELECT_DELIVERY_AGENT: _ADMINS,
        Operation.ASSIGN_DELIVERY_AGENT: _ADMINS,
        Operation.OVERRIDE_DELIVERY_AGENT: _SUPER_ADMIN_ONLY,
        Operation.FAST_FORWARD: _ADMINS,
        Operation.VIEW_CALL_AGENTS: _ADMINS,
        Operation.MANAGE_DELIVERY_AGENTS: _ADMINS,
    }
)


def can_assign_call_agent(role: UserRole) -> bool:
    return role in ROLE_GATES[Operation.ASSIGN_CALL_AGENT]


def can_administer_orders(role: UserRole) -> bool:
    return role in _ADMINS


def can_override_delivery_selection(role: UserRole) -> bool:
    """Only the role gate half; the flag and reason are prerequisites."""
    return role in ROLE_GATES[Operation.OVERRIDE_DELIVERY_AGENT]


def can_log_call_attempt(actor: Actor, order: Optional[OrderSnapshot] = None) -> bool:
    """Admins may log on any order; a call agent only on orders assigned to them.

    Without an ``order`` only the role is checked.
    """
    if actor.role not in ROLE_GATES[Operation.LOG_CALL_ATTEMPT]:
        return False
    if actor.role == UserRole.CALL_AGENT and order is not None:
        return order.call_assigned_to_id == actor.id
    return True


def is_permitted(
    actor: Actor, operation: Operation, order: Optional[OrderSnapshot] = None
) -> bool:
    if operation is Operation.LOG_CALL_ATTEMPT:
        return can_log_call_attempt(actor, order)
    if operation is Operation.ASSIGN_CALL_AGENT:
        return can_assign_call_agent(actor.role)
    if operation is Operation.OVERRIDE_DELIVERY_AGENT:
        return can_override_delivery_selection(actor.role)
    if ROLE_GATES[operation] is _ADMINS:
        return can_administer_orders(actor.role)
    return actor.role in ROLE_GATES[operation]


def ensure_permitted(
    actor: Actor, operation: Operation, order: Optional[OrderSnapshot] = None
) -> None:
    """Raise ``Forbidden`` unless ``actor`` may perform ``operation``.

    Services call this before loading the order (role only) and the engine
    calls it again with the snapshot (ownership included).
    """
    if is_permitted(actor, operation, order):
        return
    if operation is Operation.LOG_CALL_ATTEMPT and actor.role == UserRole.CALL_AGENT:
        raise Forbidden("Call agents can only log calls for orders assigned to them.")
    raise Forbidden(
        f"Role {actor.role.value} is not allowed to perform {operation.value}."
    )


def sees_only_own_call_attempts(actor: Actor) -> bool:
    """Call agents reviewing the call log are limited to their own attempts."""
    return actor.role == UserRole.CALL_AGENT
