"""Prerequisite checker.

Each graph edge may demand business facts beyond reachability.  Checks
are registered per edge (and per target for facts that must hold on
arrival) and raise the most specific error for the first missing fact.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional, Tuple

from modules.accounts.constants import UserRole, UserStatus
from modules.accounts.exceptions import CallAgentNotFound
from modules.core.exceptions import Forbidden
from modules.delivery.exceptions import DeliveryAgentNotFound
from modules.orders.constants import OrderStatus, PrerequisiteReason
from modules.orders.exceptions import PrerequisiteNotMet
from modules.orders.workflow.policies import can_override_delivery_selection
from modules.orders.workflow.context import OrderSnapshot, TransitionContext

Check = Callable[[OrderSnapshot, TransitionContext], None]


# ---------------------------------------------------------------------------
# Resolution helpers (also used by callers to decide what to look up)
# ---------------------------------------------------------------------------


def effective_call_agent_id(order: OrderSnapshot, context: TransitionContext) -> Optional[str]:
    return context.call_agent_id or order.call_assigned_to_id


def resolve_delivery_agent_id(order: OrderSnapshot, context: TransitionContext) -> Optional[str]:
    """Explicit agent id, or the one inherited from the selection."""
    return context.delivery_agent_id or order.selected_delivery_agent_id


def is_delivery_override(order: OrderSnapshot, context: TransitionContext) -> bool:
    return (
        context.delivery_agent_id is not None
        and context.delivery_agent_id != order.selected_delivery_agent_id
    )


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def _require_call_agent(order: OrderSnapshot, context: TransitionContext) -> None:
    agent_id = effective_call_agent_id(order, context)
    if agent_id is None:
        raise PrerequisiteNotMet(PrerequisiteReason.NO_CALL_AGENT_ASSIGNED)

    record = context.call_agent
    if record is None or record.id != agent_id:
        raise CallAgentNotFound(f"Call agent {agent_id} not found.")
    if record.role != UserRole.CALL_AGENT:
        raise PrerequisiteNotMet(PrerequisiteReason.CALL_AGENT_INVALID)
    if record.status != UserStatus.ACTIVE:
        raise PrerequisiteNotMet(PrerequisiteReason.CALL_AGENT_INACTIVE)


def _require_confirmed_call_attempt(order: OrderSnapshot, context: TransitionContext) -> None:
    if not order.has_confirmed_call_attempt:
        raise PrerequisiteNotMet(PrerequisiteReason.NO_CONFIRMED_CALL_ATTEMPT)


def _require_active_delivery_agent(agent_id: str, context: TransitionContext) -> None:
    record = context.delivery_agent
    if record is None or record.id != agent_id:
        raise DeliveryAgentNotFound(f"Delivery agent {agent_id} not found.")
    if not record.is_active:
        raise PrerequisiteNotMet(PrerequisiteReason.DELIVERY_AGENT_INACTIVE)


def _require_selectable_delivery_agent(order: OrderSnapshot, context: TransitionContext) -> None:
    agent_id = resolve_delivery_agent_id(order, context)
    if agent_id is None:
        raise PrerequisiteNotMet(PrerequisiteReason.NO_DELIVERY_AGENT_SELECTED)
    _require_active_delivery_agent(agent_id, context)


def _require_assignable_delivery_agent(order: OrderSnapshot, context: TransitionContext) -> None:
    if order.selected_delivery_agent_id is None:
        raise PrerequisiteNotMet(PrerequisiteReason.NO_DELIVERY_AGENT_SELECTED)

    if is_delivery_override(order, context):
        if not can_override_delivery_selection(context.actor.role):
            raise Forbidden(
                "Only a super admin can assign a delivery agent other than the selected one."
            )
        if not context.override or not context.reason.strip():
            raise PrerequisiteNotMet(PrerequisiteReason.OVERRIDE_FLAG_OR_REASON_MISSING)

    _require_active_delivery_agent(resolve_delivery_agent_id(order, context), context)


def _require_assigned_delivery_agent(order: OrderSnapshot, context: TransitionContext) -> None:
    if order.delivery_agent_id is None:
        raise PrerequisiteNotMet(PrerequisiteReason.NO_DELIVERY_AGENT_ASSIGNED)


EDGE_CHECKS: Dict[Tuple[OrderStatus, OrderStatus], Tuple[Check, ...]] = {
    (OrderStatus.PENDING, OrderStatus.CALL_ASSIGNED): (_require_call_agent,),
    (OrderStatus.CALL_ASSIGNED, OrderStatus.CALL_CONFIRMED): (
        _require_confirmed_call_attempt,
    ),
    (OrderStatus.PACKED, OrderStatus.DELIVERY_AGENT_SELECTED): (
        _require_selectable_delivery_agent,
    ),
    (OrderStatus.DELIVERY_AGENT_SELECTED, OrderStatus.DELIVERY_ASSIGNED): (
        _require_assignable_delivery_agent,
    ),
}

# Facts that must hold whenever the order arrives in a status
TARGET_CHECKS: Dict[OrderStatus, Tuple[Check, ...]] = {
    OrderStatus.OUT_FOR_DELIVERY: (_require_assigned_delivery_agent,),
}


def check_prerequisites(
    order: OrderSnapshot, target: OrderStatus, context: TransitionContext
) -> None:
    """Raise on the first unmet prerequisite of ``order.status -> target``."""
    for check in EDGE_CHECKS.get((order.status, target), ()):
        check(order, context)
    for check in TARGET_CHECKS.get(target, ()):
        check(order, context)
