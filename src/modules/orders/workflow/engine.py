"""Order workflow engine.

``plan_transition`` is a pure function of (order snapshot, requested
status, context).  It either raises a ``DomainError`` or returns a
``TransitionPlan`` describing the writes the caller must commit in one
transaction: field mutations plus new status, one status-change row, and
any delivery-agent load adjustments.

Checks run in a fixed order:

1. the status graph (``INVALID_TRANSITION``)
2. the role gate (``FORBIDDEN``)
3. the prerequisites (``PREREQUISITE_NOT_MET`` / ``NOT_FOUND``)
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

from modules.orders.constants import DELIVERY_LOAD_STATES, OrderStatus
from modules.orders.exceptions import InvalidTransition
from modules.orders.workflow.context import OrderSnapshot, TransitionContext, TransitionPlan
from modules.orders.workflow.policies import ensure_permitted
from modules.orders.workflow.prerequisites import (
    check_prerequisites,
    effective_call_agent_id,
    is_delivery_override,
    resolve_delivery_agent_id,
)
from modules.orders.workflow.transitions import is_valid_transition


def plan_transition(
    order: OrderSnapshot, requested: str, context: TransitionContext
) -> TransitionPlan:
    """Validate ``order.status -> requested`` and describe its side effects.

    Raises:
        InvalidTransition: ``requested`` is unknown or not an edge of the graph.
        Forbidden: the role gate denies ``context.operation``.
        PrerequisiteNotMet: a required business fact is missing.
        NotFound: a referenced agent id did not resolve.
    """
    try:
        target = OrderStatus(requested)
    except ValueError:
        raise InvalidTransition(f"Unknown status {requested!r}.") from None

    if not is_valid_transition(order.status, target):
        raise InvalidTransition(
            f"Cannot transition from {order.status.value} to {target.value}."
        )

    ensure_permitted(context.actor, context.operation, order)
    check_prerequisites(order, target, context)

    mutations, metadata = _side_effects(order, target, context)
    metadata.update(from_status=order.status.value, to_status=target.value)
    if context.notes:
        metadata["notes"] = context.notes

    return TransitionPlan(
        order_id=order.id,
        from_status=order.status,
        to_status=target,
        field_mutations=mutations,
        agent_load_adjustments=_load_adjustments(order, target, context),
        audit_metadata=metadata,
    )


def _side_effects(
    order: OrderSnapshot, target: OrderStatus, context: TransitionContext
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    mutations: Dict[str, Any] = {}
    metadata: Dict[str, Any] = {}

    if target is OrderStatus.CALL_ASSIGNED:
        agent_id = effective_call_agent_id(order, context)
        if agent_id != order.call_assigned_to_id or order.call_assigned_at is None:
            mutations.update(
                call_assigned_to_id=agent_id,
                call_assigned_by_id=context.actor.id,
                call_assigned_at=context.now,
            )
        metadata["call_agent_id"] = agent_id

    elif target is OrderStatus.CALL_CONFIRMED:
        if order.call_confirmed_at is None:
            mutations["call_confirmed_at"] = context.now

    elif target is OrderStatus.DELIVERY_AGENT_SELECTED:
        agent_id = resolve_delivery_agent_id(order, context)
        mutations["selected_delivery_agent_id"] = agent_id
        metadata["selected_agent_id"] = agent_id

    elif target is OrderStatus.DELIVERY_ASSIGNED:
        agent_id = resolve_delivery_agent_id(order, context)
        override = is_delivery_override(order, context)
        mutations["delivery_agent_id"] = agent_id
        metadata.update(
            delivery_agent_id=agent_id,
            selected_agent_id=order.selected_delivery_agent_id,
            is_override=override,
            override_reason=context.reason.strip() if override else None,
        )

    return mutations, metadata


def _load_adjustments(
    order: OrderSnapshot, target: OrderStatus, context: TransitionContext
) -> Dict[str, int]:
    """+1 for the agent bound on assignment, -1 when the order releases it."""
    adjustments: Dict[str, int] = {}
    if target is OrderStatus.DELIVERY_ASSIGNED:
        agent_id = resolve_delivery_agent_id(order, context)
        adjustments[agent_id] = adjustments.get(agent_id, 0) + 1
    if (
        order.status in DELIVERY_LOAD_STATES
        and target not in DELIVERY_LOAD_STATES
        and order.delivery_agent_id is not None
    ):
        agent_id = order.delivery_agent_id
        adjustments[agent_id] = adjustments.get(agent_id, 0) - 1
    return adjustments
