"""Advance an order to its single canonical next status."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from modules.orders.constants import OrderStatus
from modules.orders.exceptions import OrderCannotAdvance
from modules.orders.workflow.context import OrderSnapshot, TransitionContext, TransitionPlan
from modules.orders.workflow.engine import plan_transition

FAST_FORWARD_TARGETS: Mapping[OrderStatus, OrderStatus] = MappingProxyType(
    {
        OrderStatus.PENDING: OrderStatus.CALL_ASSIGNED,
        OrderStatus.CALL_ASSIGNED: OrderStatus.CALL_CONFIRMED,
        OrderStatus.CALL_CONFIRMED: OrderStatus.PACKED,
        OrderStatus.PACKED: OrderStatus.DELIVERY_AGENT_SELECTED,
        OrderStatus.DELIVERY_AGENT_SELECTED: OrderStatus.DELIVERY_ASSIGNED,
        OrderStatus.DELIVERY_ASSIGNED: OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.OUT_FOR_DELIVERY: OrderStatus.DELIVERED,
    }
)


def next_logical_status(status: str) -> OrderStatus:
    """Raises ``OrderCannotAdvance`` for DELIVERED, CANCELLED and RETURNED."""
    try:
        return FAST_FORWARD_TARGETS[status]
    except KeyError:
        raise OrderCannotAdvance(
            f"Order in status {status} cannot be advanced."
        ) from None


def plan_fast_forward(order: OrderSnapshot, context: TransitionContext) -> TransitionPlan:
    """Run the next logical transition through the full engine.

    The free-text ``context.reason`` is recorded for audit only.
    """
    plan = plan_transition(order, next_logical_status(order.status), context)
    return plan.merged(audit_metadata={"fast_forward": True, "reason": context.reason})
