"""The order status graph.

Pure data: which status may follow which.  Business prerequisites and
role gates are layered on top by ``prerequisites`` and ``policies``.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import FrozenSet, Mapping

from modules.orders.constants import TERMINAL_STATES, OrderStatus

TRANSITION_TABLE: Mapping[OrderStatus, FrozenSet[OrderStatus]] = MappingProxyType(
    {
        OrderStatus.PENDING: frozenset(
            {OrderStatus.CALL_ASSIGNED, OrderStatus.CANCELLED}
        ),
        OrderStatus.CALL_ASSIGNED: frozenset(
            {OrderStatus.CALL_CONFIRMED, OrderStatus.CANCELLED}
        ),
        OrderStatus.CALL_CONFIRMED: frozenset(
            {OrderStatus.PACKED, OrderStatus.CANCELLED}
        ),
        OrderStatus.PACKED: frozenset(
            {OrderStatus.DELIVERY_AGENT_SELECTED, OrderStatus.CANCELLED}
        ),
        OrderStatus.DELIVERY_AGENT_SELECTED: frozenset(
            {OrderStatus.DELIVERY_ASSIGNED, OrderStatus.CANCELLED}
        ),
        OrderStatus.DELIVERY_ASSIGNED: frozenset(
            {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED}
        ),
        OrderStatus.OUT_FOR_DELIVERY: frozenset(
            {OrderStatus.DELIVERED, OrderStatus.RETURNED}
        ),
        OrderStatus.DELIVERED: frozenset({OrderStatus.RETURNED}),
        OrderStatus.CANCELLED: frozenset(),
        OrderStatus.RETURNED: frozenset(),
    }
)


def allowed_targets(status: str) -> FrozenSet[OrderStatus]:
    """Statuses directly reachable from ``status`` (empty for unknown values)."""
    return TRANSITION_TABLE.get(status, frozenset())


def is_valid_transition(from_status: str, to_status: str) -> bool:
    return to_status in allowed_targets(from_status)


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATES
