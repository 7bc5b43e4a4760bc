"""Map a call attempt's outcome to an optional status transition."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from modules.orders.constants import (
    DEFAULT_CANCELLED_NOTE,
    DEFAULT_CONFIRMED_NOTE,
    CallOutcome,
    OrderStatus,
)
from modules.orders.workflow.context import OrderSnapshot, TransitionContext, TransitionPlan
from modules.orders.workflow.engine import plan_transition


@dataclass(frozen=True)
class CallOutcomeResolution:
    target: OrderStatus
    field_mutations: Dict[str, Any] = field(default_factory=dict)


def resolve_call_outcome(
    outcome: CallOutcome | str, notes: str, now: datetime
) -> Optional[CallOutcomeResolution]:
    """CONFIRMED and CUSTOMER_CANCELLED move the order; other outcomes do not."""
    resolved = CallOutcome(outcome)
    if resolved is CallOutcome.CONFIRMED:
        return CallOutcomeResolution(
            target=OrderStatus.CALL_CONFIRMED,
            field_mutations={
                "call_confirmed_at": now,
                "call_notes": notes or DEFAULT_CONFIRMED_NOTE,
            },
        )
    if resolved is CallOutcome.CUSTOMER_CANCELLED:
        return CallOutcomeResolution(
            target=OrderStatus.CANCELLED,
            field_mutations={"call_notes": notes or DEFAULT_CANCELLED_NOTE},
        )
    return None


def plan_call_outcome(
    order: OrderSnapshot, outcome: CallOutcome | str, context: TransitionContext
) -> Optional[TransitionPlan]:
    """Plan the status change implied by ``outcome``, if any.

    Returns ``None`` when the outcome implies no transition or the order is
    already in the implied status.  ``order`` must be read after the
    attempt itself was stored, so a CONFIRMED attempt counts toward its own
    prerequisite.
    """
    resolution = resolve_call_outcome(outcome, context.notes, context.now)
    if resolution is None or resolution.target == order.status:
        return None

    plan = plan_transition(order, resolution.target, context)
    return plan.merged(
        field_mutations=resolution.field_mutations,
        audit_metadata={"call_outcome": CallOutcome(outcome).value},
    )
