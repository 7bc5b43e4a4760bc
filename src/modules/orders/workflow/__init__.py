"""Pure order workflow: status graph, role gate, prerequisites and planners."""

from modules.orders.workflow.call_outcomes import (
    CallOutcomeResolution,
    plan_call_outcome,
    resolve_call_outcome,
)
from modules.orders.workflow.context import (
    CallAgentRecord,
    DeliveryAgentRecord,
    Operation,
    OrderSnapshot,
    TransitionContext,
    TransitionPlan,
)
from modules.orders.workflow.engine import plan_transition
from modules.orders.workflow.fast_forward import (
    FAST_FORWARD_TARGETS,
    next_logical_status,
    plan_fast_forward,
)
from modules.orders.workflow.policies import (
    ensure_permitted,
    is_permitted,
    sees_only_own_call_attempts,
)
from modules.orders.workflow.prerequisites import (
    check_prerequisites,
    effective_call_agent_id,
    resolve_delivery_agent_id,
)
from modules.orders.workflow.transitions import (
    TRANSITION_TABLE,
    allowed_targets,
    is_terminal,
    is_valid_transition,
)

__all__ = [
    "FAST_FORWARD_TARGETS",
    "TRANSITION_TABLE",
    "CallAgentRecord",
    "CallOutcomeResolution",
    "DeliveryAgentRecord",
    "Operation",
    "OrderSnapshot",
    "TransitionContext",
    "TransitionPlan",
    "allowed_targets",
    "check_prerequisites",
    "effective_call_agent_id",
    "ensure_permitted",
    "is_permitted",
    "is_terminal",
    "is_valid_transition",
    "next_logical_status",
    "plan_call_outcome",
    "plan_fast_forward",
    "plan_transition",
    "resolve_call_outcome",
    "resolve_delivery_agent_id",
    "sees_only_own_call_attempts",
]
