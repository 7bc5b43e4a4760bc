"""Order service layer (Use Cases).

Each command is one unit of work under ``@transaction.atomic``:

1. role gate on the operation (before anything is read),
2. lock the order row and take a snapshot,
3. resolve the agent records the rules need,
4. ask the pure workflow engine for a ``TransitionPlan``,
5. commit the plan: field mutations + status, exactly one
   ``OrderStatusChange`` row, delivery-agent load adjustments and the
   outbox event.

Any exception inside the block rolls every write back.  Business audit
entries are scheduled with ``record_audit`` and only leave the process
after the transaction commits.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from modules.accounts.constants import UserRole
from modules.core.audit import record_audit
from modules.core.exceptions import DomainError
from modules.core.models import AuditAction
from modules.orders.constants import DELETABLE_STATES, ORDER_CREATED_NOTE, OrderStatus
from modules.orders.events import OrderCreated
from modules.orders.exceptions import CustomerNotFound, OrderNotDeletable, OrderNotFound
from modules.orders.workflow import (
    CallAgentRecord,
    DeliveryAgentRecord,
    Operation,
    OrderSnapshot,
    TransitionContext,
    TransitionPlan,
    effective_call_agent_id,
    ensure_permitted,
    next_logical_status,
    plan_call_outcome,
    plan_fast_forward,
    plan_transition,
    resolve_delivery_agent_id,
    sees_only_own_call_attempts,
)

if TYPE_CHECKING:
    from modules.accounts.actors import Actor
    from modules.accounts.repositories.interfaces import IUserRepository
    from modules.delivery.repositories.interfaces import IDeliveryAgentRepository
    from modules.orders.dtos import (
        AssignCallAgentDTO,
        AssignDeliveryAgentDTO,
        CallAttemptFilterDTO,
        CreateOrderDTO,
        FastForwardDTO,
        LogCallAttemptDTO,
        SelectDeliveryAgentDTO,
        UpdateStatusDTO,
    )
    from modules.orders.models import CallAttempt, Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

TARGET_TYPE = "Order"


@dataclass(frozen=True)
class CallAttemptResult:
    """Outcome of ``log_call_attempt``.

    The attempt is always stored.  ``transition_error`` is set when the
    outcome implied a status change that the workflow rejected.
    """

    call_attempt: CallAttempt
    order: Order
    status_changed: bool = False
    transition_error: Optional[DomainError] = None


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).  Every public
    method takes the acting ``Actor`` explicitly.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        user_repository: IUserRepository,
        delivery_agent_repository: IDeliveryAgentRepository,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._order_repo = order_repository
        self._user_repo = user_repository
        self._delivery_repo = delivery_agent_repository
        self._clock = clock

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO, actor: Actor) -> Order:
        """Create a PENDING order with its items and creation history row.

        Raises:
            Forbidden: actor is not an admin.
            CustomerNotFound: ``customer_id`` is not a CUSTOMER account.
        """
        ensure_permitted(actor, Operation.CREATE_ORDER)
        log = logger.bind(customer_id=str(dto.customer_id), actor_id=actor.id)
        log.info("order.creation_started")

        if dto.idempotency_key:
            existing = self._order_repo.get_by_idempotency_key(dto.idempotency_key)
            if existing:
                log.info(
                    "order.idempotency_hit",
                    order_id=str(existing.id),
                    key=dto.idempotency_key,
                )
                return existing

        customer = self._user_repo.get_by_id(str(dto.customer_id))
        if not customer or customer.role != UserRole.CUSTOMER:
            raise CustomerNotFound(f"Customer {dto.customer_id} not found.")

        order = self._order_repo.create(
            {
                "customer_id": customer.id,
                "items": [item.model_dump() for item in dto.items],
                "shipping_cents": settings.ORDER_SHIPPING_CENTS,
                "shipping_address": dto.shipping_address.model_dump(),
                "notes": dto.notes or "",
                "idempotency_key": dto.idempotency_key,
            }
        )
        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                customer_id=str(customer.id),
                total_cents=order.total_cents,
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            to_status=OrderStatus.PENDING,
            from_status=None,
            changed_by_id=actor.id,
            notes=ORDER_CREATED_NOTE,
        )

        record_audit(
            actor_id=actor.id,
            action=AuditAction.ORDER_CREATED,
            target_type=TARGET_TYPE,
            target_id=str(order.id),
            metadata={"order_number": order.order_number, "total_cents": order.total_cents},
        )
        log.info("order.created", order_id=str(order.id))
        return self._reload(order)

    @transaction.atomic
    def delete_order(self, order_id: str, actor: Actor) -> None:
        """Soft-delete a PENDING or CANCELLED order.

        Raises:
            OrderNotFound: unknown or already deleted order.
            OrderNotDeletable: order is in progress or completed.
        """
        ensure_permitted(actor, Operation.DELETE_ORDER)
        order = self._lock(order_id)
        if order.status not in DELETABLE_STATES:
            raise OrderNotDeletable(
                f"Order in status {order.status} cannot be deleted."
            )
        self._order_repo.delete(str(order.id))
        record_audit(
            actor_id=actor.id,
            action=AuditAction.ORDER_DELETED,
            target_type=TARGET_TYPE,
            target_id=str(order.id),
            metadata={"order_number": order.order_number, "status": order.status},
        )

    @transaction.atomic
    def assign_call_agent(self, order_id: str, dto: AssignCallAgentDTO, actor: Actor) -> Order:
        """PENDING -> CALL_ASSIGNED with the given call agent (SUPER_ADMIN only)."""
        ensure_permitted(actor, Operation.ASSIGN_CALL_AGENT)
        order = self._lock(order_id)
        snapshot = self._snapshot(order)
        context = self._context(
            actor,
            Operation.ASSIGN_CALL_AGENT,
            snapshot,
            OrderStatus.CALL_ASSIGNED,
            notes=dto.notes,
            call_agent_id=str(dto.agent_id),
        )
        plan = self._plan(plan_transition, snapshot, OrderStatus.CALL_ASSIGNED, context)
        order = self._commit(order, plan, actor, notes=dto.notes or "Call agent assigned")
        self._audit(actor, AuditAction.ORDER_CALL_ASSIGNED, plan)
        return self._reload(order)

    @transaction.atomic
    def log_call_attempt(
        self, order_id: str, dto: LogCallAttemptDTO, actor: Actor
    ) -> CallAttemptResult:
        """Record a call attempt and apply the status change its outcome implies.

        The attempt row is written whenever the actor may log on the order.
        A rejected implied transition does not discard it; the rejection is
        reported on the result instead.
        """
        ensure_permitted(actor, Operation.LOG_CALL_ATTEMPT)
        order = self._lock(order_id)
        ensure_permitted(actor, Operation.LOG_CALL_ATTEMPT, OrderSnapshot.from_order(order))

        log = logger.bind(order_id=str(order.id), actor_id=actor.id, outcome=dto.outcome.value)
        attempt = self._order_repo.add_call_attempt(order.id, actor.id, dto.outcome, dto.notes)

        snapshot = self._snapshot(order)
        context = self._context(
            actor, Operation.LOG_CALL_ATTEMPT, snapshot, None, notes=dto.notes
        )
        plan: Optional[TransitionPlan] = None
        transition_error: Optional[DomainError] = None
        try:
            plan = plan_call_outcome(snapshot, dto.outcome, context)
        except DomainError as exc:
            transition_error = exc
            log.warning(
                "call_attempt.transition_rejected",
                kind=exc.kind.value,
                reason=exc.reason.value if exc.reason is not None else None,
            )

        if plan is not None:
            order = self._commit(
                order, plan, actor, notes=plan.field_mutations.get("call_notes", dto.notes)
            )

        record_audit(
            actor_id=actor.id,
            action=AuditAction.ORDER_CALL_ATTEMPT,
            target_type=TARGET_TYPE,
            target_id=str(order.id),
            metadata={
                "call_attempt_id": str(attempt.id),
                "outcome": dto.outcome.value,
                "status_changed": plan is not None,
                **(plan.audit_metadata if plan is not None else {}),
            },
        )
        log.info("call_attempt.logged", status_changed=plan is not None)
        return CallAttemptResult(
            call_attempt=attempt,
            order=self._reload(order),
            status_changed=plan is not None,
            transition_error=transition_error,
        )

    @transaction.atomic
    def select_delivery_agent(
        self, order_id: str, dto: SelectDeliveryAgentDTO, actor: Actor
    ) -> Order:
        """PACKED -> DELIVERY_AGENT_SELECTED with the given delivery agent."""
        ensure_permitted(actor, Operation.SELECT_DELIVERY_AGENT)
        order = self._lock(order_id)
        snapshot = self._snapshot(order)
        context = self._context(
            actor,
            Operation.SELECT_DELIVERY_AGENT,
            snapshot,
            OrderStatus.DELIVERY_AGENT_SELECTED,
            notes=dto.notes,
            delivery_agent_id=str(dto.agent_id),
        )
        plan = self._plan(
            plan_transition, snapshot, OrderStatus.DELIVERY_AGENT_SELECTED, context
        )
        order = self._commit(order, plan, actor, notes=dto.notes or "Delivery agent selected")
        self._audit(actor, AuditAction.ORDER_DELIVERY_SELECTED, plan)
        return self._reload(order)

    @transaction.atomic
    def assign_delivery_agent(
        self, order_id: str, dto: AssignDeliveryAgentDTO, actor: Actor
    ) -> Order:
        """DELIVERY_AGENT_SELECTED -> DELIVERY_ASSIGNED.

        Without ``agent_id`` the selected agent is bound.  A different agent
        is an override (SUPER_ADMIN, flag and reason required).
        """
        ensure_permitted(actor, Operation.ASSIGN_DELIVERY_AGENT)
        order = self._lock(order_id)
        snapshot = self._snapshot(order)
        context = self._context(
            actor,
            Operation.ASSIGN_DELIVERY_AGENT,
            snapshot,
            OrderStatus.DELIVERY_ASSIGNED,
            notes=dto.notes,
            delivery_agent_id=str(dto.agent_id) if dto.agent_id else None,
            override=dto.override,
            reason=dto.reason,
        )
        plan = self._plan(plan_transition, snapshot, OrderStatus.DELIVERY_ASSIGNED, context)
        notes = dto.notes or (
            f"Delivery agent override: {dto.reason.strip()}"
            if plan.audit_metadata.get("is_override")
            else "Delivery agent assigned"
        )
        order = self._commit(order, plan, actor, notes=notes)
        self._audit(actor, AuditAction.ORDER_DELIVERY_ASSIGNED, plan)
        return self._reload(order)

    @transaction.atomic
    def fast_forward(self, order_id: str, dto: FastForwardDTO, actor: Actor) -> Order:
        """Advance to the next logical status, prerequisites included."""
        ensure_permitted(actor, Operation.FAST_FORWARD)
        order = self._lock(order_id)
        snapshot = self._snapshot(order)
        target = next_logical_status(snapshot.status)
        context = self._context(
            actor, Operation.FAST_FORWARD, snapshot, target, reason=dto.reason
        )
        plan = self._plan(plan_fast_forward, snapshot, context)
        order = self._commit(
            order, plan, actor, notes=dto.reason or f"Fast-forwarded to {target.value}"
        )
        self._audit(actor, AuditAction.ORDER_FAST_FORWARD, plan)
        return self._reload(order)

    @transaction.atomic
    def update_status(self, order_id: str, dto: UpdateStatusDTO, actor: Actor) -> Order:
        """Generic transition to an explicit status.

        Runs the full engine: the same prerequisites apply as on the
        dedicated endpoints.
        """
        ensure_permitted(actor, Operation.UPDATE_STATUS)
        order = self._lock(order_id)
        snapshot = self._snapshot(order)
        context = self._context(
            actor, Operation.UPDATE_STATUS, snapshot, dto.status, notes=dto.notes
        )
        plan = self._plan(plan_transition, snapshot, dto.status, context)
        order = self._commit(order, plan, actor, notes=dto.notes)
        self._audit(actor, AuditAction.ORDER_UPDATED, plan)
        return self._reload(order)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str, actor: Actor) -> Order:
        """Raises ``OrderNotFound`` for unknown or deleted orders."""
        ensure_permitted(actor, Operation.VIEW_ORDERS)
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def find_by_idempotency_key(self, key: str, actor: Actor) -> Optional[Order]:
        ensure_permitted(actor, Operation.CREATE_ORDER)
        return self._order_repo.get_by_idempotency_key(key)

    def list_orders(self, actor: Actor, filters: Optional[Dict[str, Any]] = None):
        ensure_permitted(actor, Operation.VIEW_ORDERS)
        return self._order_repo.list(filters)

    def list_call_attempts(self, actor: Actor, filters: CallAttemptFilterDTO):
        """Call log; a call agent only ever sees their own attempts."""
        ensure_permitted(actor, Operation.VIEW_CALL_ATTEMPTS)
        query: Dict[str, Any] = {}
        if filters.order_id:
            query["order_id"] = filters.order_id
        if filters.agent_id:
            query["agent_id"] = filters.agent_id
        if filters.outcome:
            query["outcome"] = filters.outcome
        if filters.date_from:
            query["created_at__date__gte"] = filters.date_from
        if filters.date_to:
            query["created_at__date__lte"] = filters.date_to
        if sees_only_own_call_attempts(actor):
            query["agent_id"] = actor.id
        return self._order_repo.list_call_attempts(query)

    # ------------------------------------------------------------------
    # Unit-of-work helpers
    # ------------------------------------------------------------------

    def _lock(self, order_id: str) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _reload(self, order: Order) -> Order:
        return self._order_repo.get_by_id(str(order.id)) or order

    def _snapshot(self, order: Order) -> OrderSnapshot:
        return OrderSnapshot.from_order(
            order,
            has_confirmed_call_attempt=self._order_repo.has_confirmed_call_attempt(order.id),
        )

    def _context(
        self,
        actor: Actor,
        operation: Operation,
        snapshot: OrderSnapshot,
        target: Optional[str],
        **arguments: Any,
    ) -> TransitionContext:
        """Build the engine context and resolve the agent it will check."""
        context = TransitionContext(
            actor=actor, operation=operation, now=self._clock(), **arguments
        )

        if target == OrderStatus.CALL_ASSIGNED:
            agent_id = effective_call_agent_id(snapshot, context)
            user = self._user_repo.get_by_id(agent_id) if agent_id else None
            if user:
                context = replace(context, call_agent=CallAgentRecord.from_user(user))
        elif target in (OrderStatus.DELIVERY_AGENT_SELECTED, OrderStatus.DELIVERY_ASSIGNED):
            agent_id = resolve_delivery_agent_id(snapshot, context)
            agent = self._delivery_repo.get_by_id(agent_id) if agent_id else None
            if agent:
                context = replace(context, delivery_agent=DeliveryAgentRecord.from_agent(agent))
        return context

    def _plan(self, planner: Callable[..., TransitionPlan], *args: Any) -> TransitionPlan:
        try:
            return planner(*args)
        except DomainError as exc:
            snapshot = args[0]
            logger.warning(
                "order.transition_rejected",
                order_id=snapshot.id,
                status=snapshot.status.value,
                kind=exc.kind.value,
                reason=exc.reason.value if exc.reason is not None else None,
            )
            raise

    def _commit(self, order: Order, plan: TransitionPlan, actor: Actor, notes: str = "") -> Order:
        order = self._order_repo.apply_transition(
            order, plan, changed_by_id=actor.id, notes=notes
        )
        for agent_id, delta in plan.agent_load_adjustments.items():
            if delta:
                self._delivery_repo.adjust_load(agent_id, delta)
        logger.info(
            "order.transition_committed",
            order_id=plan.order_id,
            from_status=plan.from_status.value,
            to_status=plan.to_status.value,
            actor_id=actor.id,
        )
        return order

    def _audit(self, actor: Actor, action: str, plan: TransitionPlan) -> None:
        record_audit(
            actor_id=actor.id,
            action=action,
            target_type=TARGET_TYPE,
            target_id=plan.order_id,
            metadata=plan.audit_metadata,
        )
