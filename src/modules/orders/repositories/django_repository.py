"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  Multi-row
writes are wrapped in ``transaction.atomic()``; when called from
``OrderService`` they join the service's transaction as savepoints.

Concurrency control on transitions uses ``select_for_update()``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.core.models import OutboxEvent
from modules.core.serialization import to_json_payload
from modules.orders.constants import CallOutcome, OrderStatus
from modules.orders.events import CallAttemptLogged, OrderStatusChanged
from modules.orders.models import CallAttempt, Order, OrderItem, OrderStatusChange
from modules.orders.repositories.interfaces import IOrderRepository
from modules.orders.workflow.context import TransitionPlan

logger = structlog.get_logger(__name__)

_RELATED = ("customer", "call_assigned_to", "selected_delivery_agent", "delivery_agent")
_PREFETCH = ("items", "status_changes", "call_attempts")


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        order = Order(
            customer_id=data["customer_id"],
            shipping_cents=data.get("shipping_cents", 0),
            shipping_address=data.get("shipping_address", {}),
            idempotency_key=data.get("idempotency_key"),
            notes=data.get("notes", ""),
        )
        order.save()

        subtotal = 0
        items = data.get("items", [])
        for item_data in items:
            item = OrderItem(
                order=order,
                sku=item_data["sku"],
                title=item_data["title"],
                quantity=item_data["quantity"],
                unit_price_cents=item_data["unit_price_cents"],
            )
            item.save()
            subtotal += item.subtotal_cents

        order.subtotal_cents = subtotal
        order.total_cents = subtotal + order.shipping_cents
        order.save(update_fields=["subtotal_cents", "total_cents", "updated_at"])

        logger.info("order.persisted", order_id=str(order.id), item_count=len(items))
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Returns ``None`` for non-existent, deleted or invalid IDs."""
        try:
            return (
                Order.objects.alive()
                .select_related(*_RELATED)
                .prefetch_related(*_PREFETCH)
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Lock the order row (SELECT FOR UPDATE).

        Nullable relations are not joined: row locks cannot cover the
        nullable side of an outer join.
        """
        try:
            return (
                Order.objects.alive()
                .select_for_update()
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        return (
            Order.objects.select_related(*_RELATED)
            .prefetch_related(*_PREFETCH)
            .filter(idempotency_key=key)
            .first()
        )

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = Order.objects.alive().select_related(*_RELATED)
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist the order and flush its domain events to the outbox."""
        entity.save()

        events = entity.pull_domain_events()
        for event in events:
            _write_outbox(event)

        logger.info("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Soft-delete an order by ID."""
        order = self.get_by_id(id)
        if not order:
            return False
        order.delete()
        logger.info("order.soft_deleted", order_id=str(id))
        return True

    # ------------------------------------------------------------------
    # History and call attempts (append-only)
    # ------------------------------------------------------------------

    def add_history(
        self,
        order_id: UUID,
        to_status: str,
        from_status: Optional[str] = None,
        changed_by_id: Optional[str] = None,
        notes: str = "",
    ) -> OrderStatusChange:
        change = OrderStatusChange.objects.create(
            order_id=order_id,
            from_status=from_status,
            to_status=to_status,
            changed_by_id=changed_by_id,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            from_status=from_status,
            to_status=to_status,
        )
        return change

    def has_confirmed_call_attempt(self, order_id: UUID) -> bool:
        return CallAttempt.objects.filter(
            order_id=order_id, outcome=CallOutcome.CONFIRMED
        ).exists()

    @transaction.atomic
    def add_call_attempt(
        self, order_id: UUID, agent_id: str, outcome: str, notes: str = ""
    ) -> CallAttempt:
        attempt = CallAttempt.objects.create(
            order_id=order_id,
            agent_id=agent_id,
            outcome=outcome,
            notes=notes,
        )
        _write_outbox(
            CallAttemptLogged(
                aggregate_id=order_id,
                call_attempt_id=str(attempt.id),
                agent_id=str(agent_id),
                outcome=str(outcome),
            )
        )
        logger.info(
            "order.call_attempt_added",
            order_id=str(order_id),
            call_attempt_id=str(attempt.id),
            outcome=str(outcome),
        )
        return attempt

    def list_call_attempts(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = CallAttempt.objects.select_related("order", "agent")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    # ------------------------------------------------------------------
    # Workflow commit
    # ------------------------------------------------------------------

    @transaction.atomic
    def apply_transition(
        self,
        order: Order,
        plan: TransitionPlan,
        changed_by_id: Optional[str],
        notes: str = "",
    ) -> Order:
        """Commit a ``TransitionPlan``: status write first, then history.

        Both writes (plus the outbox row) share one transaction; a failure
        in any of them leaves the stored order untouched.
        """
        for field, value in plan.field_mutations.items():
            setattr(order, field, value)
        order.status = OrderStatus(plan.to_status)
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                from_status=plan.from_status.value,
                to_status=plan.to_status.value,
                changed_by_id=changed_by_id,
            )
        )
        self.save(order)

        self.add_history(
            order_id=order.id,
            to_status=plan.to_status,
            from_status=plan.from_status,
            changed_by_id=changed_by_id,
            notes=notes,
        )
        return order


def _write_outbox(event: Any) -> OutboxEvent:
    return OutboxEvent.objects.create(
        event_type=event.event_name,
        aggregate_id=str(event.aggregate_id),
        payload=to_json_payload(event),
        topic=event.topic,
    )
