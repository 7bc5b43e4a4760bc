"""Order, OrderItem, CallAttempt and OrderStatusChange models.

- ``Order`` is the aggregate root.  Its status only changes through
  ``OrderService``, which commits the workflow engine's plan together with
  exactly one ``OrderStatusChange`` row in a single transaction.
- ``OrderItem`` snapshots title and unit price at creation time; amounts
  are integer cents.
- ``CallAttempt`` and ``OrderStatusChange`` are append-only facts.
- Order number is a human-readable identifier (``ORD-YYYYMMDD-XXXXXX``);
  the UUIDv7 ``id`` is used for references and API lookups.
- Customer and agent FKs use PROTECT so history never dangles.
"""

from __future__ import annotations

import secrets
from typing import Any

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import AppendOnlyModel, BaseModel, SoftDeleteModel
from modules.orders.constants import ORDER_NUMBER_MAX_RETRIES, CallOutcome, OrderStatus
from modules.orders.workflow.transitions import is_terminal, is_valid_transition
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


class Order(DomainEventMixin, SoftDeleteModel):
    """Order aggregate root.

    ``idempotency_key`` is nullable: only orders created via the public API
    carry a client-provided key.
    """

    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    customer: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    status: models.CharField = models.CharField(
        max_length=30,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    subtotal_cents: models.PositiveIntegerField = models.PositiveIntegerField(default=0)
    shipping_cents: models.PositiveIntegerField = models.PositiveIntegerField(default=0)
    total_cents: models.PositiveIntegerField = models.PositiveIntegerField(default=0)
    shipping_address: models.JSONField = models.JSONField(default=dict)
    notes: models.TextField = models.TextField(blank=True, default="")

    # Call phase
    call_assigned_to: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="call_assignments",
    )
    call_assigned_by: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )
    call_assigned_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    call_confirmed_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    call_notes: models.TextField = models.TextField(blank=True, default="")

    # Delivery phase
    selected_delivery_agent: models.ForeignKey = models.ForeignKey(
        "delivery.DeliveryAgent",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="selected_orders",
    )
    delivery_agent: models.ForeignKey = models.ForeignKey(
        "delivery.DeliveryAgent",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="assigned_orders",
    )

    idempotency_key: models.CharField = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(
                fields=["call_assigned_to", "status"],
                name="orders_call_agent_status_idx",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    def can_transition_to(self, new_status: str) -> bool:
        """Graph check only; prerequisites live in the workflow engine."""
        return is_valid_transition(self.status, new_status)

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``ORD-YYYYMMDD-XXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"ORD-{now:%Y%m%d}-{suffix}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Line item snapshot; ``subtotal_cents`` is recalculated on every save."""

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    sku: models.CharField = models.CharField(max_length=64)
    title: models.CharField = models.CharField(max_length=255)
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price_cents: models.PositiveIntegerField = models.PositiveIntegerField()
    subtotal_cents: models.PositiveIntegerField = models.PositiveIntegerField(
        editable=False
    )

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal_cents = self.quantity * self.unit_price_cents
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.sku} x{self.quantity}"


class CallAttempt(AppendOnlyModel):
    """One contact attempt with the customer and its outcome."""

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="call_attempts",
    )
    agent: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="call_attempts",
    )
    outcome: models.CharField = models.CharField(
        max_length=20,
        choices=CallOutcome.choices,
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_call_attempts"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["order", "outcome"],
                name="call_attempt_order_outcome_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.outcome}"


class OrderStatusChange(AppendOnlyModel):
    """Append-only audit trail: one row per committed status mutation.

    ``from_status`` is ``None`` only for the creation row.  ``changed_by``
    is ``None`` for system-initiated changes.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_changes",
    )
    from_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=30,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    to_status: models.CharField = models.CharField(
        max_length=30,
        choices=OrderStatus.choices,
    )
    changed_by: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_changes"
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["order", "created_at"],
                name="osc_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.from_status} -> {self.to_status}"
