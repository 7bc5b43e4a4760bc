"""Delivery agent registry.

``active_order_count`` is maintained by the order workflow: it goes up
when an order is bound to the agent (DELIVERY_ASSIGNED) and down when the
order leaves the delivery leg (delivered, returned or cancelled).
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import SoftDeleteModel
from modules.delivery.constants import AgentAvailability, VehicleType


class DeliveryAgent(SoftDeleteModel):
    name = models.CharField(max_length=150)
    phone = models.CharField(max_length=20, unique=True)
    email = models.EmailField(blank=True, default="")
    vehicle_type = models.CharField(
        max_length=10,
        choices=VehicleType.choices,
        default=VehicleType.BIKE,
    )
    vehicle_number = models.CharField(max_length=30, blank=True, default="")
    address = models.TextField(blank=True, default="")
    status = models.CharField(
        max_length=10,
        choices=AgentAvailability.choices,
        default=AgentAvailability.AVAILABLE,
    )
    is_active = models.BooleanField(default=True)
    active_order_count = models.PositiveIntegerField(default=0)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        db_table = "delivery_agents"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["status", "is_active"], name="delivery_status_active_idx"),
        ]

    @property
    def is_assignable(self) -> bool:
        return self.is_active and not self.is_deleted

    def __str__(self) -> str:
        return f"{self.name} ({self.phone})"
