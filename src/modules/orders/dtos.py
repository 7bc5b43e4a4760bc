"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.orders.constants import CallOutcome, OrderStatus

# ---------------------------------------------------------------------------
# Order creation
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """One line item; title and price are snapshotted onto the order."""

    model_config = ConfigDict(frozen=True)

    sku: str
    title: str
    quantity: int
    unit_price_cents: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @field_validator("unit_price_cents")
    @classmethod
    def price_must_not_be_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Unit price cannot be negative.")
        return v


class ShippingAddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    full_name: str
    phone: str
    line1: str
    line2: str = ""
    city: str
    state: str = ""
    postal_code: str = ""
    country: str = ""


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``items`` must contain at least one item.
    - The same SKU may appear only once.
    """

    model_config = ConfigDict(frozen=True)

    customer_id: UUID
    items: List[CreateOrderItemDTO]
    shipping_address: ShippingAddressDTO
    notes: Optional[str] = ""
    idempotency_key: Optional[str] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @model_validator(mode="after")
    def no_duplicate_skus(self):
        skus = [item.sku for item in self.items]
        if len(skus) != len(set(skus)):
            raise ValueError("Duplicate SKUs are not allowed in the same order.")
        return self


# ---------------------------------------------------------------------------
# Workflow commands
# ---------------------------------------------------------------------------


class AssignCallAgentDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    agent_id: UUID
    notes: str = ""


class LogCallAttemptDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: CallOutcome
    notes: str = ""


class SelectDeliveryAgentDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    agent_id: UUID
    notes: str = ""


class AssignDeliveryAgentDTO(BaseModel):
    """``agent_id`` omitted means "the selected agent".

    A different agent is an override: SUPER_ADMIN only, with ``override``
    set and a non-empty ``reason``.
    """

    model_config = ConfigDict(frozen=True)

    agent_id: Optional[UUID] = None
    override: bool = False
    reason: str = ""
    notes: str = ""


class FastForwardDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: str = ""


class UpdateStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: OrderStatus
    notes: str = ""


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class CallAttemptFilterDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: Optional[UUID] = None
    agent_id: Optional[UUID] = None
    outcome: Optional[CallOutcome] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
