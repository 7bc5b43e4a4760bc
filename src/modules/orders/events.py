"""Domain events for the Orders bounded context.

Collected on the ``Order`` aggregate and written to the transactional
outbox by ``OrderDjangoRepository.save``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderEvent(DomainEvent):
    topic = "orders"


@dataclass(frozen=True)
class OrderCreated(OrderEvent):
    """Raised when an order is created."""

    customer_id: Optional[str] = None
    total_cents: int = 0


@dataclass(frozen=True)
class OrderStatusChanged(OrderEvent):
    """Raised for every committed status transition."""

    from_status: Optional[str] = None
    to_status: str = ""
    changed_by_id: Optional[str] = None


@dataclass(frozen=True)
class CallAttemptLogged(OrderEvent):
    """Raised when a call attempt is recorded, whatever its outcome."""

    call_attempt_id: Optional[str] = None
    agent_id: Optional[str] = None
    outcome: str = ""
