"""Order repository interface.

Extends ``IRepository[Order]`` with what the workflow needs: row locking,
the append-only status history and call attempts, and
``apply_transition`` which commits a workflow plan.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository, Queryable

if TYPE_CHECKING:
    from modules.orders.models import CallAttempt, Order, OrderStatusChange
    from modules.orders.workflow.context import TransitionPlan


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate includes OrderItem children, CallAttempt facts and
    OrderStatusChange records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` must include ``customer_id``, ``items`` (dicts with ``sku``,
        ``title``, ``quantity``, ``unit_price_cents``), ``shipping_cents`` and
        ``shipping_address``; optionally ``idempotency_key`` and ``notes``.
        """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve a live order with prefetched children."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve a live order holding a row-level lock."""

    @abstractmethod
    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Retrieve an order by its idempotency key."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Queryable[Order]:
        """List live orders with optional filters."""

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        to_status: str,
        from_status: Optional[str] = None,
        changed_by_id: Optional[str] = None,
        notes: str = "",
    ) -> OrderStatusChange:
        """Append one row to the order's status history."""

    @abstractmethod
    def has_confirmed_call_attempt(self, order_id: UUID) -> bool:
        """Whether any CONFIRMED call attempt exists for the order."""

    @abstractmethod
    def add_call_attempt(
        self, order_id: UUID, agent_id: str, outcome: str, notes: str = ""
    ) -> CallAttempt:
        """Append one call attempt."""

    @abstractmethod
    def list_call_attempts(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> Queryable[CallAttempt]:
        """List call attempts with optional filters."""

    @abstractmethod
    def apply_transition(
        self,
        order: Order,
        plan: TransitionPlan,
        changed_by_id: Optional[str],
        notes: str = "",
    ) -> Order:
        """Write the plan's mutations and status, then its history row."""
