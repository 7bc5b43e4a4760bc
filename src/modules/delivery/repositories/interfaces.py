"""Delivery agent repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from modules.core.repositories.interfaces import IRepository, Queryable

if TYPE_CHECKING:
    from modules.delivery.models import DeliveryAgent


class IDeliveryAgentRepository(IRepository["DeliveryAgent"]):
    @abstractmethod
    def create(self, data: Dict[str, Any]) -> DeliveryAgent:
        """Create a delivery agent."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[DeliveryAgent]:
        """Retrieve a non-deleted agent; ``None`` for unknown or invalid ids."""

    @abstractmethod
    def get_by_phone(self, phone: str) -> Optional[DeliveryAgent]:
        """Retrieve any agent (deleted included) holding ``phone``."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Queryable[DeliveryAgent]:
        """List non-deleted agents."""

    @abstractmethod
    def count_pending_selections(self, id: str) -> int:
        """Live DELIVERY_AGENT_SELECTED orders that select this agent."""

    @abstractmethod
    def adjust_load(self, id: str, delta: int) -> None:
        """Atomically add ``delta`` to ``active_order_count`` (floored at 0)."""
