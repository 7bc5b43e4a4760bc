"""Django ORM implementation of the DeliveryAgent repository."""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db.models import F, QuerySet
from django.db.models.functions import Greatest
from django.utils import timezone

from modules.delivery.models import DeliveryAgent
from modules.delivery.repositories.interfaces import IDeliveryAgentRepository
from modules.orders.constants import OrderStatus

logger = structlog.get_logger(__name__)


class DeliveryAgentDjangoRepository(IDeliveryAgentRepository):
    """Concrete DeliveryAgent repository backed by Django ORM."""

    def create(self, data: Dict[str, Any]) -> DeliveryAgent:
        agent = DeliveryAgent.objects.create(**data)
        logger.info("delivery_agent.created", agent_id=str(agent.id))
        return agent

    def get_by_id(self, id: str) -> Optional[DeliveryAgent]:
        try:
            return DeliveryAgent.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_phone(self, phone: str) -> Optional[DeliveryAgent]:
        return DeliveryAgent.objects.filter(phone=phone).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = DeliveryAgent.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def save(self, entity: DeliveryAgent) -> DeliveryAgent:
        entity.save()
        return entity

    def delete(self, id: str) -> bool:
        """Soft-delete an agent by ID."""
        agent = self.get_by_id(id)
        if not agent:
            return False
        agent.delete()
        logger.info("delivery_agent.soft_deleted", agent_id=str(id))
        return True

    def count_pending_selections(self, id: str) -> int:
        return DeliveryAgent.objects.filter(
            id=id,
            selected_orders__status=OrderStatus.DELIVERY_AGENT_SELECTED,
            selected_orders__deleted_at__isnull=True,
        ).count()

    def adjust_load(self, id: str, delta: int) -> None:
        updated = DeliveryAgent.objects.filter(id=id).update(
            active_order_count=Greatest(F("active_order_count") + delta, 0),
            updated_at=timezone.now(),
        )
        logger.info(
            "delivery_agent.load_adjusted",
            agent_id=str(id),
            delta=delta,
            updated=updated,
        )
