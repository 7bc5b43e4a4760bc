"""Delivery agent service layer.

CRUD for the delivery agent registry.  Every command takes the acting
``Actor`` explicitly and is gated through the order role policy.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.db import transaction

from modules.core.audit import record_audit
from modules.core.models import AuditAction
from modules.delivery.exceptions import (
    DeliveryAgentAlreadyExists,
    DeliveryAgentHasActiveOrders,
    DeliveryAgentNotFound,
)
from modules.orders.workflow.context import Operation
from modules.orders.workflow.policies import ensure_permitted

if TYPE_CHECKING:
    from modules.accounts.actors import Actor
    from modules.delivery.dtos import CreateDeliveryAgentDTO, UpdateDeliveryAgentDTO
    from modules.delivery.models import DeliveryAgent
    from modules.delivery.repositories.interfaces import IDeliveryAgentRepository

logger = structlog.get_logger(__name__)

TARGET_TYPE = "DeliveryAgent"


class DeliveryAgentService:
    def __init__(self, repository: IDeliveryAgentRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_agent(self, dto: CreateDeliveryAgentDTO, actor: Actor) -> DeliveryAgent:
        """Register a delivery agent.

        Raises:
            Forbidden: actor is not an admin.
            DeliveryAgentAlreadyExists: phone number already registered.
        """
        ensure_permitted(actor, Operation.MANAGE_DELIVERY_AGENTS)
        if self._repo.get_by_phone(dto.phone):
            raise DeliveryAgentAlreadyExists()

        agent = self._repo.create({**dto.model_dump(), "created_by_id": actor.id})
        record_audit(
            actor_id=actor.id,
            action=AuditAction.DELIVERY_AGENT_CREATED,
            target_type=TARGET_TYPE,
            target_id=str(agent.id),
            metadata={"name": agent.name, "vehicle_type": agent.vehicle_type},
        )
        return agent

    @transaction.atomic
    def update_agent(
        self, agent_id: str, dto: UpdateDeliveryAgentDTO, actor: Actor
    ) -> DeliveryAgent:
        """Apply a partial update.

        Raises:
            DeliveryAgentNotFound: unknown or deleted agent.
            DeliveryAgentAlreadyExists: new phone belongs to another agent.
        """
        ensure_permitted(actor, Operation.MANAGE_DELIVERY_AGENTS)
        agent = self._repo.get_by_id(agent_id)
        if not agent:
            raise DeliveryAgentNotFound(f"Delivery agent {agent_id} not found.")

        changes = dto.model_dump(exclude_none=True)
        phone = changes.get("phone")
        if phone and phone != agent.phone:
            holder = self._repo.get_by_phone(phone)
            if holder and holder.id != agent.id:
                raise DeliveryAgentAlreadyExists()

        for field, value in changes.items():
            setattr(agent, field, value)
        self._repo.save(agent)

        logger.info("delivery_agent.updated", agent_id=str(agent.id), fields=sorted(changes))
        record_audit(
            actor_id=actor.id,
            action=AuditAction.DELIVERY_AGENT_UPDATED,
            target_type=TARGET_TYPE,
            target_id=str(agent.id),
            metadata={"fields": sorted(changes)},
        )
        return agent

    @transaction.atomic
    def delete_agent(self, agent_id: str, actor: Actor) -> None:
        """Soft-delete an agent that carries no active orders.

        Raises:
            DeliveryAgentNotFound: unknown or already deleted agent.
            DeliveryAgentHasActiveOrders: agent still has assigned orders, or is
                selected on an order awaiting assignment.
        """
        ensure_permitted(actor, Operation.MANAGE_DELIVERY_AGENTS)
        agent = self._repo.get_by_id(agent_id)
        if not agent:
            raise DeliveryAgentNotFound(f"Delivery agent {agent_id} not found.")
        if agent.active_order_count > 0:
            raise DeliveryAgentHasActiveOrders(
                f"Delivery agent has {agent.active_order_count} active order(s)."
            )
        pending = self._repo.count_pending_selections(agent_id)
        if pending:
            raise DeliveryAgentHasActiveOrders(
                f"Delivery agent is selected on {pending} order(s) awaiting assignment."
            )

        self._repo.delete(agent_id)
        record_audit(
            actor_id=actor.id,
            action=AuditAction.DELIVERY_AGENT_DELETED,
            target_type=TARGET_TYPE,
            target_id=str(agent_id),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_agent(self, agent_id: str, actor: Actor) -> DeliveryAgent:
        ensure_permitted(actor, Operation.MANAGE_DELIVERY_AGENTS)
        agent = self._repo.get_by_id(agent_id)
        if not agent:
            raise DeliveryAgentNotFound(f"Delivery agent {agent_id} not found.")
        return agent

    def list_agents(self, actor: Actor, filters: Optional[Dict[str, Any]] = None):
        ensure_permitted(actor, Operation.MANAGE_DELIVERY_AGENTS)
        return self._repo.list(filters)
