"""Delivery agent repositories package."""

from modules.delivery.repositories.django_repository import DeliveryAgentDjangoRepository
from modules.delivery.repositories.interfaces import IDeliveryAgentRepository

__all__ = ["DeliveryAgentDjangoRepository", "IDeliveryAgentRepository"]
