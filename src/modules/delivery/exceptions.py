"""Delivery agent domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import Conflict, NotFound


class DeliveryAgentNotFound(NotFound):
    """The delivery agent does not exist or has been soft-deleted."""

    default_message = "Delivery agent not found."


class DeliveryAgentAlreadyExists(Conflict):
    """Another delivery agent already uses this phone number."""

    default_message = "A delivery agent with this phone number already exists."


class DeliveryAgentHasActiveOrders(Conflict):
    """The agent still carries orders that are assigned or out for delivery."""

    default_message = "Delivery agent has active orders and cannot be deleted."
