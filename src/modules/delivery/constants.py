"""Delivery agent constants."""

from django.db import models


class VehicleType(models.TextChoices):
    BIKE = "BIKE", "Bike"
    CAR = "CAR", "Car"
    VAN = "VAN", "Van"
    TRUCK = "TRUCK", "Truck"


class AgentAvailability(models.TextChoices):
    AVAILABLE = "AVAILABLE", "Available"
    BUSY = "BUSY", "Busy"
    OFFLINE = "OFFLINE", "Offline"
