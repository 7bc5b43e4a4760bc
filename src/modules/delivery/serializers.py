"""Delivery agent DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.delivery.constants import AgentAvailability, VehicleType
from modules.delivery.models import DeliveryAgent


class DeliveryAgentInputSerializer(serializers.Serializer):
    """Validates create (all required fields) and partial update payloads."""

    name = serializers.CharField(max_length=150)
    phone = serializers.CharField(max_length=20)
    email = serializers.EmailField(required=False, allow_blank=True)
    vehicle_type = serializers.ChoiceField(choices=VehicleType.choices, required=False)
    vehicle_number = serializers.CharField(max_length=30, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=AgentAvailability.choices, required=False)
    is_active = serializers.BooleanField(required=False)


class DeliveryAgentSerializer(serializers.ModelSerializer):
    class Meta:
        model = DeliveryAgent
        fields = [
            "id",
            "name",
            "phone",
            "email",
            "vehicle_type",
            "vehicle_number",
            "address",
            "status",
            "is_active",
            "active_order_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
