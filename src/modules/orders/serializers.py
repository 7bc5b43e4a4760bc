"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import CallOutcome, OrderStatus
from modules.orders.models import CallAttempt, Order, OrderItem, OrderStatusChange

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderItemSerializer(serializers.Serializer):
    """Validates a single item in an order creation request."""

    sku = serializers.CharField(max_length=64)
    title = serializers.CharField(max_length=255)
    quantity = serializers.IntegerField(min_value=1)
    unit_price_cents = serializers.IntegerField(min_value=0)


class ShippingAddressSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=150)
    phone = serializers.CharField(max_length=20)
    line1 = serializers.CharField(max_length=255)
    line2 = serializers.CharField(max_length=255, required=False, default="", allow_blank=True)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100, required=False, default="", allow_blank=True)
    postal_code = serializers.CharField(
        max_length=20, required=False, default="", allow_blank=True
    )
    country = serializers.CharField(max_length=100, required=False, default="", allow_blank=True)


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    customer_id = serializers.UUIDField()
    items = CreateOrderItemSerializer(many=True, allow_empty=False)
    shipping_address = ShippingAddressSerializer()
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class UpdateStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class AssignCallAgentSerializer(serializers.Serializer):
    agent_id = serializers.UUIDField()
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class LogCallAttemptSerializer(serializers.Serializer):
    outcome = serializers.ChoiceField(choices=CallOutcome.choices)
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class SelectDeliveryAgentSerializer(serializers.Serializer):
    agent_id = serializers.UUIDField()
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class AssignDeliveryAgentSerializer(serializers.Serializer):
    """``agent_id`` omitted binds the selected agent."""

    agent_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    override = serializers.BooleanField(required=False, default=False)
    reason = serializers.CharField(required=False, default="", allow_blank=True)
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class FastForwardSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, default="", allow_blank=True)


class CallAttemptQuerySerializer(serializers.Serializer):
    order = serializers.UUIDField(required=False, source="order_id")
    agent = serializers.UUIDField(required=False, source="agent_id")
    outcome = serializers.ChoiceField(choices=CallOutcome.choices, required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            "id",
            "sku",
            "title",
            "quantity",
            "unit_price_cents",
            "subtotal_cents",
        ]
        read_only_fields = fields


class StatusChangeSerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    changed_by_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = OrderStatusChange
        fields = [
            "id",
            "from_status",
            "to_status",
            "changed_by_id",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class CallAttemptSerializer(serializers.ModelSerializer):
    order_id = serializers.UUIDField(read_only=True)
    agent_id = serializers.UUIDField(read_only=True)
    agent_name = serializers.CharField(source="agent.display_name", read_only=True)

    class Meta:
        model = CallAttempt
        fields = [
            "id",
            "order_id",
            "agent_id",
            "agent_name",
            "outcome",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items, history and call log."""

    customer_id = serializers.UUIDField(read_only=True)
    call_assigned_to_id = serializers.UUIDField(read_only=True, allow_null=True)
    call_assigned_by_id = serializers.UUIDField(read_only=True, allow_null=True)
    selected_delivery_agent_id = serializers.UUIDField(read_only=True, allow_null=True)
    delivery_agent_id = serializers.UUIDField(read_only=True, allow_null=True)
    items = OrderItemSerializer(many=True, read_only=True)
    status_changes = StatusChangeSerializer(many=True, read_only=True)
    call_attempts = CallAttemptSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "status",
            "subtotal_cents",
            "shipping_cents",
            "total_cents",
            "shipping_address",
            "notes",
            "call_assigned_to_id",
            "call_assigned_by_id",
            "call_assigned_at",
            "call_confirmed_at",
            "call_notes",
            "selected_delivery_agent_id",
            "delivery_agent_id",
            "created_at",
            "updated_at",
            "items",
            "status_changes",
            "call_attempts",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    customer_id = serializers.UUIDField(read_only=True)
    customer_name = serializers.CharField(source="customer.display_name", read_only=True)
    call_assigned_to_id = serializers.UUIDField(read_only=True, allow_null=True)
    delivery_agent_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "customer_name",
            "status",
            "total_cents",
            "call_assigned_to_id",
            "delivery_agent_id",
            "created_at",
        ]
        read_only_fields = fields
