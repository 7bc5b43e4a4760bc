"""Account DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.accounts.constants import UserStatus
from modules.accounts.models import User


class CallAgentQuerySerializer(serializers.Serializer):
    """Empty ``status`` lists agents in every status."""

    status = serializers.ChoiceField(
        choices=UserStatus.choices, required=False, allow_blank=True, default=UserStatus.ACTIVE
    )
    search = serializers.CharField(required=False, allow_blank=True, default="")


class CallAgentSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="display_name", read_only=True)
    open_order_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "name",
            "email",
            "phone",
            "status",
            "open_order_count",
        ]
        read_only_fields = fields
