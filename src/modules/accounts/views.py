"""Account API views."""

from __future__ import annotations

from rest_framework import mixins
from rest_framework.viewsets import GenericViewSet

from modules.accounts.actors import actor_from_request
from modules.accounts.models import User
from modules.accounts.repositories.django_repository import UserDjangoRepository
from modules.accounts.serializers import CallAgentQuerySerializer, CallAgentSerializer
from modules.orders.workflow import Operation, ensure_permitted


class CallAgentViewSet(mixins.ListModelMixin, GenericViewSet):
    """GET /api/v1/call-agents/

    Call agents for the assignment picker, ACTIVE by default, annotated
    with the number of orders waiting for their call.
    """

    queryset = User.objects.none()
    serializer_class = CallAgentSerializer
    filter_backends = []

    def get_queryset(self):
        ensure_permitted(actor_from_request(self.request), Operation.VIEW_CALL_AGENTS)
        query = CallAgentQuerySerializer(data=self.request.query_params)
        query.is_valid(raise_exception=True)
        return UserDjangoRepository().list_call_agents(
            status=query.validated_data["status"] or None,
            search=query.validated_data["search"] or None,
        )
