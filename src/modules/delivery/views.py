"""Delivery agent API views.

Thin adapters over ``DeliveryAgentService``; domain errors are rendered
by the project-wide exception handler.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.accounts.actors import actor_from_request
from modules.delivery.dtos import CreateDeliveryAgentDTO, UpdateDeliveryAgentDTO
from modules.delivery.filters import DeliveryAgentFilter
from modules.delivery.models import DeliveryAgent
from modules.delivery.repositories.django_repository import DeliveryAgentDjangoRepository
from modules.delivery.serializers import DeliveryAgentInputSerializer, DeliveryAgentSerializer
from modules.delivery.services import DeliveryAgentService


class DeliveryAgentViewSet(GenericViewSet):
    """CRUD for delivery agents (admins only)."""

    queryset = DeliveryAgent.objects.alive()
    serializer_class = DeliveryAgentSerializer
    filterset_class = DeliveryAgentFilter
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    ordering_fields = ["name", "created_at", "active_order_count"]
    ordering = ["name"]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = DeliveryAgentService(DeliveryAgentDjangoRepository())

    def list(self, request: Request) -> Response:
        """GET /api/v1/delivery-agents/"""
        queryset = self.filter_queryset(
            self._service.list_agents(actor_from_request(request))
        )
        page = self.paginate_queryset(queryset)
        serializer = DeliveryAgentSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/delivery-agents/{pk}/"""
        agent = self._service.get_agent(pk, actor_from_request(request))
        return Response(DeliveryAgentSerializer(agent).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/delivery-agents/"""
        actor = actor_from_request(request)
        serializer = DeliveryAgentInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        agent = self._service.create_agent(
            CreateDeliveryAgentDTO(**serializer.validated_data), actor
        )
        return Response(DeliveryAgentSerializer(agent).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/delivery-agents/{pk}/"""
        actor = actor_from_request(request)
        serializer = DeliveryAgentInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        agent = self._service.update_agent(
            pk, UpdateDeliveryAgentDTO(**serializer.validated_data), actor
        )
        return Response(DeliveryAgentSerializer(agent).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/delivery-agents/{pk}/"""
        self._service.delete_agent(pk, actor_from_request(request))
        return Response(status=status.HTTP_204_NO_CONTENT)
