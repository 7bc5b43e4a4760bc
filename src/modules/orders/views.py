"""Order API views.

Exposes ``OrderService`` via HTTP using DRF ViewSets.  Views only parse
input and serialize output: domain errors propagate to the project-wide
exception handler, which renders them with their HTTP status.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import mixins, status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.accounts.actors import actor_from_request
from modules.accounts.repositories.django_repository import UserDjangoRepository
from modules.delivery.repositories.django_repository import DeliveryAgentDjangoRepository
from modules.orders.dtos import (
    AssignCallAgentDTO,
    AssignDeliveryAgentDTO,
    CallAttemptFilterDTO,
    CreateOrderDTO,
    FastForwardDTO,
    LogCallAttemptDTO,
    SelectDeliveryAgentDTO,
    UpdateStatusDTO,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import CallAttempt, Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    AssignCallAgentSerializer,
    AssignDeliveryAgentSerializer,
    CallAttemptQuerySerializer,
    CallAttemptSerializer,
    CreateOrderSerializer,
    FastForwardSerializer,
    LogCallAttemptSerializer,
    OrderListSerializer,
    OrderSerializer,
    SelectDeliveryAgentSerializer,
    UpdateStatusSerializer,
)
from modules.orders.services import OrderService


def build_order_service() -> OrderService:
    return OrderService(
        order_repository=OrderDjangoRepository(),
        user_repository=UserDjangoRepository(),
        delivery_agent_repository=DeliveryAgentDjangoRepository(),
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Does **not** extend ``ModelViewSet``: all ORM access goes through the
    service/repository layer.
    """

    queryset = Order.objects.alive()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total_cents", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create / List / Retrieve / Delete
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Supports idempotency via the ``Idempotency-Key`` header.
        Returns 200 if the key was already used, 201 for new orders.
        """
        actor = actor_from_request(request)
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        idempotency_key = request.headers.get("Idempotency-Key")
        if idempotency_key:
            existing = self._service.find_by_idempotency_key(idempotency_key, actor)
            if existing:
                return Response(OrderSerializer(existing).data, status=status.HTTP_200_OK)

        dto = CreateOrderDTO(**serializer.validated_data, idempotency_key=idempotency_key)
        order = self._service.create_order(dto, actor)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (status, phase, customer, agents, date range, total range,
        search) is handled by ``OrderFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self._service.list_orders(actor_from_request(request)))
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order(pk, actor_from_request(request))
        return Response(OrderSerializer(order).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/ (PENDING or CANCELLED only)."""
        self._service.delete_order(pk, actor_from_request(request))
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------------------------------------
    # Generic status update
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Same rules as the dedicated workflow actions, prerequisites included.
        """
        actor = actor_from_request(request)
        serializer = UpdateStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.update_status(
            pk, UpdateStatusDTO(**serializer.validated_data), actor
        )
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Workflow actions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="assign-call-agent")
    def assign_call_agent(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/assign-call-agent/"""
        actor = actor_from_request(request)
        serializer = AssignCallAgentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.assign_call_agent(
            pk, AssignCallAgentDTO(**serializer.validated_data), actor
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="call-attempt")
    def call_attempt(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/call-attempt/

        Always 201 once the attempt is stored.  ``transition_error`` carries
        the rejection when the implied status change was not allowed.
        """
        actor = actor_from_request(request)
        serializer = LogCallAttemptSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self._service.log_call_attempt(
            pk, LogCallAttemptDTO(**serializer.validated_data), actor
        )
        return Response(
            {
                "call_attempt": CallAttemptSerializer(result.call_attempt).data,
                "order": OrderSerializer(result.order).data,
                "status_changed": result.status_changed,
                "transition_error": (
                    result.transition_error.as_dict() if result.transition_error else None
                ),
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["post"], url_path="select-delivery-agent")
    def select_delivery_agent(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/select-delivery-agent/"""
        actor = actor_from_request(request)
        serializer = SelectDeliveryAgentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.select_delivery_agent(
            pk, SelectDeliveryAgentDTO(**serializer.validated_data), actor
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="assign-delivery-agent")
    def assign_delivery_agent(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/assign-delivery-agent/"""
        actor = actor_from_request(request)
        serializer = AssignDeliveryAgentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.assign_delivery_agent(
            pk, AssignDeliveryAgentDTO(**serializer.validated_data), actor
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="fast-forward")
    def fast_forward(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/fast-forward/"""
        actor = actor_from_request(request)
        serializer = FastForwardSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.fast_forward(
            pk, FastForwardDTO(**serializer.validated_data), actor
        )
        return Response(OrderSerializer(order).data)


class CallAttemptViewSet(mixins.ListModelMixin, GenericViewSet):
    """GET /api/v1/call-attempts/ (call agents see their own attempts only)."""

    queryset = CallAttempt.objects.all()
    serializer_class = CallAttemptSerializer
    filter_backends = [OrderingFilter]
    ordering_fields = ["created_at"]
    ordering = ["-created_at"]

    def get_queryset(self):
        query = CallAttemptQuerySerializer(data=self.request.query_params)
        query.is_valid(raise_exception=True)
        return build_order_service().list_call_attempts(
            actor_from_request(self.request),
            CallAttemptFilterDTO(**query.validated_data),
        )
