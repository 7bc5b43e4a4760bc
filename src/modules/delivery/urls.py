"""Delivery agent URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.delivery.views import DeliveryAgentViewSet

router = DefaultRouter(trailing_slash=True)
router.register("delivery-agents", DeliveryAgentViewSet, basename="delivery-agent")

urlpatterns = router.urls
