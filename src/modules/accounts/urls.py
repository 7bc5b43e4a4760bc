"""Account URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.accounts.views import CallAgentViewSet

router = DefaultRouter(trailing_slash=True)
router.register("call-agents", CallAgentViewSet, basename="call-agent")

urlpatterns = router.urls
