import time
from typing import Any, Callable, Dict

import structlog
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.accounts.actors import actor_from_request

logger = structlog.get_logger(__name__)


def _ping_database() -> None:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _ping_cache() -> None:
    # django-redis in production, locmem in tests
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")


def _probe(name: str, ping: Callable[[], None]) -> Dict[str, Any]:
    started = time.monotonic()
    try:
        ping()
    except Exception:
        logger.error("health.service_down", service=name, exc_info=True)
        return {"status": "down"}
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - started) * 1000, 2),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    """Unauthenticated liveness probe: 200 when every backing service answers."""
    services = {
        "database": _probe("database", _ping_database),
        "cache": _probe("cache", _ping_cache),
    }
    healthy = all(service["status"] == "up" for service in services.values())
    status = "healthy" if healthy else "unhealthy"

    logger.info("health.checked", status=status)
    return JsonResponse(
        {"status": status, "timestamp": timezone.now().isoformat(), "services": services},
        status=200 if healthy else 503,
    )


class MeView(APIView):
    """The actor every service call receives for this request.

    * No token  -> 401
    * Bad token -> 401
    * Valid JWT -> 200 with id and role
    """

    permission_classes = [IsAuthenticated]

    def get(self, request: HttpRequest) -> Response:
        actor = actor_from_request(request)
        return Response(
            {
                "id": actor.id,
                "role": actor.role.value,
                "username": request.user.get_username(),
            }
        )
