import logging

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse

from apps.inventory.services import catalog_breaker

logger = logging.getLogger(__name__)


def _database():
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError as e:
        logger.error("Health check: database unreachable: %s", e)
        return "error"
    return "ok"


def _cache():
    # django_redis swallows connection errors, so a failed round trip reads as a miss
    cache.set("health:ping", "pong", timeout=5)
    return "ok" if cache.get("health:ping") == "pong" else "degraded"


def health_check(request):
    """
    Liveness check. Stock sync being tripped degrades the report but the
    shop keeps serving from local stock levels.
    """
    components = {
        "db": _database(),
        "cache": _cache(),
        "stock_sync": "open" if catalog_breaker.is_open else "ok",
    }
    healthy = components["db"] == "ok"
    return JsonResponse(
        {"status": "ok" if healthy else "error", "components": components},
        status=200 if healthy else 503,
    )
