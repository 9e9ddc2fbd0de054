"""
Health check endpoints for monitoring and load balancer integration.

- Liveness: the process answers
- Readiness: the database answers too
"""

import logging
import time
from typing import Any

from django.db import DEFAULT_DB_ALIAS, connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from django.views.decorators.cache import never_cache
from django.views.decorators.http import require_GET

logger = logging.getLogger(__name__)


@require_GET
@never_cache
def liveness_check(request: HttpRequest) -> JsonResponse:
    """
    Lightweight check that only verifies the application is running.

    Returns:
        200 OK with {"status": "alive"}
    """
    return JsonResponse({
        'status': 'alive',
        'timestamp': timezone.now().isoformat(),
    })


@require_GET
@never_cache
def readiness_check(request: HttpRequest) -> JsonResponse:
    """
    Readiness check: can the inventory store be reached?

    Returns:
        200 OK if ready to serve traffic
        503 Service Unavailable with reason "storage_unavailable" if not
    """
    database = check_database()
    if database['status'] != 'ok':
        return JsonResponse({
            'status': 'not_ready',
            'timestamp': timezone.now().isoformat(),
            'reason': 'storage_unavailable',
        }, status=503)

    return JsonResponse({
        'status': 'ready',
        'timestamp': timezone.now().isoformat(),
        'checks': {'database': database},
    })


def check_database(using: str = DEFAULT_DB_ALIAS) -> dict[str, Any]:
    """
    Check database connectivity and measure latency.

    Returns:
        dict with status and latency_ms; the driver's error text is only logged
    """
    start_time = time.time()

    try:
        with connections[using].cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except Exception:
        logger.exception("Database health check failed")
        return {'status': 'error'}

    latency_ms = (time.time() - start_time) * 1000

    # Warn if latency is high
    if latency_ms > 100:
        logger.warning(f"Database latency is high: {latency_ms:.2f}ms")

    return {
        'status': 'ok',
        'latency_ms': round(latency_ms, 2),
    }
