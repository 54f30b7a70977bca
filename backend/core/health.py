import logging

from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)

SERVICE_VERSION = "1.0.0"


def health_check(request):
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError:
        logger.warning("health_check_database_unavailable", exc_info=True)
        return JsonResponse(
            {
                "status": "unhealthy",
                "database": "disconnected",
                "version": SERVICE_VERSION,
            },
            status=503,
        )

    return JsonResponse(
        {
            "status": "ok",
            "database": "connected",
            "version": SERVICE_VERSION,
        },
        status=200,
    )
