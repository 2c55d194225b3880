"""Health reporting shared by ``/health`` and ``/api/users/health``."""

import time
from datetime import UTC, datetime

from fastapi import status
from fastapi.responses import JSONResponse

from heroes_portal.adapters.database import Database


def health_response(database: Database, environment: str) -> JSONResponse:
    """
    Liveness probe plus pool statistics.

    Returns 200 when ``SELECT 1`` succeeds, 503 otherwise.
    """
    started = time.perf_counter()
    healthy = database.ping()
    stats = database.stats()
    meta = {
        "processingTime": f"{(time.perf_counter() - started) * 1000:.0f}ms",
        "timestamp": datetime.now(UTC).isoformat(),
        "environment": environment,
    }
    pool = {
        key: stats[key]
        for key in (
            "total_connections",
            "free_connections",
            "used_connections",
            "waiting_requests",
            "min_size",
            "max_size",
        )
    }
    metrics = {key: stats[key] for key in ("queries", "errors", "retries", "slow_queries")}

    if not healthy:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "success": False,
                "status": "degraded",
                "error": "Database unavailable",
                "code": "HEALTH_CHECK_FAILED",
                "pool": pool,
                "metrics": metrics,
                "meta": meta,
            },
        )

    return JSONResponse(
        content={
            "success": True,
            "status": "healthy",
            "services": {
                "database": "healthy",
                "signup": "operational",
                "login": "operational",
                "logout": "operational",
            },
            "pool": pool,
            "metrics": metrics,
            "meta": meta,
        }
    )
