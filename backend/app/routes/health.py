"""
Cellar Tracker Backend - Health Check Route
============================================

What:  Liveness/readiness probe for container health checks and load balancers.
How:   Runs SELECT 1 against the database and reports the result.
Who:   Docker HEALTHCHECK, monitoring. Served at both /health and /api/health
       so probes work with and without the /api reverse-proxy prefix.

Status levels:
    ok:         database reachable (HTTP 200)
    unhealthy:  database unreachable (HTTP 503, stop routing traffic). The body
                also carries the common error keys: error, code, requestId.
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app import __version__
from app.database import engine
from app.middleware.request_id import request_id_var
from app.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


async def _database_status() -> str:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return "connected"
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Health check: database unreachable: %s", str(e))
        return "disconnected"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
@router.get("/api/health", response_model=HealthResponse, include_in_schema=False)
async def health_check():
    database = await _database_status()
    health = HealthResponse(
        status="ok" if database == "connected" else "unhealthy",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        database=database,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if database != "connected":
        content = health.model_dump(mode="json", by_alias=True)
        content.update(
            error="Database unreachable",
            code="service_unavailable",
            requestId=request_id_var.get(""),
        )
        return JSONResponse(status_code=503, content=content)
    return health
