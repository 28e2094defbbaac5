"""
Lavandaria API — Health Checks
================================

    GET /healthz   liveness: the process can answer requests
    GET /readyz    readiness: the database answers SELECT 1

Readiness failures return a 503 failure envelope (code NOT_READY) so load
balancers stop routing to this instance. Database latency above 100 ms is
logged as a warning.
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text
from starlette.responses import JSONResponse

from app import __version__
from app.envelope import failure, success

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

SERVICE_NAME = "lavandaria-api"
SLOW_DB_MS = 100

_start_time = time.time()


@router.get("/healthz", summary="Liveness check")
async def liveness() -> JSONResponse:
    return success({
        "status": "ok",
        "service": SERVICE_NAME,
        "version": __version__,
        "uptime": round(time.time() - _start_time, 2),
    })


@router.get("/readyz", summary="Readiness check")
async def readiness() -> JSONResponse:
    from app.database import engine

    started = time.perf_counter()
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:  # noqa: BLE001 - any failure means not ready
        logger.error("Readiness check failed: %s", str(e))
        return failure(
            503,
            "Database unreachable",
            code="NOT_READY",
            status="not_ready",
            service=SERVICE_NAME,
        )

    latency_ms = round((time.perf_counter() - started) * 1000, 2)
    if latency_ms > SLOW_DB_MS:
        logger.warning("Slow database response: %.1fms", latency_ms)

    return success({
        "status": "ready",
        "service": SERVICE_NAME,
        "checks": {"database": {"status": "ok", "latency_ms": latency_ms}},
    })
