"""
Health check endpoints
/livez says the process is up, /healthz says the database is reachable
"""
from fastapi import APIRouter, Depends, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from api.dependencies import get_db, get_settings
from lib.db import Database, PoolUnavailableError
from lib.logging import get_logger
from lib.prometheus_metrics import health_check_status, update_pool_gauges, update_uptime
from lib.settings import Settings

router = APIRouter(tags=["ops"])
logger = get_logger("health")


@router.get("/livez", response_class=PlainTextResponse)
async def liveness():
    """Always 200; no dependency checks"""
    return PlainTextResponse("ok")


@router.get("/healthz", response_class=PlainTextResponse)
async def readiness(
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """
    Readiness check endpoint
    Returns 200 "ok" when a pooled connection answers within the ping timeout,
    503 with the reason otherwise. Pool re-creation counts against the same
    timeout.
    """
    try:
        await db.check_ready(settings.health_ping_timeout)
    except PoolUnavailableError:
        health_check_status.labels(check_type="database").set(0)
        return PlainTextResponse("pool not initialized", status_code=503)
    except Exception as e:
        logger.warning(f"Readiness ping failed: {e!r}")
        health_check_status.labels(check_type="database").set(0)
        return PlainTextResponse(f"unhealthy: {e!r}", status_code=503)

    health_check_status.labels(check_type="database").set(1)
    return PlainTextResponse("ok")


@router.get("/metrics", response_class=Response)
async def metrics(db: Database = Depends(get_db)):
    """Prometheus-compatible metrics endpoint"""
    update_pool_gauges(db.stats())
    update_uptime()
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
