"""Health check endpoints."""

from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, Response
from sqlalchemy import text

from codex_cms import __version__
from codex_cms.api.deps import get_database, get_dns_cache
from codex_cms.db.client import Database
from codex_cms.kernel.time import isoformat_z, utc_now
from codex_cms.net.dns_cache import DNSCache

router = APIRouter()
logger = structlog.get_logger()

# Track startup time
_startup_time: datetime = utc_now()


@router.get("/health")
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if the service is running.
    """
    now = utc_now()
    return {
        "status": "healthy",
        "service": "codex-cms",
        "version": __version__,
        "timestamp": isoformat_z(now),
        "uptime_seconds": (now - _startup_time).total_seconds(),
    }


@router.get("/ready")
async def readiness_check(
    response: Response,
    db: Database | None = Depends(get_database),
    dns_cache: DNSCache | None = Depends(get_dns_cache),
):
    """
    Readiness check endpoint.

    The database round trip decides readiness. The database host is also
    resolved through the DNS cache; a failed lookup is reported but does not
    fail the check.
    """
    checks: dict[str, object] = {"postgres": False}

    if db is not None and db.is_connected:
        try:
            async with db.session() as session:
                await session.execute(text("SELECT 1"))
            checks["postgres"] = True
        except Exception as e:
            logger.warning("PostgreSQL health check failed", error=str(e))

        if dns_cache is not None and db.host:
            checks["database_host"] = {
                "host": db.host,
                "address": await dns_cache.resolve(db.host),
                "cached_hosts": len(dns_cache),
            }

    ready = bool(checks["postgres"])
    if not ready:
        response.status_code = 503

    return {
        "status": "ready" if ready else "degraded",
        "checks": checks,
        "timestamp": isoformat_z(utc_now()),
    }


@router.get("/live")
async def liveness_check():
    """
    Liveness check for Kubernetes.
    Returns 200 if the process is alive.
    """
    return {"status": "alive"}
