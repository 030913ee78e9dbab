# WORKFLOW: Health check endpoints for monitoring and operational status.
# Used by: Load balancers, monitoring systems, container probes
# Endpoints:
# 1. /healthz - Basic health check (always returns healthy)
# 2. /readyz - Readiness check (static root present and populated)
# 3. /livez - Liveness check
#
# Readiness flow: Readiness check -> Static root / products / indexes exist -> Ready/Not ready

from fastapi import APIRouter, Depends
import logging
from datetime import datetime, timezone

from api.routers.static import StaticStore, get_store
from core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/healthz")
async def health_check():
    """
    Basic health check endpoint.

    Returns:
        Health status of the API
    """
    return {
        "status": "healthy",
        "timestamp": _now(),
        "version": settings.version,
        "environment": settings.environment,
    }


@router.get("/readyz")
async def readiness_check(store: StaticStore = Depends(get_store)):
    """
    Readiness check endpoint.

    The service is ready once the build has produced the static root with
    product documents and indexes.
    """
    checks = {
        "static_root": store.static_dir.is_dir(),
        "products": (store.static_dir / "products").is_dir(),
        "indexes": (store.static_dir / "indexes").is_dir(),
    }
    is_ready = all(checks.values())
    if not is_ready:
        logger.warning(f"Static tree not ready: {checks}")

    return {
        "status": "ready" if is_ready else "not_ready",
        "timestamp": _now(),
        "checks": checks,
        "version": settings.version,
    }


@router.get("/livez")
async def liveness_check():
    return {
        "status": "alive",
        "timestamp": _now(),
    }
