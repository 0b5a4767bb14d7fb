"""Health-check router."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from angels import deps
from angels.changes import change_feed
from angels.services import donation_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/")
async def root():
    """Health check"""
    return {"status": "ok", "message": "Kelly's Angels API is running"}


@router.get("/api/v1/health")
async def health_check():
    """Report which hosted services are configured."""
    capabilities = ["site_content"]
    degraded = []

    if deps.supabase is not None:
        capabilities.extend(["applications", "dashboards"])
    else:
        degraded.extend(["applications", "dashboards"])

    if deps.SUPABASE_ANON_KEY:
        capabilities.append("auth")
    else:
        degraded.append("auth")

    if donation_service.is_configured():
        capabilities.append("donations")
    else:
        degraded.append("donations")

    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "database": "configured" if deps.supabase is not None else "not_configured",
            "payments": "configured" if donation_service.is_configured() else "not_configured",
            "realtime": "connected" if change_feed.realtime_connected else "in_process",
        },
        "capabilities": capabilities,
        "degraded": degraded if degraded else None,
        "mode": "full" if not degraded else "degraded",
    }
