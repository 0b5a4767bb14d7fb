"""
Kelly's Angels API - FastAPI backend for the Kelly's Angels Inc. website and portal
"""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware

from angels.security import setup_security

# Load environment variables from .env file
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

from angels import deps
from angels.changes import change_feed
from angels.realtime import REALTIME_ENABLED, applications_realtime
from angels.routers import (
    applications,
    auth,
    donations,
    grants,
    health,
    meetings,
    site,
    staff,
    volunteer_admin,
    volunteers,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(
        "Kelly's Angels API starting: database=%s",
        "configured" if deps.supabase is not None else "not configured",
    )
    if REALTIME_ENABLED and deps.supabase is not None:
        await applications_realtime.start(deps.SUPABASE_URL, deps.SUPABASE_SERVICE_KEY)
    else:
        logger.info("Realtime disabled; dashboard events come from this process only")
    yield
    # Shutdown
    await applications_realtime.stop()
    logger.info(
        "Kelly's Angels API shutdown complete (%d dashboard streams open)",
        change_feed.subscriber_count,
    )


# Initialize FastAPI app
app = FastAPI(
    title="Kelly's Angels API",
    description="Public site, grant applications, donations and staff/volunteer portals",
    version="1.0.0",
    lifespan=lifespan,
)

# =============================================================================
# CORS Configuration
# =============================================================================
# Production accepts HTTPS origins only; development also allows localhost.

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
DEFAULT_PRODUCTION_ORIGIN = "https://kellysangelsinc.org"

if ENVIRONMENT == "production":
    ALLOWED_ORIGINS_RAW = os.getenv("ALLOWED_ORIGINS", DEFAULT_PRODUCTION_ORIGIN).split(",")

    ALLOWED_ORIGINS = []
    for origin in ALLOWED_ORIGINS_RAW:
        origin = origin.strip()
        if not origin:
            continue
        if not origin.startswith("https://"):
            logger.warning("[CORS] Rejecting non-HTTPS origin in production: %s", origin)
            continue
        if "localhost" in origin or "127.0.0.1" in origin:
            logger.warning("[CORS] Rejecting localhost origin in production: %s", origin)
            continue
        ALLOWED_ORIGINS.append(origin)

    if not ALLOWED_ORIGINS:
        ALLOWED_ORIGINS = [DEFAULT_PRODUCTION_ORIGIN]
        logger.warning("[CORS] No valid origins configured, using default production origin")
else:
    default_origins = "http://localhost:3000,http://localhost:5173"
    ALLOWED_ORIGINS_RAW = os.getenv("ALLOWED_ORIGINS", default_origins).split(",")
    ALLOWED_ORIGINS = [origin.strip() for origin in ALLOWED_ORIGINS_RAW if origin.strip()]

if not ALLOWED_ORIGINS:
    raise ValueError("CORS configuration error: No valid allowed origins configured")

logger.info("[CORS] Environment: %s", ENVIRONMENT)
logger.info("[CORS] Allowed origins: %s", ALLOWED_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Requested-With"],
)

app.add_middleware(GZipMiddleware, minimum_size=500)

# =============================================================================
# Security Middleware Setup
# =============================================================================
# Must run after the CORS middleware is added
setup_security(app, ALLOWED_ORIGINS)

# =============================================================================
# Routers
# =============================================================================

app.include_router(health.router)
app.include_router(site.router)
app.include_router(applications.router)
app.include_router(donations.router)
app.include_router(auth.router)
app.include_router(staff.router)
app.include_router(grants.router)
app.include_router(meetings.router)
app.include_router(volunteers.router)
app.include_router(volunteer_admin.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
