"""Shared dependencies for all portal API routers.

Centralises the Supabase client singleton, the bearer-token
authentication dependency, role gates for the three dashboards and
small error helpers so that every router module can
``from angels.deps import …`` without importing ``main``.
"""

import asyncio
import logging
import os
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from postgrest.exceptions import APIError
from supabase import Client, create_client

from angels.security import log_security_event

load_dotenv()

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Supabase client (singleton, service role)
# ---------------------------------------------------------------------------
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY")

# Missing credentials leave the client unset so the public pages still serve
supabase: Optional[Client] = None
if SUPABASE_URL and SUPABASE_SERVICE_KEY:
    supabase = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)
else:
    logger.warning(
        "SUPABASE_URL / SUPABASE_SERVICE_KEY not set; data endpoints will return 503"
    )

STAFF_ROLES = ("staff", "admin", "owner")
ADMIN_ROLES = ("admin", "owner")

security = HTTPBearer()


def get_supabase() -> Client:
    """FastAPI dependency returning the shared service-role client."""
    if supabase is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database is not configured",
        )
    return supabase


def get_auth_client() -> Client:
    """Return a fresh anon-key client for password sign-in and sign-up.

    supabase-py stores the signed-in session on the client it was called
    on, so user sign-ins must never go through the shared service client.
    """
    if not (SUPABASE_URL and SUPABASE_ANON_KEY):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication is not configured",
        )
    return create_client(SUPABASE_URL, SUPABASE_ANON_KEY)


# ---------------------------------------------------------------------------
# Error helpers
# ---------------------------------------------------------------------------


def _safe_error(operation: str, e: Exception) -> str:
    """Log the full exception but return a message fit for a banner."""
    if isinstance(e, APIError):
        logger.error(
            "PostgREST error during %s: code=%s message=%s details=%s",
            operation,
            e.code,
            e.message,
            e.details,
        )
    logger.exception("Error during %s", operation)
    return f"{operation.capitalize()} failed. Please try again or contact us."


def _http_error_from_value_error(e: ValueError) -> HTTPException:
    """Map a service ValueError to 404 (not found) or 400 (anything else)."""
    message = str(e)
    if "not found" in message.lower():
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


# ---------------------------------------------------------------------------
# Authentication and role gates
# ---------------------------------------------------------------------------


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    client: Client = Depends(get_supabase),
) -> dict:
    """
    Validate the bearer token with Supabase Auth and return the user.

    Supabase checks signature, expiry and revocation. Failures are logged
    as security events and always answer with the same generic 401 so the
    response does not reveal which accounts exist.
    """
    token = credentials.credentials
    if not token or len(token) < 20:
        log_security_event("auth_invalid_token_format", request)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )

    try:
        # supabase-py is synchronous; keep it off the event loop
        response = await asyncio.to_thread(client.auth.get_user, token)
    except Exception as e:
        log_security_event(
            "auth_error",
            request,
            {"error_type": type(e).__name__, "error_msg": str(e)[:100]},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        ) from e

    if response is None or response.user is None:
        log_security_event("auth_invalid_session", request)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )

    return {
        "id": response.user.id,
        "email": response.user.email,
        "access_token": token,
    }


async def get_staff_user(
    request: Request,
    current_user: dict = Depends(get_current_user),
    client: Client = Depends(get_supabase),
) -> dict:
    """Require a ``user_profiles`` row with a staff, admin or owner role."""
    result = await asyncio.to_thread(
        lambda: client.table("user_profiles")
        .select("*")
        .eq("id", current_user["id"])
        .limit(1)
        .execute()
    )
    profile = result.data[0] if result.data else None
    if not profile or profile.get("role") not in STAFF_ROLES:
        log_security_event(
            "staff_access_denied", request, {"user_id": current_user["id"]}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff access required",
        )
    return current_user | {
        "role": profile["role"],
        "full_name": profile.get("full_name"),
    }


async def require_admin(staff_user: dict = Depends(get_staff_user)) -> dict:
    """Require an admin or owner role (meeting creation, archive edits)."""
    if staff_user.get("role") not in ADMIN_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return staff_user


async def get_volunteer(
    current_user: dict = Depends(get_current_user),
    client: Client = Depends(get_supabase),
) -> dict:
    """Return the caller with their ``volunteer_profiles`` row attached."""
    result = await asyncio.to_thread(
        lambda: client.table("volunteer_profiles")
        .select("*")
        .eq("user_id", current_user["id"])
        .limit(1)
        .execute()
    )
    if not result.data:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Volunteer profile not found",
        )
    return current_user | {"profile": result.data[0]}
