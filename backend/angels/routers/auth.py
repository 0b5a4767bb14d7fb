"""Authentication router for the staff and volunteer portals.

Both portals sign in against the same Supabase Auth project. The staff
login additionally requires a ``user_profiles`` row with a staff role.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from supabase import Client

from angels.deps import (
    _safe_error,
    get_auth_client,
    get_current_user,
    get_supabase,
)
from angels.models.auth_models import (
    CurrentSession,
    LoginRequest,
    SessionResponse,
    VolunteerSignupRequest,
)
from angels.security import log_security_event, rate_limit_auth
from angels.services import auth_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid email or password",
    )


# ---------------------------------------------------------------------------
# POST /auth/staff/login
# ---------------------------------------------------------------------------


@router.post("/staff/login", response_model=SessionResponse)
@rate_limit_auth()
async def staff_login(
    request: Request,
    body: LoginRequest,
    client: Client = Depends(get_supabase),
    auth_client: Client = Depends(get_auth_client),
):
    """Sign in to the staff dashboard.

    Raises:
        HTTPException 401: Bad credentials.
        HTTPException 403: Account has no staff, admin or owner role.
    """
    try:
        session = await asyncio.to_thread(
            auth_service.staff_login, auth_client, client, body.email, body.password
        )
    except auth_service.AuthenticationError as e:
        log_security_event("staff_login_failed", request)
        raise _invalid_credentials() from e
    except auth_service.NotStaffError as e:
        log_security_event("staff_login_not_staff", request)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail=str(e)
        ) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("signing in", e),
        ) from e
    return SessionResponse(**session)


# ---------------------------------------------------------------------------
# POST /auth/volunteer/login
# ---------------------------------------------------------------------------


@router.post("/volunteer/login", response_model=SessionResponse)
@rate_limit_auth()
async def volunteer_login(
    request: Request,
    body: LoginRequest,
    auth_client: Client = Depends(get_auth_client),
):
    try:
        session = await asyncio.to_thread(
            auth_service.volunteer_login, auth_client, body.email, body.password
        )
    except auth_service.AuthenticationError as e:
        log_security_event("volunteer_login_failed", request)
        raise _invalid_credentials() from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("signing in", e),
        ) from e
    return SessionResponse(**session)


# ---------------------------------------------------------------------------
# POST /auth/volunteer/signup
# ---------------------------------------------------------------------------


@router.post(
    "/volunteer/signup",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
)
@rate_limit_auth()
async def volunteer_signup(
    request: Request,
    body: VolunteerSignupRequest,
    client: Client = Depends(get_supabase),
    auth_client: Client = Depends(get_auth_client),
):
    """Create a volunteer account and its profile row."""
    try:
        session = await asyncio.to_thread(
            auth_service.volunteer_signup, auth_client, client, body.model_dump()
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)
        ) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("creating your account", e),
        ) from e
    return SessionResponse(**session)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    current_user: dict = Depends(get_current_user),
    client: Client = Depends(get_supabase),
):
    try:
        await asyncio.to_thread(
            auth_service.logout, client, current_user["access_token"]
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("signing out", e),
        ) from e


@router.get("/session", response_model=CurrentSession)
async def get_session(
    current_user: dict = Depends(get_current_user),
    client: Client = Depends(get_supabase),
):
    """Who the bearer token belongs to and which portals it can use."""
    try:
        role, profile = await asyncio.gather(
            asyncio.to_thread(auth_service.get_staff_role, client, current_user["id"]),
            asyncio.to_thread(
                auth_service.get_volunteer_profile, client, current_user["id"]
            ),
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("loading your session", e),
        ) from e
    return CurrentSession(
        user_id=current_user["id"],
        email=current_user.get("email"),
        role=role,
        is_volunteer=profile is not None,
    )
