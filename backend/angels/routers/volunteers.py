"""Volunteer portal router.

The opportunity listing is public. The dashboard, sign-ups,
cancellations and announcement read-marks need a signed-in volunteer
with a ``volunteer_profiles`` row.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from supabase import Client

from angels.deps import (
    _http_error_from_value_error,
    _safe_error,
    get_supabase,
    get_volunteer,
)
from angels.models.volunteer_models import (
    AnnouncementReadResponse,
    OpportunityResponse,
    RsvpActionResponse,
    RsvpCreate,
    VolunteerDashboard,
)
from angels.services import volunteer_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["volunteers"])


# ---------------------------------------------------------------------------
# GET  /volunteer-opportunities
# ---------------------------------------------------------------------------


@router.get("/volunteer-opportunities", response_model=list[OpportunityResponse])
async def list_opportunities(client: Client = Depends(get_supabase)):
    """Active and full opportunities, soonest first."""
    try:
        rows = await asyncio.to_thread(volunteer_service.list_open_opportunities, client)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("loading volunteer opportunities", e),
        ) from e
    return [OpportunityResponse(**row) for row in rows]


# ---------------------------------------------------------------------------
# GET  /volunteer/dashboard
# ---------------------------------------------------------------------------


@router.get("/volunteer/dashboard", response_model=VolunteerDashboard)
async def get_dashboard(
    client: Client = Depends(get_supabase),
    volunteer: dict = Depends(get_volunteer),
):
    try:
        dashboard = await asyncio.to_thread(
            volunteer_service.get_dashboard, client, volunteer["profile"]
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("loading your dashboard", e),
        ) from e
    return VolunteerDashboard(**dashboard)


# ---------------------------------------------------------------------------
# RSVPs
# ---------------------------------------------------------------------------


@router.post(
    "/volunteer/rsvps",
    response_model=RsvpActionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_rsvp(
    body: RsvpCreate,
    client: Client = Depends(get_supabase),
    volunteer: dict = Depends(get_volunteer),
):
    """Sign up for an opportunity.

    Raises:
        HTTPException 400: Opportunity inactive, full, or already joined.
        HTTPException 404: Opportunity not found.
    """
    try:
        rsvp = await asyncio.to_thread(
            volunteer_service.create_rsvp,
            client,
            volunteer["profile"]["id"],
            body.opportunity_id,
            body.notes,
        )
    except ValueError as e:
        raise _http_error_from_value_error(e) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("signing you up", e),
        ) from e
    return RsvpActionResponse(
        message="You're signed up! Thank you for volunteering.", rsvp=rsvp
    )


@router.post("/volunteer/rsvps/{rsvp_id}/cancel", response_model=RsvpActionResponse)
async def cancel_rsvp(
    rsvp_id: str,
    client: Client = Depends(get_supabase),
    volunteer: dict = Depends(get_volunteer),
):
    try:
        rsvp = await asyncio.to_thread(
            volunteer_service.cancel_rsvp, client, rsvp_id, volunteer["profile"]["id"]
        )
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e
    except ValueError as e:
        raise _http_error_from_value_error(e) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("cancelling your RSVP", e),
        ) from e
    return RsvpActionResponse(message="RSVP cancelled", rsvp=rsvp)


# ---------------------------------------------------------------------------
# POST /volunteer/announcements/{id}/read
# ---------------------------------------------------------------------------


@router.post(
    "/volunteer/announcements/{announcement_id}/read",
    response_model=AnnouncementReadResponse,
)
async def mark_announcement_read(
    announcement_id: str,
    client: Client = Depends(get_supabase),
    volunteer: dict = Depends(get_volunteer),
):
    try:
        updated = await asyncio.to_thread(
            volunteer_service.mark_announcement_read,
            client,
            announcement_id,
            volunteer["profile"]["id"],
        )
    except ValueError as e:
        raise _http_error_from_value_error(e) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("marking the announcement read", e),
        ) from e
    return AnnouncementReadResponse(announcement_id=announcement_id, updated=updated)
