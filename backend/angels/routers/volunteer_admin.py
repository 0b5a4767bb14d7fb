"""Volunteer administration router for staff.

Staff post opportunities, send announcements and record attendance.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from supabase import Client

from angels.deps import (
    _http_error_from_value_error,
    _safe_error,
    get_staff_user,
    get_supabase,
)
from angels.models.volunteer_models import (
    AnnouncementCreate,
    AnnouncementResponse,
    AttendanceRequest,
    OpportunityCreate,
    OpportunityResponse,
    OpportunityUpdate,
    RsvpResponse,
    VolunteerAdminOverview,
)
from angels.services import volunteer_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/admin/volunteers", tags=["volunteer-admin"])


@router.get("/overview", response_model=VolunteerAdminOverview)
async def get_overview(
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    """Opportunities with their RSVPs, volunteers, announcements and stats."""
    try:
        overview = await asyncio.to_thread(volunteer_service.get_admin_overview, client)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("loading volunteer data", e),
        ) from e
    return VolunteerAdminOverview(**overview)


# ============================================================================
# Opportunities
# ============================================================================


@router.post(
    "/opportunities",
    response_model=OpportunityResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_opportunity(
    body: OpportunityCreate,
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    try:
        opportunity = await asyncio.to_thread(
            volunteer_service.create_opportunity,
            client,
            body.model_dump(),
            staff_user["id"],
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("creating the opportunity", e),
        ) from e
    return OpportunityResponse(
        **opportunity, spots_remaining=volunteer_service.spots_remaining(opportunity)
    )


@router.patch("/opportunities/{opportunity_id}", response_model=OpportunityResponse)
async def update_opportunity(
    opportunity_id: str,
    body: OpportunityUpdate,
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    try:
        opportunity = await asyncio.to_thread(
            volunteer_service.update_opportunity,
            client,
            opportunity_id,
            body.model_dump(exclude_unset=True),
        )
    except ValueError as e:
        raise _http_error_from_value_error(e) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("updating the opportunity", e),
        ) from e
    return OpportunityResponse(
        **opportunity, spots_remaining=volunteer_service.spots_remaining(opportunity)
    )


@router.delete("/opportunities/{opportunity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_opportunity(
    opportunity_id: str,
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    try:
        await asyncio.to_thread(volunteer_service.delete_opportunity, client, opportunity_id)
    except ValueError as e:
        raise _http_error_from_value_error(e) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("deleting the opportunity", e),
        ) from e


# ============================================================================
# Announcements and attendance
# ============================================================================


@router.post(
    "/announcements",
    response_model=AnnouncementResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_announcement(
    body: AnnouncementCreate,
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    """Post an announcement to the volunteer dashboard.

    ``send_email`` and ``send_sms`` are stored as flags only; no message
    is delivered from here.
    """
    try:
        announcement = await asyncio.to_thread(
            volunteer_service.create_announcement,
            client,
            body.model_dump(),
            staff_user["id"],
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("sending the announcement", e),
        ) from e
    return AnnouncementResponse(**announcement)


@router.post("/rsvps/{rsvp_id}/attendance", response_model=RsvpResponse)
async def mark_attendance(
    rsvp_id: str,
    body: AttendanceRequest,
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    try:
        rsvp = await asyncio.to_thread(
            volunteer_service.mark_attendance, client, rsvp_id, body.hours_worked
        )
    except ValueError as e:
        raise _http_error_from_value_error(e) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("recording attendance", e),
        ) from e
    return RsvpResponse(**rsvp)
