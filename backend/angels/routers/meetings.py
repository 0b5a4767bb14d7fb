"""Board meetings router: scheduling, minutes voting and RSVPs.

All endpoints need a staff profile. Creating meetings and setting a
minutes item's review status need an admin or owner role; any staff
member can upload minutes.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from supabase import Client

from angels.deps import (
    ADMIN_ROLES,
    _http_error_from_value_error,
    _safe_error,
    get_staff_user,
    get_supabase,
    require_admin,
)
from angels.models.meeting_models import (
    AttendeeResponse,
    MeetingCreate,
    MeetingDetail,
    MeetingList,
    MeetingResponse,
    MinutesCreate,
    MinutesResponse,
    MinutesStatusUpdate,
    MinutesVoteRequest,
    MinutesVoteResponse,
    RsvpRequest,
)
from angels.services import meeting_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["meetings"])


# ============================================================================
# Meetings
# ============================================================================


@router.get("/meetings", response_model=MeetingList)
async def list_meetings(
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    """Meetings split into upcoming and past."""
    try:
        meetings = await asyncio.to_thread(meeting_service.list_meetings, client)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("loading meetings", e),
        ) from e
    return MeetingList(**meetings)


@router.post(
    "/meetings", response_model=MeetingResponse, status_code=status.HTTP_201_CREATED
)
async def create_meeting(
    body: MeetingCreate,
    client: Client = Depends(get_supabase),
    admin_user: dict = Depends(require_admin),
):
    try:
        meeting = await asyncio.to_thread(
            meeting_service.create_meeting, client, body.model_dump(), admin_user["id"]
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("creating the meeting", e),
        ) from e
    return MeetingResponse(**meeting)


@router.get("/meetings/{meeting_id}", response_model=MeetingDetail)
async def get_meeting(
    meeting_id: str,
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    """Meeting with tallied minutes, attendees and the caller's RSVP."""
    try:
        detail = await asyncio.to_thread(
            meeting_service.get_meeting_detail, client, meeting_id, staff_user["id"]
        )
    except ValueError as e:
        raise _http_error_from_value_error(e) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("loading the meeting", e),
        ) from e
    return MeetingDetail(
        **detail, can_review_minutes=staff_user.get("role") in ADMIN_ROLES
    )


@router.put("/meetings/{meeting_id}/rsvp", response_model=AttendeeResponse)
async def set_meeting_rsvp(
    meeting_id: str,
    body: RsvpRequest,
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    try:
        attendee = await asyncio.to_thread(
            meeting_service.set_rsvp,
            client,
            meeting_id,
            staff_user["id"],
            body.rsvp_status,
        )
    except ValueError as e:
        raise _http_error_from_value_error(e) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("updating your RSVP", e),
        ) from e
    return AttendeeResponse(**attendee)


# ============================================================================
# Minutes
# ============================================================================


@router.post(
    "/meetings/{meeting_id}/minutes",
    response_model=MinutesResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_minutes(
    meeting_id: str,
    body: MinutesCreate,
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    try:
        minutes = await asyncio.to_thread(
            meeting_service.add_minutes,
            client,
            meeting_id,
            body.minutes_text,
            body.document_url,
            staff_user["id"],
        )
    except ValueError as e:
        raise _http_error_from_value_error(e) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("uploading minutes", e),
        ) from e
    return MinutesResponse(**minutes)


@router.post("/minutes/{minute_id}/votes", response_model=MinutesVoteResponse)
async def vote_on_minutes(
    minute_id: str,
    body: MinutesVoteRequest,
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    """Record the caller's vote, replacing any earlier vote on the item."""
    try:
        vote = await asyncio.to_thread(
            meeting_service.vote_on_minutes,
            client,
            minute_id,
            staff_user["id"],
            body.vote,
            body.comment,
        )
    except ValueError as e:
        raise _http_error_from_value_error(e) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("submitting your vote", e),
        ) from e
    return MinutesVoteResponse(**vote)


@router.patch("/minutes/{minute_id}/status", response_model=MinutesResponse)
async def update_minutes_status(
    minute_id: str,
    body: MinutesStatusUpdate,
    client: Client = Depends(get_supabase),
    admin_user: dict = Depends(require_admin),
):
    try:
        minutes = await asyncio.to_thread(
            meeting_service.update_minutes_status, client, minute_id, body.status
        )
    except ValueError as e:
        raise _http_error_from_value_error(e) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("updating minutes status", e),
        ) from e
    return MinutesResponse(**minutes)
