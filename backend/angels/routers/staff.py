"""Staff review dashboard router.

Lists incoming applications, shows the detail tabs (fields, voting,
notes), records votes, notes and board recommendations, and streams
change events so open dashboards refetch.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from supabase import Client

from angels.changes import change_feed
from angels.deps import (
    _http_error_from_value_error,
    _safe_error,
    get_staff_user,
    get_supabase,
)
from angels.models.application_models import (
    ApplicationDetail,
    ApplicationListResponse,
    ApplicationResponse,
    DashboardStats,
    NoteRequest,
    NoteResponse,
    RecommendRequest,
    StatusUpdateRequest,
    VoteRequest,
    VoteResponse,
)
from angels.services.application_service import ApplicationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/staff", tags=["staff"])


# ---------------------------------------------------------------------------
# GET  /staff/applications
# ---------------------------------------------------------------------------


@router.get("/applications", response_model=ApplicationListResponse)
async def list_applications(
    status_filter: Optional[str] = Query(
        None, alias="status", description="Filter by status ('all' for none)"
    ),
    application_type: Optional[str] = Query(
        None, description="Filter by application type ('all' for none)"
    ),
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    """List every application newest first, filtered in memory.

    Args:
        status_filter: Optional status value to filter by.
        application_type: Optional category to filter by.
        client: Supabase client (injected).
        staff_user: Authenticated staff member (injected).

    Returns:
        ApplicationListResponse with the filtered rows and their count.
    """
    try:
        rows = await asyncio.to_thread(
            ApplicationService.list_applications,
            client,
            status_filter,
            application_type,
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("listing applications", e),
        ) from e
    return ApplicationListResponse(
        applications=[ApplicationResponse(**r) for r in rows],
        total=len(rows),
    )


@router.get("/applications/stats", response_model=DashboardStats)
async def get_application_stats(
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    """Counts for the dashboard header cards."""
    try:
        stats = await asyncio.to_thread(ApplicationService.get_stats, client)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("loading dashboard stats", e),
        ) from e
    return DashboardStats(**stats)


# ---------------------------------------------------------------------------
# GET  /staff/applications/events
# ---------------------------------------------------------------------------


@router.get("/applications/events")
async def stream_application_events(staff_user: dict = Depends(get_staff_user)):
    """Server-Sent Events stream; each ``applications_changed`` event
    means the dashboard should refetch its list."""
    return StreamingResponse(
        change_feed.stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
            "Connection": "keep-alive",
        },
    )


# ---------------------------------------------------------------------------
# GET  /staff/applications/{id}
# ---------------------------------------------------------------------------


@router.get("/applications/{application_id}", response_model=ApplicationDetail)
async def get_application_detail(
    application_id: str,
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    """Fields, votes with tally and the caller's vote, and notes."""
    try:
        detail = await asyncio.to_thread(
            ApplicationService.get_detail, client, application_id, staff_user["id"]
        )
    except ValueError as e:
        raise _http_error_from_value_error(e) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("loading the application", e),
        ) from e
    return ApplicationDetail(**detail)


# ---------------------------------------------------------------------------
# POST /staff/applications/{id}/votes
# ---------------------------------------------------------------------------


@router.post("/applications/{application_id}/votes", response_model=VoteResponse)
async def cast_vote(
    application_id: str,
    body: VoteRequest,
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    """Record or replace the caller's vote. Status is never changed."""
    try:
        vote = await asyncio.to_thread(
            ApplicationService.cast_vote,
            client,
            application_id,
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
    change_feed.publish("voted", application_id)
    return VoteResponse(**vote)


# ---------------------------------------------------------------------------
# POST /staff/applications/{id}/notes
# ---------------------------------------------------------------------------


@router.post(
    "/applications/{application_id}/notes",
    response_model=NoteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_note(
    application_id: str,
    body: NoteRequest,
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    try:
        note = await asyncio.to_thread(
            ApplicationService.add_note,
            client,
            application_id,
            staff_user["id"],
            body.note,
        )
    except ValueError as e:
        raise _http_error_from_value_error(e) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("adding the note", e),
        ) from e
    return NoteResponse(**note)


# ---------------------------------------------------------------------------
# POST /staff/applications/{id}/recommend
# ---------------------------------------------------------------------------


@router.post(
    "/applications/{application_id}/recommend", response_model=ApplicationResponse
)
async def recommend_application(
    application_id: str,
    body: RecommendRequest,
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    """Recommend an application to the board with a written summary."""
    try:
        row = await asyncio.to_thread(
            ApplicationService.recommend,
            client,
            application_id,
            staff_user["id"],
            body.summary,
        )
    except ValueError as e:
        raise _http_error_from_value_error(e) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("recommending the application", e),
        ) from e
    change_feed.publish("recommended", application_id)
    return ApplicationResponse(**row)


# ---------------------------------------------------------------------------
# PATCH /staff/applications/{id}/status
# ---------------------------------------------------------------------------


@router.patch(
    "/applications/{application_id}/status", response_model=ApplicationResponse
)
async def update_application_status(
    application_id: str,
    body: StatusUpdateRequest,
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    """Move an application to a new status.

    Raises:
        HTTPException 400: Transition not allowed from the current status.
        HTTPException 404: Application not found.
    """
    try:
        row = await asyncio.to_thread(
            ApplicationService.update_status,
            client,
            application_id,
            body.new_status.value,
            staff_user["id"],
        )
    except ValueError as e:
        raise _http_error_from_value_error(e) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("updating application status", e),
        ) from e
    change_feed.publish("status_changed", application_id)
    return ApplicationResponse(**row)
