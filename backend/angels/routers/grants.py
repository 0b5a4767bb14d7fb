"""Grants archive router.

Any staff member can browse, search and export the archive; adding,
editing and deleting entries needs an admin or owner role.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from supabase import Client

from angels.deps import (
    _http_error_from_value_error,
    _safe_error,
    get_staff_user,
    get_supabase,
    require_admin,
)
from angels.models.grant_models import (
    GrantCreate,
    GrantListResponse,
    GrantResponse,
    GrantUpdate,
)
from angels.services import grants_archive_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["grants"])


@router.get("/grants", response_model=GrantListResponse)
async def list_grants(
    search: Optional[str] = Query(None, max_length=200),
    status_filter: Optional[str] = Query(None, alias="status"),
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    """Archive rows newest first, filtered by search text and status."""
    try:
        grants = await asyncio.to_thread(
            grants_archive_service.list_grants, client, search, status_filter
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("loading the grants archive", e),
        ) from e
    return GrantListResponse(
        grants=[GrantResponse(**g) for g in grants],
        total=len(grants),
        total_approved_amount=sum(
            float(g.get("amount_approved") or 0)
            for g in grants
            if g.get("status") == "approved"
        ),
    )


@router.get("/grants/export")
async def export_grants(
    search: Optional[str] = Query(None, max_length=200),
    status_filter: Optional[str] = Query(None, alias="status"),
    client: Client = Depends(get_supabase),
    staff_user: dict = Depends(get_staff_user),
):
    """Download the filtered archive as CSV."""
    try:
        grants = await asyncio.to_thread(
            grants_archive_service.list_grants, client, search, status_filter
        )
        csv_content = grants_archive_service.grants_to_csv(grants)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("exporting the grants archive", e),
        ) from e
    filename = grants_archive_service.export_filename()
    return Response(
        content=csv_content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post(
    "/grants", response_model=GrantResponse, status_code=status.HTTP_201_CREATED
)
async def create_grant(
    body: GrantCreate,
    client: Client = Depends(get_supabase),
    admin_user: dict = Depends(require_admin),
):
    try:
        grant = await asyncio.to_thread(
            grants_archive_service.create_grant,
            client,
            body.model_dump(),
            admin_user["id"],
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("saving the grant", e),
        ) from e
    return GrantResponse(**grant)


@router.patch("/grants/{grant_id}", response_model=GrantResponse)
async def update_grant(
    grant_id: str,
    body: GrantUpdate,
    client: Client = Depends(get_supabase),
    admin_user: dict = Depends(require_admin),
):
    try:
        grant = await asyncio.to_thread(
            grants_archive_service.update_grant,
            client,
            grant_id,
            body.model_dump(exclude_unset=True),
        )
    except ValueError as e:
        raise _http_error_from_value_error(e) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("updating the grant", e),
        ) from e
    return GrantResponse(**grant)


@router.delete("/grants/{grant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_grant(
    grant_id: str,
    client: Client = Depends(get_supabase),
    admin_user: dict = Depends(require_admin),
):
    try:
        await asyncio.to_thread(grants_archive_service.delete_grant, client, grant_id)
    except ValueError as e:
        raise _http_error_from_value_error(e) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("deleting the grant", e),
        ) from e
