"""Public site content router (navigation, footer and page copy)."""

import logging

from fastapi import APIRouter, HTTPException, status

from angels import site_content

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/site", tags=["site"])


@router.get("/navigation")
async def get_navigation():
    return {
        "organization": site_content.ORGANIZATION_NAME,
        "links": site_content.NAVIGATION,
        "call_to_action": site_content.CALL_TO_ACTION,
    }


@router.get("/footer")
async def get_footer():
    return site_content.FOOTER


@router.get("/pages")
async def list_pages():
    """Slug, title and description of every public page."""
    return {"pages": site_content.list_pages()}


@router.get("/pages/{slug}")
async def get_page(slug: str):
    """Return one page's content block.

    Raises:
        HTTPException 404: Unknown slug.
    """
    page = site_content.get_page(slug)
    if page is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Page not found"
        )
    return page
