"""Public grant-application intake router.

Serves the form definitions, a pre-submit validation check, the
submission endpoint itself and scholarship document uploads. None of
these endpoints require sign-in.
"""

import asyncio
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, Request, UploadFile, status
from pydantic import ValidationError
from supabase import Client

from angels.changes import change_feed
from angels.deps import _http_error_from_value_error, _safe_error, get_supabase
from angels.models.application_models import (
    BASE_FIELDS,
    CAPITAL_REGION_SCHOOLS,
    CATEGORY_FIELDS,
    FORM_MODELS,
    FORM_TITLES,
    RELATIONSHIP_CHOICES,
    FormDefinition,
    SubmissionResponse,
    UploadResponse,
    ValidationResult,
    submission_adapter,
)
from angels.security import rate_limit_submission
from angels.services.application_service import ApplicationService, validation_errors
from angels.storage import document_storage

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["applications"])


def _form_definition(application_type: str) -> FormDefinition:
    uses_relationship = "relationship" in CATEGORY_FIELDS[application_type]
    return FormDefinition(
        application_type=application_type,
        title=FORM_TITLES[application_type],
        fields=list(BASE_FIELDS) + list(CATEGORY_FIELDS[application_type]),
        json_schema=FORM_MODELS[application_type].model_json_schema(),
        relationship_choices=list(RELATIONSHIP_CHOICES) if uses_relationship else None,
        schools=list(CAPITAL_REGION_SCHOOLS) if application_type == "scholarship" else None,
    )


# ---------------------------------------------------------------------------
# GET  /applications/forms
# ---------------------------------------------------------------------------


@router.get("/applications/forms", response_model=list[FormDefinition])
async def list_forms():
    """Field subsets and rules for all five application forms."""
    return [_form_definition(t) for t in FORM_MODELS]


@router.get("/applications/forms/{application_type}", response_model=FormDefinition)
async def get_form(application_type: str):
    if application_type not in FORM_MODELS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Application form '{application_type}' not found",
        )
    return _form_definition(application_type)


# ---------------------------------------------------------------------------
# POST /applications/validate
# ---------------------------------------------------------------------------


@router.post("/applications/validate", response_model=ValidationResult)
async def validate_application(payload: Dict[str, Any] = Body(...)):
    """Check a form body against its category rules without saving it."""
    return ApplicationService.validate(payload)


# ---------------------------------------------------------------------------
# POST /applications
# ---------------------------------------------------------------------------


@router.post(
    "/applications",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
)
@rate_limit_submission()
async def submit_application(
    request: Request,
    payload: Dict[str, Any] = Body(...),
    client: Client = Depends(get_supabase),
):
    """Validate and store one application with status ``pending``.

    Args:
        request: Incoming request (rate limiting key).
        payload: Form body including ``application_type``.
        client: Supabase client (injected).

    Returns:
        SubmissionResponse with the new row's id.

    Raises:
        HTTPException 422: The body fails its category's rules.
        HTTPException 500: The insert failed.
    """
    try:
        form = submission_adapter.validate_python(payload)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[err.model_dump() for err in validation_errors(e)],
        ) from e

    try:
        row = await asyncio.to_thread(ApplicationService.submit, client, form)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("submitting your application", e),
        ) from e

    change_feed.publish("inserted", row.get("id"))
    return SubmissionResponse(
        message=(
            "Thank you! Your application has been submitted. "
            "Our volunteer staff will review it and respond within 5-7 business days."
        ),
        application_id=row.get("id"),
        status=row.get("status", "pending"),
    )


# ---------------------------------------------------------------------------
# POST /applications/uploads
# ---------------------------------------------------------------------------


@router.post("/applications/uploads", response_model=UploadResponse)
@rate_limit_submission()
async def upload_document(
    request: Request,
    kind: str = Form(..., description="transcript or recommendation"),
    file: UploadFile = File(...),
    client: Client = Depends(get_supabase),
):
    """Upload a scholarship transcript or recommendation letter.

    Returns the public URL to put in ``transcript_url`` or
    ``recommendation_letter_url`` on submission.
    """
    data = await file.read()
    try:
        url = await asyncio.to_thread(
            document_storage.upload,
            client,
            kind,
            file.filename or "document",
            data,
            file.content_type or "application/octet-stream",
        )
    except ValueError as e:
        raise _http_error_from_value_error(e) from e
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("uploading your document", e),
        ) from e
    return UploadResponse(url=url, kind=kind)
