"""Historical grants archive schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

GRANT_STATUS_PATTERN = r"^(pending|approved|denied|under_review)$"


class GrantCreate(BaseModel):
    """Archive entry typed in by an administrator."""

    applicant_name: str = Field(..., min_length=1, max_length=200)
    organization: Optional[str] = Field(None, max_length=200)
    email: Optional[str] = Field(None, max_length=320)
    phone: Optional[str] = Field(None, max_length=40)
    amount_requested: float = Field(0, ge=0)
    amount_approved: Optional[float] = Field(None, ge=0)
    category: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=10000)
    status: str = Field("approved", pattern=GRANT_STATUS_PATTERN)
    application_date: Optional[datetime] = None
    decision_date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=10000)


class GrantUpdate(BaseModel):
    applicant_name: Optional[str] = Field(None, min_length=1, max_length=200)
    organization: Optional[str] = Field(None, max_length=200)
    email: Optional[str] = Field(None, max_length=320)
    phone: Optional[str] = Field(None, max_length=40)
    amount_requested: Optional[float] = Field(None, ge=0)
    amount_approved: Optional[float] = Field(None, ge=0)
    category: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=10000)
    status: Optional[str] = Field(None, pattern=GRANT_STATUS_PATTERN)
    application_date: Optional[datetime] = None
    decision_date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=10000)


class GrantResponse(BaseModel):
    id: str
    applicant_name: str
    organization: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    amount_requested: Optional[float] = 0
    amount_approved: Optional[float] = None
    category: Optional[str] = None
    description: Optional[str] = None
    status: str
    application_date: Optional[datetime] = None
    decision_date: Optional[datetime] = None
    decided_by: Optional[str] = None
    documents: Optional[list] = None
    notes: Optional[str] = None


class GrantListResponse(BaseModel):
    grants: List[GrantResponse]
    total: int
    total_approved_amount: float = 0
