"""Pydantic schemas for grant-application intake and staff review.

Each grant category has its own form model carrying that category's
validation rules. ``ApplicationSubmission`` is the discriminated union
the public endpoint accepts, keyed on ``application_type``.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, validator


class ApplicationType(str, Enum):
    """Grant categories offered on the programs and scholarships pages."""

    FUN_GRANT = "fun_grant"
    ANGEL_AID = "angel_aid"
    ANGEL_HUG = "angel_hug"
    HUGS_UKRAINE = "hugs_ukraine"
    SCHOLARSHIP = "scholarship"


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    RECOMMENDED = "recommended"
    APPROVED = "approved"
    DENIED = "denied"
    MORE_INFO_NEEDED = "more_info_needed"
    BOARD_APPROVED = "board_approved"


RELATIONSHIP_CHOICES = (
    "parent",
    "guardian",
    "grandparent",
    "sibling",
    "other_relative",
    "family_friend",
    "social_worker",
    "teacher",
)

CAPITAL_REGION_SCHOOLS = (
    "Ft. Edward High School",
    "Lake George High School",
    "Mechanicville High School",
    "Glens Falls High School",
    "Hoosic Valley High School",
    "Queensbury High School",
    "Saratoga Central Catholic School",
    "Saratoga Springs High School",
    "Shenendehowa High School",
    "South Glens Falls High School",
    "Stillwater High School",
    "Ravena-Coeymans-Selkirk",
    "Hudson Falls",
    "Whitehall High School",
)

FORM_TITLES: Dict[str, str] = {
    "fun_grant": "Fun Grant",
    "angel_aid": "Angel Aid",
    "angel_hug": "Angel Hug",
    "hugs_ukraine": "Hugs for Ukraine",
    "scholarship": "Academic Scholarship",
}

# Columns shared by every category
BASE_FIELDS = (
    "applicant_name",
    "applicant_email",
    "applicant_phone",
    "address",
    "city",
    "state",
    "zip_code",
    "description",
)

# Columns owned by each category; everything else is sent as null
CATEGORY_FIELDS: Dict[str, tuple] = {
    "fun_grant": (
        "child_name",
        "child_age",
        "relationship",
        "loss_details",
        "requested_amount",
    ),
    "angel_aid": (
        "child_name",
        "child_age",
        "relationship",
        "loss_details",
        "requested_amount",
        "family_situation",
    ),
    "angel_hug": ("loss_details",),
    "hugs_ukraine": (
        "child_name",
        "child_age",
        "relationship",
        "requested_amount",
    ),
    "scholarship": (
        "school",
        "gpa",
        "graduation_year",
        "essay_text",
        "family_situation",
        "transcript_url",
        "recommendation_letter_url",
    ),
}

CATEGORY_SPECIFIC_COLUMNS = tuple(
    sorted({field for fields in CATEGORY_FIELDS.values() for field in fields})
)

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# ============================================================================
# Intake forms
# ============================================================================


class ApplicationFormBase(BaseModel):
    """Contact and address fields every application form collects."""

    applicant_name: str = Field(
        ..., min_length=2, max_length=200, description="Applicant's full name"
    )
    applicant_email: str = Field(..., max_length=320)
    applicant_phone: Optional[str] = Field(None, max_length=40)
    address: str = Field(..., min_length=5, max_length=300)
    city: str = Field(..., min_length=2, max_length=100)
    state: str = Field("NY", pattern=r"^[A-Za-z]{2}$")
    zip_code: str = Field(..., pattern=r"^\d{5}(-\d{4})?$")
    description: str = Field(..., min_length=10, max_length=10000)

    @validator("applicant_name", "address", "city", "description", pre=True)
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @validator("applicant_email")
    def validate_email(cls, v):
        """Reject addresses without a local part, an @ and a dotted domain."""
        v = v.strip()
        if not _EMAIL_PATTERN.match(v):
            raise ValueError("Please enter a valid email address")
        return v.lower()

    @validator("applicant_phone", pre=True)
    def blank_phone_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @validator("state")
    def upper_state(cls, v):
        return v.upper()


class ChildGrantMixin(BaseModel):
    """Fields for grants made on behalf of a child."""

    child_name: str = Field(..., min_length=2, max_length=200)
    child_age: int = Field(..., ge=0, le=18)
    relationship: str = Field(..., description="Applicant's relationship to the child")

    @validator("relationship", pre=True)
    def validate_relationship(cls, v):
        if isinstance(v, str):
            v = v.strip().lower().replace(" ", "_")
        if v not in RELATIONSHIP_CHOICES:
            raise ValueError(
                f"Relationship must be one of: {', '.join(RELATIONSHIP_CHOICES)}"
            )
        return v


class FunGrantForm(ChildGrantMixin, ApplicationFormBase):
    """Tickets and experiences that bring joy to a grieving child."""

    application_type: Literal["fun_grant"] = "fun_grant"
    loss_details: str = Field(..., min_length=10, max_length=10000)
    description: str = Field(..., min_length=20, max_length=10000)
    requested_amount: Optional[float] = Field(None, ge=0)


class AngelAidForm(ChildGrantMixin, ApplicationFormBase):
    """Financial aid for families facing medical bills or urgent expenses."""

    application_type: Literal["angel_aid"] = "angel_aid"
    loss_details: str = Field(..., min_length=10, max_length=10000)
    description: str = Field(..., min_length=20, max_length=10000)
    requested_amount: float = Field(..., ge=1)
    family_situation: Optional[str] = Field(None, max_length=10000)


class AngelHugForm(ApplicationFormBase):
    """Self-care grant for a parent or caregiver who has suffered a loss."""

    application_type: Literal["angel_hug"] = "angel_hug"
    loss_details: str = Field(..., min_length=10, max_length=10000)
    description: str = Field(..., min_length=20, max_length=10000)


class HugsUkraineForm(ChildGrantMixin, ApplicationFormBase):
    """Support for children affected by the war in Ukraine."""

    application_type: Literal["hugs_ukraine"] = "hugs_ukraine"
    description: str = Field(..., min_length=20, max_length=10000)
    requested_amount: Optional[float] = Field(None, ge=0)


class ScholarshipForm(ApplicationFormBase):
    """Annual scholarship for college-bound Capital Region seniors."""

    application_type: Literal["scholarship"] = "scholarship"
    school: str
    gpa: float = Field(..., ge=0, le=4.0)
    graduation_year: int = Field(..., ge=2024)
    essay_text: str = Field(..., min_length=100, max_length=20000)
    family_situation: Optional[str] = Field(None, max_length=10000)
    transcript_url: Optional[str] = Field(None, max_length=2000)
    recommendation_letter_url: Optional[str] = Field(None, max_length=2000)

    @validator("school")
    def validate_school(cls, v):
        if v not in CAPITAL_REGION_SCHOOLS:
            raise ValueError("Please select a participating Capital Region school")
        return v


ApplicationSubmission = Annotated[
    Union[FunGrantForm, AngelAidForm, AngelHugForm, HugsUkraineForm, ScholarshipForm],
    Field(discriminator="application_type"),
]

submission_adapter = TypeAdapter(ApplicationSubmission)

FORM_MODELS = {
    "fun_grant": FunGrantForm,
    "angel_aid": AngelAidForm,
    "angel_hug": AngelHugForm,
    "hugs_ukraine": HugsUkraineForm,
    "scholarship": ScholarshipForm,
}


class FieldError(BaseModel):
    field: str
    message: str


class ValidationResult(BaseModel):
    """Outcome of a pre-submit check; no row is written."""

    valid: bool
    errors: List[FieldError] = Field(default_factory=list)


class FormDefinition(BaseModel):
    """Field subset and rules the site renders for one category."""

    application_type: str
    title: str
    fields: List[str]
    json_schema: dict
    relationship_choices: Optional[List[str]] = None
    schools: Optional[List[str]] = None


class SubmissionResponse(BaseModel):
    message: str
    application_id: Optional[str] = None
    status: str = "pending"


class UploadResponse(BaseModel):
    url: str
    kind: str


# ============================================================================
# Stored rows and staff review
# ============================================================================


class ApplicationResponse(BaseModel):
    """Full application row (mirrors all table columns)."""

    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    application_type: str
    status: str = "pending"
    applicant_name: str
    applicant_email: str
    applicant_phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    description: Optional[str] = None
    child_name: Optional[str] = None
    child_age: Optional[int] = None
    relationship: Optional[str] = None
    loss_details: Optional[str] = None
    requested_amount: Optional[float] = None
    family_situation: Optional[str] = None
    school: Optional[str] = None
    gpa: Optional[float] = None
    graduation_year: Optional[int] = None
    essay_text: Optional[str] = None
    transcript_url: Optional[str] = None
    recommendation_letter_url: Optional[str] = None
    staff_notes: Optional[str] = None
    recommendation_summary: Optional[str] = None
    recommended_by: Optional[str] = None
    recommended_at: Optional[datetime] = None


class ApplicationListResponse(BaseModel):
    applications: List[ApplicationResponse]
    total: int


class VoteRequest(BaseModel):
    """Request body for a staff vote on an application or minutes item."""

    vote: str = Field(
        ...,
        pattern=r"^(approve|deny|discuss)$",
        description="Vote choice: approve, deny, or discuss",
    )
    comment: Optional[str] = Field(None, max_length=2000)


class VoteResponse(BaseModel):
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    application_id: str
    voter_id: str
    vote: str
    comment: Optional[str] = None


class VoteTally(BaseModel):
    """Vote counts per choice, computed from the fetched vote rows."""

    approve: int = 0
    deny: int = 0
    discuss: int = 0
    total: int = 0


class NoteRequest(BaseModel):
    note: str = Field(..., min_length=1, max_length=10000)

    @validator("note")
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Note cannot be empty")
        return v


class NoteResponse(BaseModel):
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    application_id: str
    user_id: str
    note: str
    is_internal: bool = True


class RecommendRequest(BaseModel):
    summary: str = Field(..., max_length=5000)

    @validator("summary")
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Please provide a recommendation summary")
        return v.strip()


class StatusUpdateRequest(BaseModel):
    new_status: ApplicationStatus


class ApplicationDetail(BaseModel):
    """Detail view backing the fields, voting and notes tabs."""

    application: ApplicationResponse
    votes: List[VoteResponse]
    tally: VoteTally
    my_vote: Optional[VoteResponse] = None
    notes: List[NoteResponse]


class DashboardStats(BaseModel):
    total: int = 0
    pending: int = 0
    recommended: int = 0
    approved: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)
