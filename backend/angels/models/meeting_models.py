"""Board meeting, minutes and RSVP schemas."""

from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, Field, validator

MEETING_TYPES = ("board", "staff", "committee")
MINUTES_STATUSES = ("pending", "approved", "denied", "discussion")
RSVP_STATUSES = ("attending", "not_attending", "maybe")


class MeetingCreate(BaseModel):
    """New meeting; date and time arrive as separate form inputs."""

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    meeting_date: date
    meeting_time: time
    location: Optional[str] = Field(None, max_length=300)
    meeting_type: str = Field("board", pattern=r"^(board|staff|committee)$")

    @validator("title")
    def title_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Title is required")
        return v.strip()


class MeetingResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    meeting_date: datetime
    location: Optional[str] = None
    meeting_type: str = "board"
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


class MeetingList(BaseModel):
    upcoming: List[MeetingResponse]
    past: List[MeetingResponse]


class MinutesCreate(BaseModel):
    minutes_text: str = Field(..., min_length=1)
    document_url: Optional[str] = Field(None, max_length=2000)

    @validator("minutes_text")
    def text_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Minutes text is required")
        return v

    @validator("document_url")
    def blank_url_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v


class MinutesVoteRequest(BaseModel):
    vote: str = Field(..., pattern=r"^(approve|deny|discuss)$")
    comment: Optional[str] = Field(None, max_length=2000)


class MinutesVoteResponse(BaseModel):
    id: str
    minute_id: str
    user_id: str
    vote: str
    comment: Optional[str] = None
    created_at: Optional[datetime] = None


class MinutesStatusUpdate(BaseModel):
    status: str = Field(..., pattern=r"^(pending|approved|denied|discussion)$")


class MinutesTally(BaseModel):
    """Counts per vote choice plus the caller's own vote, if any."""

    approve: int = 0
    deny: int = 0
    discuss: int = 0
    total: int = 0
    user_vote: Optional[str] = None


class MinutesResponse(BaseModel):
    id: str
    meeting_id: str
    minutes_text: str
    document_url: Optional[str] = None
    uploaded_by: Optional[str] = None
    status: str = "pending"
    created_at: Optional[datetime] = None
    tally: MinutesTally = Field(default_factory=MinutesTally)


class RsvpRequest(BaseModel):
    rsvp_status: str = Field(..., pattern=r"^(attending|not_attending|maybe)$")


class AttendeeResponse(BaseModel):
    id: Optional[str] = None
    meeting_id: str
    user_id: str
    rsvp_status: str


class MeetingDetail(BaseModel):
    meeting: MeetingResponse
    minutes: List[MinutesResponse]
    attendees: List[AttendeeResponse]
    my_rsvp: Optional[str] = None
    can_review_minutes: bool = False
