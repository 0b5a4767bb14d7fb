"""Volunteer portal and volunteer administration schemas."""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, validator


class OpportunityCreate(BaseModel):
    """Request body for posting a volunteer opportunity."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    event_date: date
    event_time: Optional[str] = Field(None, max_length=50)
    location: str = Field(..., min_length=1, max_length=300)
    total_spots: int = Field(..., ge=1, le=1000)
    category: Optional[str] = Field(None, max_length=100)
    requirements: Optional[str] = Field(None, max_length=2000)
    contact_email: Optional[str] = Field(None, max_length=320)


class OpportunityUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    event_date: Optional[date] = None
    event_time: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=300)
    total_spots: Optional[int] = Field(None, ge=1, le=1000)
    category: Optional[str] = Field(None, max_length=100)
    requirements: Optional[str] = Field(None, max_length=2000)
    contact_email: Optional[str] = Field(None, max_length=320)
    status: Optional[str] = Field(None, pattern=r"^(active|full|cancelled)$")


class OpportunityResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    event_date: date
    event_time: Optional[str] = None
    location: Optional[str] = None
    total_spots: int
    filled_spots: int = 0
    spots_remaining: int = 0
    category: Optional[str] = None
    requirements: Optional[str] = None
    contact_email: Optional[str] = None
    status: str = "active"


class RsvpCreate(BaseModel):
    opportunity_id: str
    notes: Optional[str] = Field(None, max_length=2000)


class RsvpResponse(BaseModel):
    id: str
    opportunity_id: str
    volunteer_id: str
    status: str
    rsvp_date: Optional[datetime] = None
    cancellation_date: Optional[datetime] = None
    notes: Optional[str] = None
    hours_worked: Optional[float] = None


class RsvpActionResponse(BaseModel):
    """Confirmation banner text plus the RSVP row as stored."""

    message: str
    rsvp: RsvpResponse


class AnnouncementReadResponse(BaseModel):
    announcement_id: str
    is_read: bool = True
    updated: bool


class AttendanceRequest(BaseModel):
    hours_worked: float = Field(..., gt=0, le=24)


class AnnouncementCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=10000)
    priority: str = Field("normal", pattern=r"^(normal|urgent)$")
    send_email: bool = False
    send_sms: bool = False
    target_group: str = Field("all", pattern=r"^(all|active|specific)$")

    @validator("title", "message")
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


class AnnouncementResponse(BaseModel):
    id: str
    title: str
    message: str
    priority: str = "normal"
    target_group: str = "all"
    send_email: Optional[bool] = False
    send_sms: Optional[bool] = False
    created_at: Optional[datetime] = None
    is_read: bool = False


class VolunteerDashboard(BaseModel):
    """Everything the volunteer dashboard renders after sign-in."""

    profile: Dict[str, Any]
    upcoming_rsvps: List[Dict[str, Any]]
    past_rsvps: List[Dict[str, Any]]
    announcements: List[AnnouncementResponse]
    unread_count: int = 0


class VolunteerAdminStats(BaseModel):
    total_volunteers: int = 0
    active_opportunities: int = 0
    total_rsvps: int = 0
    total_hours: float = 0


class VolunteerAdminOverview(BaseModel):
    opportunities: List[Dict[str, Any]]
    volunteers: List[Dict[str, Any]]
    announcements: List[Dict[str, Any]]
    stats: VolunteerAdminStats
