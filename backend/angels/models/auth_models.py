"""Login, sign-up and session schemas for both portals."""

from typing import List, Optional

from pydantic import BaseModel, Field, validator

from .application_models import _EMAIL_PATTERN


class LoginRequest(BaseModel):
    email: str = Field(..., max_length=320)
    password: str = Field(..., min_length=1, max_length=200)

    @validator("email")
    def normalize_email(cls, v):
        v = v.strip().lower()
        if not _EMAIL_PATTERN.match(v):
            raise ValueError("Please enter a valid email address")
        return v


class VolunteerSignupRequest(LoginRequest):
    """Account plus profile fields collected on the volunteer sign-up page."""

    password: str = Field(..., min_length=8, max_length=200)
    full_name: str = Field(..., min_length=2, max_length=200)
    phone: Optional[str] = Field(None, max_length=40)
    notify_email: bool = True
    notify_sms: bool = False
    interests: List[str] = Field(default_factory=list)


class SessionResponse(BaseModel):
    """Tokens for the signed-in user; sign-up without a session carries none."""

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    user_id: str
    email: Optional[str] = None
    role: Optional[str] = None
    portal: str
    message: Optional[str] = None


class CurrentSession(BaseModel):
    user_id: str
    email: Optional[str] = None
    role: Optional[str] = None
    is_volunteer: bool = False
