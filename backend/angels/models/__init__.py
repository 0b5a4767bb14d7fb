"""
Kelly's Angels API Models

Pydantic models for request validation and response serialization.
"""

from .application_models import (
    ApplicationStatus,
    ApplicationType,
    ApplicationSubmission,
    ApplicationResponse,
    ValidationResult,
    VoteRequest,
    VoteTally,
)
from .donation_models import CheckoutRequest, CheckoutResponse
from .meeting_models import MeetingCreate, MinutesCreate, MinutesTally
from .volunteer_models import OpportunityCreate, RsvpCreate, AnnouncementCreate
from .grant_models import GrantCreate, GrantUpdate, GrantResponse
from .auth_models import LoginRequest, VolunteerSignupRequest, SessionResponse
