"""
Pydantic models for API request validation.

Request bodies are snake_case. Update models make every field optional and
are dumped with ``exclude_unset=True`` so only supplied keys are written.
"""

from datetime import datetime
from typing import Annotated, Optional, List, Literal
from pydantic import AfterValidator, BaseModel, Field, field_validator, model_validator

from golfcompete.utils.datetime_utils import ensure_aware

SeriesStatusValue = Literal["draft", "active", "completed", "cancelled"]
ParticipantRoleValue = Literal["admin", "participant"]
ParticipantStatusValue = Literal["invited", "confirmed", "active", "declined", "withdrawn"]
EventStatusValue = Literal[
    "draft", "scheduled", "upcoming", "active", "in_progress", "completed", "cancelled"
]
InvitationStatusValue = Literal["invited", "confirmed", "declined", "withdrawn"]
RoundStatusValue = Literal["in_progress", "completed"]
NoteResourceTypeValue = Literal["series", "event", "round", "course", "player"]
OAuthProviderValue = Literal["google", "github", "facebook"]


def _check_email(value: str) -> str:
    value = value.strip().lower()
    local, _, domain = value.partition("@")
    if not local or "." not in domain:
        raise ValueError("Invalid email address")
    return value


EmailAddress = Annotated[str, AfterValidator(_check_email)]


# Series schemas


class SeriesCreate(BaseModel):
    """Request to create a series."""

    name: str = Field(min_length=3)
    description: Optional[str] = None
    start_date: datetime
    end_date: datetime
    status: SeriesStatusValue = "draft"

    @model_validator(mode="after")
    def validate_dates(self):
        """End date may not precede start date."""
        if ensure_aware(self.end_date) < ensure_aware(self.start_date):
            raise ValueError("end_date must be on or after start_date")
        return self


class SeriesUpdate(BaseModel):
    """Partial series update; dates are re-checked against stored values."""

    name: Optional[str] = Field(default=None, min_length=3)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[SeriesStatusValue] = None

    @model_validator(mode="after")
    def validate_dates(self):
        if (
            self.start_date
            and self.end_date
            and ensure_aware(self.end_date) < ensure_aware(self.start_date)
        ):
            raise ValueError("end_date must be on or after start_date")
        return self


class SeriesParticipantCreate(BaseModel):
    user_id: str
    role: ParticipantRoleValue = "participant"


class SeriesParticipantUpdate(BaseModel):
    role: Optional[ParticipantRoleValue] = None
    status: Optional[ParticipantStatusValue] = None


class InvitationResponse(BaseModel):
    """Accept or decline an invitation."""

    accept: bool


# Event schemas


class EventCreate(BaseModel):
    """Request to create an event, optionally inside a series."""

    name: str = Field(min_length=3)
    description: Optional[str] = None
    event_date: datetime
    status: EventStatusValue = "scheduled"
    series_id: Optional[str] = None
    course_id: Optional[str] = None


class EventUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3)
    description: Optional[str] = None
    event_date: Optional[datetime] = None
    status: Optional[EventStatusValue] = None
    course_id: Optional[str] = None


class EventParticipantCreate(BaseModel):
    user_id: str
    status: InvitationStatusValue = "invited"


# Round and score schemas


class RoundCreate(BaseModel):
    """Request to start a round; bag defaults to the caller's default bag."""

    course_id: str
    course_tee_id: str
    bag_id: Optional[str] = None
    event_id: Optional[str] = None
    round_date: Optional[datetime] = None
    weather_conditions: Optional[str] = None
    course_conditions: Optional[str] = None
    temperature: Optional[int] = None
    wind_conditions: Optional[str] = None
    notes: Optional[str] = None


class RoundUpdate(BaseModel):
    course_tee_id: Optional[str] = None
    bag_id: Optional[str] = None
    event_id: Optional[str] = None
    round_date: Optional[datetime] = None
    status: Optional[RoundStatusValue] = None
    weather_conditions: Optional[str] = None
    course_conditions: Optional[str] = None
    temperature: Optional[int] = None
    wind_conditions: Optional[str] = None
    notes: Optional[str] = None


class RoundComplete(BaseModel):
    total_score: int = Field(ge=1)


class ScoreCreate(BaseModel):
    """Hole-by-hole score entry."""

    hole_number: int = Field(ge=1, le=18)
    strokes: int = Field(ge=1)
    putts: Optional[int] = Field(default=None, ge=0)
    fairway_hit: Optional[bool] = None
    green_in_regulation: Optional[bool] = None
    penalty_strokes: int = Field(default=0, ge=0)


class ScoreUpdate(BaseModel):
    hole_number: Optional[int] = Field(default=None, ge=1, le=18)
    strokes: Optional[int] = Field(default=None, ge=1)
    putts: Optional[int] = Field(default=None, ge=0)
    fairway_hit: Optional[bool] = None
    green_in_regulation: Optional[bool] = None
    penalty_strokes: Optional[int] = Field(default=None, ge=0)


# Bag schemas


class BagCreate(BaseModel):
    name: str = Field(min_length=1)
    is_default: bool = False


# Course schemas


class HoleCreate(BaseModel):
    """Hole definition: par 3-5, stroke index 1-18."""

    hole_number: int = Field(ge=1, le=18)
    par: int = Field(ge=3, le=5)
    handicap_index: int = Field(ge=1, le=18)
    yards: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None


class HoleUpdate(BaseModel):
    hole_number: Optional[int] = Field(default=None, ge=1, le=18)
    par: Optional[int] = Field(default=None, ge=3, le=5)
    handicap_index: Optional[int] = Field(default=None, ge=1, le=18)
    yards: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None


class TeeCreate(BaseModel):
    """Tee set with course rating and slope (55-155)."""

    name: str = Field(min_length=1)
    color: Optional[str] = None
    men_rating: Optional[float] = Field(default=None, gt=0)
    men_slope: Optional[int] = Field(default=None, ge=55, le=155)
    women_rating: Optional[float] = Field(default=None, gt=0)
    women_slope: Optional[int] = Field(default=None, ge=55, le=155)
    yardage: Optional[int] = Field(default=None, ge=0)


class TeeUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    color: Optional[str] = None
    men_rating: Optional[float] = Field(default=None, gt=0)
    men_slope: Optional[int] = Field(default=None, ge=55, le=155)
    women_rating: Optional[float] = Field(default=None, gt=0)
    women_slope: Optional[int] = Field(default=None, ge=55, le=155)
    yardage: Optional[int] = Field(default=None, ge=0)


class CourseCreate(BaseModel):
    """Course with optional initial tees and holes."""

    name: str = Field(min_length=1)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = "USA"
    phone: Optional[str] = None
    website: Optional[str] = None
    num_holes: int = Field(default=18, ge=1, le=18)
    tees: List[TeeCreate] = []
    holes: List[HoleCreate] = []

    @field_validator("holes")
    @classmethod
    def unique_hole_numbers(cls, holes: List[HoleCreate]) -> List[HoleCreate]:
        numbers = [hole.hole_number for hole in holes]
        if len(numbers) != len(set(numbers)):
            raise ValueError("Hole numbers must be unique")
        return holes


class CourseUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    num_holes: Optional[int] = Field(default=None, ge=1, le=18)


class HolesBulkReplace(BaseModel):
    """Full replacement hole set; an empty list removes every hole."""

    holes: List[HoleCreate]

    @field_validator("holes")
    @classmethod
    def unique_hole_numbers(cls, holes: List[HoleCreate]) -> List[HoleCreate]:
        numbers = [hole.hole_number for hole in holes]
        if len(numbers) != len(set(numbers)):
            raise ValueError("Hole numbers must be unique")
        return holes


class TeesBulkReplace(BaseModel):
    tees: List[TeeCreate]


# Note schemas


class NoteCreate(BaseModel):
    content: str = Field(min_length=1)
    related_resource_id: Optional[str] = None
    related_resource_type: Optional[NoteResourceTypeValue] = None


class NoteUpdate(BaseModel):
    content: Optional[str] = Field(default=None, min_length=1)
    related_resource_id: Optional[str] = None
    related_resource_type: Optional[NoteResourceTypeValue] = None


# User schemas


class UserCreate(BaseModel):
    """Administrative user creation."""

    email: EmailAddress
    password: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    is_admin: bool = False


class UserAdminUpdate(BaseModel):
    email: Optional[EmailAddress] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    display_name: Optional[str] = None
    is_admin: Optional[bool] = None
    is_active: Optional[bool] = None
    handicap_index: Optional[float] = None


class UserStatusUpdate(BaseModel):
    is_active: bool


class ProfileUpdate(BaseModel):
    """Self-service profile update."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    display_name: Optional[str] = None


# Authentication schemas


class LoginRequest(BaseModel):
    """Request to login with email and password."""

    email: EmailAddress
    password: str


class RegisterRequest(BaseModel):
    """Request to register an email/password account."""

    email: EmailAddress
    password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    email: EmailAddress


class ResetPasswordConfirmRequest(BaseModel):
    token: str
    password: str


class UpdatePasswordRequest(BaseModel):
    password: str


class AuthResponse(BaseModel):
    """Authentication response with JWT token."""

    user_id: str
    access_token: str
    token_type: str = "bearer"
