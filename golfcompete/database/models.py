"""
SQLAlchemy ORM models for the GolfCompete competition system.
"""

import enum
import uuid
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    Float,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
)
from sqlalchemy.sql import func
from golfcompete.database.db import Base
from golfcompete.utils.datetime_utils import utcnow


def generate_id() -> str:
    """Opaque string identifier for new rows."""
    return str(uuid.uuid4())


class SeriesStatus(str, enum.Enum):
    """Series status enum."""

    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ParticipantRole(str, enum.Enum):
    """Role of a series participant."""

    ADMIN = "admin"
    PARTICIPANT = "participant"


class ParticipantStatus(str, enum.Enum):
    """Series participant status enum."""

    INVITED = "invited"
    CONFIRMED = "confirmed"
    ACTIVE = "active"
    DECLINED = "declined"
    WITHDRAWN = "withdrawn"


# Statuses that count as active membership (fan-out, series admin checks use CONFIRMED only)
ACTIVE_PARTICIPANT_STATUSES = (ParticipantStatus.CONFIRMED.value, ParticipantStatus.ACTIVE.value)


class EventStatus(str, enum.Enum):
    """Event status enum."""

    DRAFT = "draft"
    SCHEDULED = "scheduled"
    UPCOMING = "upcoming"
    ACTIVE = "active"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class InvitationStatus(str, enum.Enum):
    """Event participant invitation status enum."""

    INVITED = "invited"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    WITHDRAWN = "withdrawn"


class RoundStatus(str, enum.Enum):
    """Round status enum."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class NoteResourceType(str, enum.Enum):
    """Resource types a note can be linked to."""

    SERIES = "series"
    EVENT = "event"
    ROUND = "round"
    COURSE = "course"
    PLAYER = "player"


class User(Base):
    """User accounts and profiles."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String, nullable=False, unique=True)
    password_hash = Column(String, nullable=True)  # NULL for OAuth-only accounts
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    username = Column(String, nullable=True, unique=True)
    display_name = Column(String, nullable=True)
    handicap_index = Column(Float, nullable=True)  # Overall handicap (rounds without a bag)
    is_admin = Column(Boolean, default=False, nullable=False)  # Site admin
    is_active = Column(Boolean, default=True, nullable=False)
    auth_provider = Column(String, default="email", nullable=False)
    last_sign_in_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    __table_args__ = (Index("idx_users_email", "email"),)


class PasswordResetToken(Base):
    """Single-use password reset tokens."""

    __tablename__ = "password_reset_tokens"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token = Column(String(128), nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    __table_args__ = (Index("idx_password_reset_tokens_user", "user_id"),)


class Series(Base):
    """Season-long competitions grouping multiple events."""

    __tablename__ = "series"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    status = Column(String, nullable=False, default=SeriesStatus.DRAFT.value)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'active', 'completed', 'cancelled')", name="ck_series_status"
        ),
        Index("idx_series_status", "status"),
        Index("idx_series_created_by", "created_by"),
    )


class SeriesParticipant(Base):
    """Membership of a user in a series."""

    __tablename__ = "series_participants"

    id = Column(String(36), primary_key=True, default=generate_id)
    series_id = Column(String(36), ForeignKey("series.id"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    role = Column(String, nullable=False, default=ParticipantRole.PARTICIPANT.value)
    status = Column(String, nullable=False, default=ParticipantStatus.INVITED.value)
    joined_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("series_id", "user_id", name="uq_series_participants_series_user"),
        CheckConstraint("role IN ('admin', 'participant')", name="ck_series_participants_role"),
        Index("idx_series_participants_series", "series_id"),
        Index("idx_series_participants_user", "user_id"),
    )


class SeriesEvent(Base):
    """Ordering of events inside a series."""

    __tablename__ = "series_events"

    id = Column(String(36), primary_key=True, default=generate_id)
    series_id = Column(String(36), ForeignKey("series.id"), nullable=False)
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, unique=True)
    event_order = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("series_id", "event_order", name="uq_series_events_series_order"),
        Index("idx_series_events_series", "series_id"),
    )


class Course(Base):
    """Golf courses (reference data, site-admin managed)."""

    __tablename__ = "courses"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    country = Column(String, nullable=True, default="USA")
    phone = Column(String, nullable=True)
    website = Column(String, nullable=True)
    num_holes = Column(Integer, nullable=False, default=18)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    __table_args__ = (Index("idx_courses_name", "name"),)


class CourseTee(Base):
    """Tee sets of a course with rating and slope."""

    __tablename__ = "course_tees"

    id = Column(String(36), primary_key=True, default=generate_id)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False)
    name = Column(String, nullable=False)
    color = Column(String, nullable=True)
    men_rating = Column(Float, nullable=True)
    men_slope = Column(Integer, nullable=True)
    women_rating = Column(Float, nullable=True)
    women_slope = Column(Integer, nullable=True)
    yardage = Column(Integer, nullable=True)

    __table_args__ = (Index("idx_course_tees_course", "course_id"),)


class Hole(Base):
    """Holes of a course."""

    __tablename__ = "holes"

    id = Column(String(36), primary_key=True, default=generate_id)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False)
    hole_number = Column(Integer, nullable=False)
    par = Column(Integer, nullable=False)
    handicap_index = Column(Integer, nullable=False)
    yards = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("course_id", "hole_number", name="uq_holes_course_hole_number"),
        CheckConstraint("hole_number BETWEEN 1 AND 18", name="ck_holes_hole_number"),
        CheckConstraint("par BETWEEN 3 AND 5", name="ck_holes_par"),
        Index("idx_holes_course", "course_id"),
    )


class Event(Base):
    """A single competitive occurrence, optionally part of a series."""

    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    event_date = Column(DateTime(timezone=True), nullable=False)
    status = Column(String, nullable=False, default=EventStatus.SCHEDULED.value)
    series_id = Column(String(36), ForeignKey("series.id"), nullable=True)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=True)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    __table_args__ = (
        Index("idx_events_series", "series_id"),
        Index("idx_events_date", "event_date"),
        Index("idx_events_created_by", "created_by"),
    )


class EventParticipant(Base):
    """Invitation/registration of a user for an event."""

    __tablename__ = "event_participants"

    id = Column(String(36), primary_key=True, default=generate_id)
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    status = Column(String, nullable=False, default=InvitationStatus.INVITED.value)
    invitation_date = Column(DateTime(timezone=True), default=utcnow, nullable=True)
    response_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_participants_event_user"),
        Index("idx_event_participants_event", "event_id"),
        Index("idx_event_participants_user", "user_id"),
    )


class Bag(Base):
    """Equipment setups; handicaps are tracked per bag."""

    __tablename__ = "bags"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    name = Column(String, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    handicap_index = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    __table_args__ = (Index("idx_bags_user", "user_id"),)


class Round(Base):
    """One user's play-through of a course."""

    __tablename__ = "rounds"

    id = Column(String(36), primary_key=True, default=generate_id)
    event_id = Column(String(36), ForeignKey("events.id"), nullable=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False)
    course_tee_id = Column(String(36), ForeignKey("course_tees.id"), nullable=False)
    bag_id = Column(String(36), ForeignKey("bags.id"), nullable=True)
    round_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    total_score = Column(Integer, nullable=True)  # NULL until scores are entered
    status = Column(String, nullable=False, default=RoundStatus.IN_PROGRESS.value)
    weather_conditions = Column(String, nullable=True)
    course_conditions = Column(String, nullable=True)
    temperature = Column(Integer, nullable=True)
    wind_conditions = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    __table_args__ = (
        Index("idx_rounds_user_date", "user_id", "round_date"),
        Index("idx_rounds_event", "event_id"),
        Index("idx_rounds_bag", "bag_id"),
    )


class Score(Base):
    """Hole-by-hole score of a round."""

    __tablename__ = "scores"

    id = Column(String(36), primary_key=True, default=generate_id)
    round_id = Column(String(36), ForeignKey("rounds.id"), nullable=False)
    hole_number = Column(Integer, nullable=False)
    strokes = Column(Integer, nullable=False)
    putts = Column(Integer, nullable=True)
    fairway_hit = Column(Boolean, nullable=True)
    green_in_regulation = Column(Boolean, nullable=True)
    penalty_strokes = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("round_id", "hole_number", name="uq_scores_round_hole_number"),
        CheckConstraint("hole_number BETWEEN 1 AND 18", name="ck_scores_hole_number"),
        Index("idx_scores_round", "round_id"),
    )


class UserNote(Base):
    """Free-text notes scoped to a user."""

    __tablename__ = "user_notes"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    related_resource_id = Column(String(36), nullable=True)
    related_resource_type = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    __table_args__ = (
        Index("idx_user_notes_user", "user_id"),
        Index("idx_user_notes_resource", "related_resource_type", "related_resource_id"),
    )
