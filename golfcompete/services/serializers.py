"""
Record to wire mapping.

Each model lists the columns it exposes; datetimes become ISO-8601
strings. Password hashes never leave the service layer through here.
"""

from datetime import datetime
from typing import Any, Dict, Sequence

from golfcompete.database.models import (
    Bag,
    Course,
    CourseTee,
    Event,
    EventParticipant,
    Hole,
    Round,
    Score,
    Series,
    SeriesEvent,
    SeriesParticipant,
    User,
    UserNote,
)
from golfcompete.utils.datetime_utils import to_iso

USER_FIELDS = (
    "id",
    "email",
    "first_name",
    "last_name",
    "username",
    "display_name",
    "handicap_index",
    "is_admin",
    "is_active",
    "auth_provider",
    "last_sign_in_at",
    "created_at",
    "updated_at",
)
SERIES_FIELDS = (
    "id",
    "name",
    "description",
    "start_date",
    "end_date",
    "status",
    "created_by",
    "created_at",
    "updated_at",
)
SERIES_PARTICIPANT_FIELDS = ("id", "series_id", "user_id", "role", "status", "joined_at", "created_at")
SERIES_EVENT_FIELDS = ("id", "series_id", "event_id", "event_order")
EVENT_FIELDS = (
    "id",
    "name",
    "description",
    "event_date",
    "status",
    "series_id",
    "course_id",
    "created_by",
    "created_at",
    "updated_at",
)
EVENT_PARTICIPANT_FIELDS = (
    "id",
    "event_id",
    "user_id",
    "status",
    "invitation_date",
    "response_date",
    "created_at",
)
BAG_FIELDS = ("id", "user_id", "name", "is_default", "handicap_index", "created_at")
ROUND_FIELDS = (
    "id",
    "event_id",
    "user_id",
    "course_id",
    "course_tee_id",
    "bag_id",
    "round_date",
    "total_score",
    "status",
    "weather_conditions",
    "course_conditions",
    "temperature",
    "wind_conditions",
    "notes",
    "created_at",
    "updated_at",
)
SCORE_FIELDS = (
    "id",
    "round_id",
    "hole_number",
    "strokes",
    "putts",
    "fairway_hit",
    "green_in_regulation",
    "penalty_strokes",
)
COURSE_FIELDS = (
    "id",
    "name",
    "address",
    "city",
    "state",
    "country",
    "phone",
    "website",
    "num_holes",
    "created_by",
    "created_at",
    "updated_at",
)
COURSE_TEE_FIELDS = (
    "id",
    "course_id",
    "name",
    "color",
    "men_rating",
    "men_slope",
    "women_rating",
    "women_slope",
    "yardage",
)
HOLE_FIELDS = ("id", "course_id", "hole_number", "par", "handicap_index", "yards", "notes")
NOTE_FIELDS = (
    "id",
    "user_id",
    "content",
    "related_resource_id",
    "related_resource_type",
    "created_at",
    "updated_at",
)

FIELDS_BY_MODEL = {
    User: USER_FIELDS,
    Series: SERIES_FIELDS,
    SeriesParticipant: SERIES_PARTICIPANT_FIELDS,
    SeriesEvent: SERIES_EVENT_FIELDS,
    Event: EVENT_FIELDS,
    EventParticipant: EVENT_PARTICIPANT_FIELDS,
    Bag: BAG_FIELDS,
    Round: ROUND_FIELDS,
    Score: SCORE_FIELDS,
    Course: COURSE_FIELDS,
    CourseTee: COURSE_TEE_FIELDS,
    Hole: HOLE_FIELDS,
    UserNote: NOTE_FIELDS,
}


def _wire_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_iso(value)
    return value


def to_dict(record, fields: Sequence[str]) -> Dict[str, Any]:
    return {name: _wire_value(getattr(record, name)) for name in fields}


def serialize(record) -> Dict[str, Any]:
    """Serialize any ORM record known to the service layer."""
    try:
        fields = FIELDS_BY_MODEL[type(record)]
    except KeyError:
        raise TypeError(f"No serializer registered for {type(record).__name__}")
    return to_dict(record, fields)
