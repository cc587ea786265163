# citycal/schemas/event.py
"""
Canonical Event Schema for the city events calendar.

Events arrive from loosely-structured spreadsheet feeds whose columns drift
over time. Every row that survives normalization becomes one immutable
``Event``; the rest of the application (listing filters, recommendation
scoring) consumes these values and never sees the raw rows.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)


def format_instant(value: datetime) -> str:
    """Render an instant as UTC ISO-8601 with millisecond precision and a Z suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return f"{value:%Y-%m-%dT%H:%M:%S}.{value.microsecond // 1000:03d}Z"


# ============================================================================
# ENUMS
# ============================================================================


class EventStatus(str, Enum):
    """
    Closed set of canonical event statuses.

    Source feeds use an open vocabulary; see
    ``citycal.ingestion.normalization.status`` for the mapping.
    """

    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
    POSTPONED = "postponed"
    SOLD_OUT = "sold_out"
    DRAFT = "draft"
    ARCHIVED = "archived"


# Statuses that appear in default event listings
VISIBLE_IN_LISTING = frozenset(
    {EventStatus.SCHEDULED, EventStatus.SOLD_OUT, EventStatus.POSTPONED}
)

# Statuses never visible publicly
NEVER_VISIBLE = frozenset({EventStatus.DRAFT})


# ============================================================================
# MAIN EVENT SCHEMA
# ============================================================================


class Event(BaseModel):
    """
    Normalized event, immutable once produced.

    ``event_id``, ``title`` and ``start`` are always present. ``venue_key``
    is either a canonical venue key, a derived fallback key, or empty when
    the row carried no venue information at all.
    """

    model_config = ConfigDict(
        frozen=True,
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "event_id": "e1",
                "title": "Jazz Night",
                "start": "2024-05-01T20:00:00.000Z",
                "status": "scheduled",
                "venue_key": "b-leza",
                "tags": ["jazz", "live music"],
            }
        },
    )

    # ---- IDENTITY ----
    event_id: str = Field(min_length=1)
    dedupe_key: Optional[str] = None
    source_event_id: Optional[str] = None

    # ---- DESCRIPTION ----
    title: str = Field(min_length=1)
    description_short: Optional[str] = None
    description_long: Optional[str] = None

    # ---- TIMING ----
    start: datetime
    end: Optional[datetime] = None
    timezone: str = "Europe/Lisbon"
    is_all_day: bool = False
    status: EventStatus = EventStatus.SCHEDULED
    recurrence_rule: Optional[str] = None

    # ---- LOCATION ----
    venue_id: Optional[str] = None
    venue_key: str = ""
    venue_name: Optional[str] = None
    venue_address: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    # ---- CLASSIFICATION ----
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    # ---- COMMERCIAL ----
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    currency: Optional[str] = None
    is_free: bool = False
    age_restriction: Optional[str] = None
    language: Optional[str] = None

    # ---- MEDIA & TICKETING ----
    ticket_url: Optional[str] = None
    primary_image_id: Optional[str] = None
    primary_image_url: Optional[str] = None
    image_credit: Optional[str] = None

    # ---- PROMOTER ----
    promoter_id: Optional[str] = None
    promoter_name: Optional[str] = None

    # ---- PROVENANCE ----
    source_name: Optional[str] = None
    source_url: Optional[str] = None
    confidence_score: Optional[float] = None
    first_seen_at: Optional[datetime] = None
    last_seen_at: Optional[datetime] = None
    changed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("start", "end")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Store instants as timezone-aware UTC."""
        if v is None:
            return None
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @model_validator(mode="after")
    def validate_time_range(self) -> "Event":
        if self.end is not None and self.end < self.start:
            raise ValueError("end cannot be earlier than start")
        return self

    @field_serializer("start", "end")
    def serialize_instant(self, v: Optional[datetime]) -> Optional[str]:
        """Serialize instants the way the calendar front end expects them."""
        if v is None:
            return None
        return format_instant(v)
