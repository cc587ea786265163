"""
Unit tests for the canonical schemas.

Tests for Event validation and serialization, and for the venue and
promoter models.
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from citycal.schemas.event import Event, EventStatus, format_instant
from citycal.schemas.promoter import Promoter
from citycal.schemas.venue import Coordinates, Venue


class TestFormatInstant:
    """Tests for format_instant."""

    def test_utc_with_millis(self):
        value = datetime(2024, 5, 1, 20, 0, 0, 123456, tzinfo=timezone.utc)

        assert format_instant(value) == "2024-05-01T20:00:00.123Z"

    def test_offset_converted(self):
        """Offsets should be converted to UTC."""
        value = datetime(2024, 5, 1, 21, 0, tzinfo=timezone(timedelta(hours=1)))

        assert format_instant(value) == "2024-05-01T20:00:00.000Z"

    def test_naive_treated_as_utc(self):
        assert format_instant(datetime(2024, 5, 1, 20, 0)) == "2024-05-01T20:00:00.000Z"


class TestEvent:
    """Tests for the Event model."""

    def test_defaults(self, create_event):
        event = create_event()

        assert event.status == EventStatus.SCHEDULED
        assert event.tags == []
        assert event.end is None
        assert not event.is_free

    def test_naive_start_stored_as_utc(self, create_event):
        event = create_event(start=datetime(2024, 5, 1, 20, 0))

        assert event.start.tzinfo is not None
        assert event.start.utcoffset() == timedelta(0)

    def test_end_before_start_rejected(self, create_event):
        start = datetime(2024, 5, 1, 20, 0, tzinfo=timezone.utc)

        with pytest.raises(ValidationError):
            create_event(start=start, end=start - timedelta(hours=1))

    def test_end_equal_to_start_allowed(self, create_event):
        start = datetime(2024, 5, 1, 20, 0, tzinfo=timezone.utc)

        assert create_event(start=start, end=start).end == start

    def test_empty_title_rejected(self, create_event):
        with pytest.raises(ValidationError):
            create_event(title="")

    def test_frozen(self, create_event):
        """Events should be immutable once produced."""
        event = create_event()

        with pytest.raises(ValidationError):
            event.title = "Changed"

    def test_serialized_instants(self, create_event):
        """Start and end should serialize as UTC strings with a Z suffix."""
        start = datetime(2024, 5, 1, 20, 0, tzinfo=timezone.utc)
        data = create_event(start=start, end=start + timedelta(hours=2)).model_dump()

        assert data["start"] == "2024-05-01T20:00:00.000Z"
        assert data["end"] == "2024-05-01T22:00:00.000Z"
        assert data["status"] == "scheduled"


class TestVenue:
    """Tests for Venue and Coordinates."""

    def test_coordinates_range(self):
        with pytest.raises(ValidationError):
            Coordinates(latitude=91, longitude=0)
        with pytest.raises(ValidationError):
            Coordinates(latitude=0, longitude=-181)

    def test_venue_id_required(self):
        with pytest.raises(ValidationError):
            Venue(venue_id="", name="X", slug="x")


class TestPromoter:
    """Tests for Promoter."""

    def test_defaults(self):
        promoter = Promoter(promoter_id="p1", name="Crew", slug="crew")

        assert promoter.is_active is True
        assert promoter.instagram_handle is None

    def test_name_required(self):
        with pytest.raises(ValidationError):
            Promoter(promoter_id="p1", name="", slug="x")

    def test_frozen(self):
        promoter = Promoter(promoter_id="p1", name="Crew", slug="crew")

        with pytest.raises(ValidationError):
            promoter.name = "Other"
