"""
Shared pytest fixtures for the city events pipeline test suite.

Provides factory fixtures for Event objects, raw feed rows and a small
canonical venue registry.
"""

from datetime import datetime, timezone
from typing import Optional

import pytest

from citycal.schemas.event import Event
from citycal.schemas.venue import CanonicalVenueDescriptor


@pytest.fixture
def create_event():
    """
    Return a function that creates Event objects with sensible defaults.

    All defaults can be overridden via keyword arguments.

    Example:
        event = create_event(title="Jazz Night", venue_key="b-leza")
    """
    counter = {"n": 0}

    def _create_event(
        title: str = "Test Event",
        start: Optional[datetime] = None,
        **kwargs,
    ) -> Event:
        counter["n"] += 1
        if start is None:
            start = datetime(2024, 6, 15, 20, 0, tzinfo=timezone.utc)

        defaults = {
            "event_id": f"evt-{counter['n']}",
            "title": title,
            "start": start,
            "venue_name": "Test Venue",
            "venue_key": "test-venue",
        }
        defaults.update(kwargs)
        return Event(**defaults)

    return _create_event


@pytest.fixture
def create_row():
    """
    Return a function that creates raw events-feed rows (all values strings).

    Example:
        row = create_row(id="e1", title=None)  # None removes the column
    """

    def _create_row(**kwargs) -> dict:
        row = {
            "event_id": "e1",
            "title": "Jazz Night",
            "start_datetime": "2024-05-01T20:00:00Z",
            "venue_name": "B.Leza",
            "status": "active",
        }
        row.update(kwargs)
        return {k: v for k, v in row.items() if v is not None}

    return _create_row


@pytest.fixture
def registry():
    """Small ordered venue registry used by resolver tests."""
    return (
        CanonicalVenueDescriptor(key="b-leza", name="B.Leza", handle="clube_b.leza"),
        CanonicalVenueDescriptor(key="rumuclub", name="Rumu Club", handle="rumu.club"),
        CanonicalVenueDescriptor(key="lux-fragil", name="Lux Frágil", handle="luxfragil"),
        CanonicalVenueDescriptor(key="tokyo-lisboa", name="Tokyo Lisboa", handle="tokyolisboa"),
        CanonicalVenueDescriptor(key="tokyo-rooftop", name="Tokyo Rooftop", handle="tokyo.rooftop"),
        CanonicalVenueDescriptor(key="ze-dos-bois", name="Galeria Zé dos Bois", handle="zedosbois"),
    )
