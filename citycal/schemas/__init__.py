"""Canonical data models produced by the ingestion pipeline."""

from .collection import Collection, CollectionItem, CollectionType
from .event import Event, EventStatus, format_instant
from .promoter import Promoter
from .venue import CanonicalVenueDescriptor, Coordinates, Venue

__all__ = [
    "CanonicalVenueDescriptor",
    "Collection",
    "CollectionItem",
    "CollectionType",
    "Coordinates",
    "Event",
    "EventStatus",
    "Promoter",
    "Venue",
    "format_instant",
]
