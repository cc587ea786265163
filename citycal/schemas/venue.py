# citycal/schemas/venue.py
"""
Venue identities.

``Venue`` is the full record loaded from the venues feed (or derived from the
static registry when no feed is configured). ``CanonicalVenueDescriptor`` is
the minimal ``{key, name, handle}`` entry the venue resolver matches against.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Coordinates(BaseModel):
    """
    Geographic coordinates.
    """

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float

    @field_validator("latitude")
    def validate_latitude(cls, v):
        if not -90 <= v <= 90:
            raise ValueError("Latitude must be between -90 and 90")
        return v

    @field_validator("longitude")
    def validate_longitude(cls, v):
        if not -180 <= v <= 180:
            raise ValueError("Longitude must be between -180 and 180")
        return v


class Venue(BaseModel):
    """
    Canonical venue identity.
    """

    model_config = ConfigDict(frozen=True)

    venue_id: str = Field(min_length=1)
    name: str
    slug: str
    aliases: List[str] = Field(default_factory=list)
    instagram_handle: Optional[str] = None
    instagram_url: Optional[str] = None
    primary_image_url: Optional[str] = None
    description_short: Optional[str] = None
    website_url: Optional[str] = None
    venue_url: Optional[str] = None
    address: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    tags: List[str] = Field(default_factory=list)


class CanonicalVenueDescriptor(BaseModel):
    """Fixed registry entry used for venue matching."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(min_length=1)
    name: str
    handle: str = ""
    venue_type: Optional[str] = None
    event_types: Optional[str] = None
