"""
Venue Normalizer.

Turns rows of the optional venues feed into ``Venue`` records. A row needs a
``venue_id`` or a name; the id falls back to the slug of the name.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from citycal.ingestion.errors import QuarantinedRow, QuarantineReason
from citycal.ingestion.normalization.columns import RawVenueRow
from citycal.ingestion.normalization.field_normalizer import (
    normalize_number,
    normalize_string,
    normalize_tags,
)
from citycal.ingestion.normalization.tag_canonicalizer import canonical_key
from citycal.ingestion.normalization.text import normalize_handle, slugify
from citycal.ingestion.venue_resolver import handle_from_instagram_url
from citycal.schemas.venue import Coordinates, Venue

logger = logging.getLogger(__name__)

ALIAS_SEPARATOR = "|"


@dataclass(frozen=True)
class VenueOutcome:
    """Exactly one of ``venue`` / ``quarantined`` is set."""

    venue: Optional[Venue] = None
    quarantined: Optional[QuarantinedRow] = None

    @property
    def ok(self) -> bool:
        return self.venue is not None


def split_aliases(value: Optional[str]) -> List[str]:
    """Split a pipe-separated alias cell, dropping blanks and repeats."""
    aliases: List[str] = []
    for part in (value or "").split(ALIAS_SEPARATOR):
        alias = part.strip()
        if alias and alias not in aliases:
            aliases.append(alias)
    return aliases


def _coordinates(latitude: Any, longitude: Any) -> Optional[Coordinates]:
    lat = normalize_number(latitude)
    lng = normalize_number(longitude)
    if lat is None or lng is None:
        return None
    try:
        return Coordinates(latitude=lat, longitude=lng)
    except ValidationError:
        logger.debug(f"Ignoring out-of-range coordinates ({lat}, {lng})")
        return None


def normalize_venue_row(
    raw: Union[RawVenueRow, Mapping[str, Any]],
    allowed_tags: Optional[Iterable[str]] = None,
) -> VenueOutcome:
    """
    Normalize one venues-feed row.

    Args:
        raw: RawVenueRow or a header-keyed mapping
        allowed_tags: Venue-tag allow-list; empty or None keeps every tag

    Returns:
        VenueOutcome
    """
    row = raw if isinstance(raw, RawVenueRow) else RawVenueRow.from_mapping(raw)

    venue_id = normalize_string(row.venue_id)
    name = normalize_string(row.name)
    if not venue_id and not name:
        return VenueOutcome(
            quarantined=QuarantinedRow(
                raw_row=row.as_dict(),
                reason=QuarantineReason.MISSING_ID,
                detail="Missing venue_id/name",
                feed_name="venues",
            )
        )

    venue_id = venue_id or slugify(name) or name
    name = name or venue_id

    tags = normalize_tags(row.tags or row.venue_tags)
    allowed_keys = {canonical_key(t) for t in allowed_tags or () if t}
    if allowed_keys:
        tags = [t for t in tags if canonical_key(t) in allowed_keys]

    instagram_url = normalize_string(row.instagram_url)
    handle = normalize_handle(row.instagram_handle or "") or handle_from_instagram_url(instagram_url)

    venue = Venue(
        venue_id=venue_id,
        name=name,
        slug=normalize_string(row.slug) or slugify(name),
        aliases=split_aliases(row.aliases),
        instagram_handle=handle or None,
        instagram_url=instagram_url,
        primary_image_url=normalize_string(row.primary_image_url),
        description_short=normalize_string(row.description_short),
        website_url=normalize_string(row.website_url),
        venue_url=normalize_string(row.venue_url),
        address=normalize_string(row.address),
        neighborhood=normalize_string(row.neighborhood),
        city=normalize_string(row.city),
        region=normalize_string(row.region),
        country=normalize_string(row.country),
        postal_code=normalize_string(row.postal_code),
        coordinates=_coordinates(row.latitude, row.longitude),
        tags=tags,
    )
    return VenueOutcome(venue=venue)


def normalize_tag_rows(rows: Iterable[Mapping[str, Any]], column: str = "tag") -> List[str]:
    """Read a single-column tag allow-list: trimmed, lowercased, unique."""
    tags: List[str] = []
    for row in rows:
        tag = (normalize_string(row.get(column)) or "").lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags
