"""
Static canonical-venue registry.

The registry is a read-only JSON asset listing the venues the calendar knows
by name and Instagram handle. It backs venue matching when no live venues
feed is configured. Callers receive it as an explicit value and pass it into
``VenueIndex``; nothing reads it as module state.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from citycal.configs.settings import get_settings
from citycal.ingestion.normalization.text import normalize_handle, slugify
from citycal.schemas.venue import CanonicalVenueDescriptor, Venue


@lru_cache
def _load_registry_file(path: str) -> Tuple[CanonicalVenueDescriptor, ...]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    descriptors = []
    for entry in data.get("venues", []):
        name = entry["name"]
        descriptors.append(
            CanonicalVenueDescriptor(
                key=entry.get("key") or slugify(name),
                name=name,
                handle=normalize_handle(entry.get("handle", "")),
                venue_type=entry.get("venue_type") or None,
                event_types=entry.get("event_types") or None,
            )
        )
    return tuple(descriptors)


def load_canonical_venues(path: Optional[Path] = None) -> Tuple[CanonicalVenueDescriptor, ...]:
    """
    Load and cache the canonical-venue registry.

    Keys default to the slug of the display name.

    Args:
        path: Registry JSON; defaults to the CANONICAL_VENUES_PATH setting

    Returns:
        Registry entries in file order (matching is order dependent)
    """
    path = path or get_settings().CANONICAL_VENUES_PATH
    return _load_registry_file(str(path))


def registry_to_venues(descriptors: Iterable[CanonicalVenueDescriptor]) -> List[Venue]:
    """Convert registry entries into Venue records (fallback when no venues feed)."""
    venues = []
    for d in descriptors:
        venues.append(
            Venue(
                venue_id=d.key,
                name=d.name,
                slug=d.key,
                instagram_handle=d.handle or None,
                instagram_url=f"https://instagram.com/{d.handle}" if d.handle else None,
            )
        )
    return venues
