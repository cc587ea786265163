"""
Feed column schema.

Single source of truth for the spreadsheet columns the pipeline understands.
Legacy column names are mapped onto current ones in exactly one place,
``apply_column_aliases``, so normalization code only ever reads current
names. If a column is renamed upstream, only this module needs editing.
"""

from typing import Any, ClassVar, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict

# Legacy column names -> current column names
LEGACY_EVENT_COLUMNS: Dict[str, str] = {
    "id": "event_id",
    "image_url": "primary_image_url",
}

LEGACY_VENUE_COLUMNS: Dict[str, str] = {
    "venue_name": "name",
    "venue_address": "address",
    "lat": "latitude",
    "lng": "longitude",
}


def apply_column_aliases(raw: Mapping[Any, Any], aliases: Mapping[str, str]) -> Dict[str, str]:
    """
    Rename legacy columns and stringify cells.

    A current column wins over its legacy alias unless the current cell is
    blank, in which case the legacy value fills it.

    Args:
        raw: Header-keyed record from the row parser (or any mapping)
        aliases: Legacy -> current column name table

    Returns:
        Dict keyed by current column names
    """
    current: Dict[str, str] = {}
    legacy: Dict[str, str] = {}

    for key, value in raw.items():
        if key is None:
            continue
        name = str(key).strip()
        if not name:
            continue
        text = "" if value is None else str(value)
        if name in aliases:
            legacy.setdefault(aliases[name], text)
        else:
            current[name] = text

    for name, text in legacy.items():
        if not current.get(name, "").strip():
            current[name] = text

    return current


class _RawRow(BaseModel):
    """Typed optional-field record; unknown columns are kept as extras."""

    model_config = ConfigDict(extra="allow", frozen=True)

    column_aliases: ClassVar[Dict[str, str]] = {}

    @classmethod
    def from_mapping(cls, raw: Mapping[Any, Any]):
        return cls.model_validate(apply_column_aliases(raw, cls.column_aliases))

    def get(self, name: str) -> Optional[str]:
        """Return a column value by name, including unknown columns."""
        if name in type(self).model_fields:
            return getattr(self, name)
        return (self.model_extra or {}).get(name)

    def as_dict(self) -> Dict[str, str]:
        """Non-null cells as a plain dict (for quarantine logging)."""
        return {k: v for k, v in self.model_dump().items() if v is not None}


class RawEventRow(_RawRow):
    """One row of the events feed, covering the known schema superset."""

    column_aliases: ClassVar[Dict[str, str]] = LEGACY_EVENT_COLUMNS

    event_id: Optional[str] = None
    source_name: Optional[str] = None
    source_event_id: Optional[str] = None
    dedupe_key: Optional[str] = None
    title: Optional[str] = None
    description_short: Optional[str] = None
    description_long: Optional[str] = None
    start_datetime: Optional[str] = None
    end_datetime: Optional[str] = None
    timezone: Optional[str] = None
    is_all_day: Optional[str] = None
    opens_at: Optional[str] = None
    recurrence_rule: Optional[str] = None
    status: Optional[str] = None
    venue_id: Optional[str] = None
    venue_name: Optional[str] = None
    venue_address: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[str] = None
    price_min: Optional[str] = None
    price_max: Optional[str] = None
    currency: Optional[str] = None
    is_free: Optional[str] = None
    age_restriction: Optional[str] = None
    language: Optional[str] = None
    ticket_url: Optional[str] = None
    primary_image_id: Optional[str] = None
    primary_image_url: Optional[str] = None
    image_credit: Optional[str] = None
    source_url: Optional[str] = None
    confidence_score: Optional[str] = None
    promoter_id: Optional[str] = None
    promoter_name: Optional[str] = None
    first_seen_at: Optional[str] = None
    last_seen_at: Optional[str] = None
    changed_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class RawVenueRow(_RawRow):
    """One row of the venues feed."""

    column_aliases: ClassVar[Dict[str, str]] = LEGACY_VENUE_COLUMNS

    venue_id: Optional[str] = None
    name: Optional[str] = None
    slug: Optional[str] = None
    aliases: Optional[str] = None
    instagram_handle: Optional[str] = None
    instagram_url: Optional[str] = None
    primary_image_url: Optional[str] = None
    description_short: Optional[str] = None
    website_url: Optional[str] = None
    venue_url: Optional[str] = None
    venue_tags: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    neighborhood: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    tags: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class RawPromoterRow(_RawRow):
    """One row of the promoters feed."""

    promoter_id: Optional[str] = None
    name: Optional[str] = None
    slug: Optional[str] = None
    instagram_handle: Optional[str] = None
    website_url: Optional[str] = None
    description_short: Optional[str] = None
    primary_image_url: Optional[str] = None
    is_active: Optional[str] = None


EVENT_COLUMNS = tuple(RawEventRow.model_fields)
VENUE_COLUMNS = tuple(RawVenueRow.model_fields)
