"""
Row normalization for the ingestion feeds.

This package provides:
- RawEventRow / RawVenueRow: typed raw rows with the legacy column aliases
- normalize_event_row: events-feed row -> Event or quarantined row
- map_status: open status vocabulary -> EventStatus
- resolve_all_day: all-day placeholder collapse
- normalize_venue_row: venues-feed row -> Venue
- normalize_promoter_row: promoters-feed row -> Promoter
- TagCanonicalizer: tag/category spelling merge
"""

from .columns import RawEventRow, RawPromoterRow, RawVenueRow, apply_column_aliases
from .field_normalizer import (
    NormalizationOutcome,
    normalize_boolean,
    normalize_event_row,
    normalize_number,
    normalize_string,
    normalize_tags,
    parse_datetime,
)
from .promoter_normalizer import PromoterOutcome, normalize_promoter_row, normalize_promoter_rows
from .status import map_status
from .tag_canonicalizer import (
    TagCanonicalizer,
    canonical_key,
    canonicalize_values,
    normalize_category,
    pick_representative,
)
from .text import normalize_handle, slugify, strip_dots
from .time_resolver import ResolvedTimes, parse_opening_time, resolve_all_day
