"""
Field Normalizer.

Coerces raw string cells into typed values and turns one raw events-feed row
into an ``Event``. Rows without an id, a title or a parseable start are
never turned into events: they come back as a ``QuarantinedRow`` with the
reason code instead.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List, Mapping, Optional, Union

from citycal.ingestion.errors import QuarantinedRow, QuarantineReason
from citycal.ingestion.normalization.columns import RawEventRow
from citycal.ingestion.normalization.status import map_status
from citycal.ingestion.normalization.time_resolver import (
    DEFAULT_OPEN_TIME,
    SYNTHETIC_DURATION,
    resolve_all_day,
)
from citycal.schemas.event import Event

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Europe/Lisbon"

TRUE_VALUES = frozenset({"true", "1", "yes"})
FALSE_VALUES = frozenset({"false", "0", "no"})

DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y",
)


# ============================================================================
# SCALAR COERCION
# ============================================================================


def normalize_string(value: Any) -> Optional[str]:
    """Trimmed string, or None when blank."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_boolean(value: Any, default: bool = False) -> bool:
    """
    Coerce a cell to bool.

    ``true``/``1``/``yes`` (any case) are true and ``false``/``0``/``no``
    are false; anything else, including a missing cell, yields ``default``.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    return default


def normalize_number(value: Any) -> Optional[float]:
    """Parse a number; empty or unparseable cells become None, never zero."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def normalize_tags(value: Union[str, Iterable[Any], None]) -> List[str]:
    """Split on commas, trim, lowercase, drop empties and repeats."""
    if not value:
        return []
    parts = value.split(",") if isinstance(value, str) else [str(v) for v in value]
    tags: List[str] = []
    for part in parts:
        tag = part.strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp cell into an aware UTC datetime.

    Accepts ISO-8601 (with ``Z`` or an offset) and a few spreadsheet formats.
    Naive values are taken as UTC.

    Returns:
        datetime or None when the cell is blank, unparseable or out of range
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = normalize_string(value)
        if text is None:
            return None
        parsed = None
        try:
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            parsed = datetime.fromisoformat(text)
        except ValueError:
            for fmt in DATETIME_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
        if parsed is None:
            return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        # offset pushes the instant outside the datetime range
        logger.debug(f"Timestamp out of range: {value}")
        return None


# ============================================================================
# ROW NORMALIZATION
# ============================================================================


@dataclass(frozen=True)
class NormalizationOutcome:
    """Exactly one of ``event`` / ``quarantined`` is set."""

    event: Optional[Event] = None
    quarantined: Optional[QuarantinedRow] = None

    @property
    def ok(self) -> bool:
        return self.event is not None


def _reject(row: RawEventRow, reason: QuarantineReason, detail: str) -> NormalizationOutcome:
    logger.debug(f"Quarantined row ({reason.value}): {detail}")
    return NormalizationOutcome(
        quarantined=QuarantinedRow(raw_row=row.as_dict(), reason=reason, detail=detail)
    )


def normalize_event_row(
    raw: Union[RawEventRow, Mapping[str, Any]],
    *,
    default_timezone: str = DEFAULT_TIMEZONE,
    default_open_time: str = DEFAULT_OPEN_TIME,
    synthetic_duration: timedelta = SYNTHETIC_DURATION,
) -> NormalizationOutcome:
    """
    Normalize one events-feed row.

    Steps:
    1. Required fields: id (or legacy ``id``), title, parseable start
    2. End datetime (unparseable -> dropped)
    3. All-day collapse
    4. Status, tags, numbers, booleans, provenance timestamps

    ``venue_key`` is left empty here; the venue resolver fills it.

    Args:
        raw: RawEventRow or a header-keyed mapping from the row parser
        default_timezone: Timezone label when the row has none
        default_open_time: All-day fallback opening time
        synthetic_duration: Length given to collapsed all-day rows without end

    Returns:
        NormalizationOutcome with either the Event or the quarantined row
    """
    row = raw if isinstance(raw, RawEventRow) else RawEventRow.from_mapping(raw)

    event_id = normalize_string(row.event_id)
    title = normalize_string(row.title)
    start_text = normalize_string(row.start_datetime)

    if not event_id:
        return _reject(row, QuarantineReason.MISSING_ID, "Missing event_id/id")
    if not title:
        return _reject(row, QuarantineReason.MISSING_TITLE, "Missing title")
    if not start_text:
        return _reject(row, QuarantineReason.MISSING_START, "Missing start_datetime")

    start = parse_datetime(start_text)
    if start is None:
        return _reject(
            row, QuarantineReason.INVALID_START, f"Invalid start_datetime: {start_text}"
        )

    end = parse_datetime(row.end_datetime)
    if row.end_datetime and end is None:
        logger.debug(f"Dropping unparseable end_datetime for {event_id}: {row.end_datetime}")

    description_short = normalize_string(row.description_short)
    description_long = normalize_string(row.description_long)

    resolved = resolve_all_day(
        start,
        end,
        is_all_day=normalize_boolean(row.is_all_day, False),
        opens_at=normalize_string(row.opens_at),
        descriptions=(description_short, description_long),
        default_time=default_open_time,
        duration=synthetic_duration,
    )
    start, end = resolved.start, resolved.end
    if end is not None and end < start:
        logger.debug(f"Dropping end_datetime before start for {event_id}")
        end = None

    category = normalize_string(row.category)
    currency = normalize_string(row.currency)

    event = Event(
        event_id=event_id,
        dedupe_key=normalize_string(row.dedupe_key),
        source_event_id=normalize_string(row.source_event_id),
        title=title,
        description_short=description_short,
        description_long=description_long,
        start=start,
        end=end,
        timezone=normalize_string(row.timezone) or default_timezone,
        is_all_day=False,
        status=map_status(row.status),
        recurrence_rule=normalize_string(row.recurrence_rule),
        venue_id=normalize_string(row.venue_id),
        venue_name=normalize_string(row.venue_name),
        venue_address=normalize_string(row.venue_address),
        neighborhood=normalize_string(row.neighborhood),
        city=normalize_string(row.city),
        region=normalize_string(row.region),
        country=normalize_string(row.country),
        postal_code=normalize_string(row.postal_code),
        latitude=normalize_number(row.latitude),
        longitude=normalize_number(row.longitude),
        category=category.lower() if category else None,
        tags=normalize_tags(row.tags),
        price_min=normalize_number(row.price_min),
        price_max=normalize_number(row.price_max),
        currency=currency.upper() if currency else None,
        is_free=normalize_boolean(row.is_free, False),
        age_restriction=normalize_string(row.age_restriction),
        language=normalize_string(row.language),
        ticket_url=normalize_string(row.ticket_url),
        primary_image_id=normalize_string(row.primary_image_id),
        primary_image_url=normalize_string(row.primary_image_url),
        image_credit=normalize_string(row.image_credit),
        promoter_id=normalize_string(row.promoter_id),
        promoter_name=normalize_string(row.promoter_name),
        source_name=normalize_string(row.source_name),
        source_url=normalize_string(row.source_url),
        confidence_score=normalize_number(row.confidence_score),
        first_seen_at=parse_datetime(row.first_seen_at),
        last_seen_at=parse_datetime(row.last_seen_at),
        changed_at=parse_datetime(row.changed_at),
        created_at=parse_datetime(row.created_at),
        updated_at=parse_datetime(row.updated_at),
    )
    return NormalizationOutcome(event=event)
