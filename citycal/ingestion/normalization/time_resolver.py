"""
All-Day Time Resolver.

Spreadsheet rows flagged ``is_all_day`` usually carry a placeholder date at
exactly midnight UTC. The calendar has no all-day lane, so those rows are
collapsed into a concrete start time read from an explicit "opens at" column
or from the descriptions, falling back to a default opening hour.

A genuine midnight start on an all-day row is indistinguishable from a
placeholder and is rewritten too; the feed format offers no better signal.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_OPEN_TIME = "10:00"
SYNTHETIC_DURATION = timedelta(hours=1)

# Explicit column: H, H:MM or H:MM:SS
OPENS_AT_PATTERN = re.compile(r"^(\d{1,2})(?::(\d{2}))?(?::\d{2})?$")

# Description cascade, most specific first
DESCRIPTION_PATTERNS: Tuple[re.Pattern, ...] = (
    # "21:30 - 23:00" / "21:30–23:00": take the first time of the range
    re.compile(r"\b(\d{1,2}):(\d{2})\s*[-–]\s*\d{1,2}:\d{2}\b"),
    # "opens at 9:00", "open 9:00", "daily 10:00"
    re.compile(r"(?:opens?\s+(?:at\s+)?|daily\s+)(\d{1,2}):(\d{2})\b"),
    # any bare "21:30"
    re.compile(r"\b(\d{1,2}):(\d{2})\b"),
    # shorthand "21h"
    re.compile(r"\b(\d{1,2})h\b"),
)


@dataclass(frozen=True)
class ResolvedTimes:
    """Start/end after all-day collapse."""

    start: datetime
    end: Optional[datetime]
    collapsed: bool = False
    source: Optional[str] = None  # 'opens_at' | 'description' | 'default'


def _format_time(hour: str, minute: Optional[str]) -> Optional[str]:
    h = int(hour)
    m = int(minute) if minute else 0
    if h > 23 or m > 59:
        return None
    return f"{h:02d}:{m:02d}"


def parse_opens_at(value: Optional[str]) -> Optional[str]:
    """Parse an explicit opening-time cell into ``HH:MM``."""
    if not value:
        return None
    match = OPENS_AT_PATTERN.match(value.strip())
    if not match:
        return None
    return _format_time(match.group(1), match.group(2))


def parse_opening_time(text: Optional[str]) -> Optional[str]:
    """
    Find an opening time in free text.

    Patterns are tried in cascade order; within a pattern, the first match
    that forms a valid time of day wins.

    Args:
        text: Description text

    Returns:
        ``HH:MM`` or None when nothing time-like is found
    """
    if not text:
        return None
    lowered = text.lower()
    for pattern in DESCRIPTION_PATTERNS:
        for match in pattern.finditer(lowered):
            minute = match.group(2) if pattern.groups > 1 else None
            parsed = _format_time(match.group(1), minute)
            if parsed:
                return parsed
    return None


def is_placeholder_midnight(start: datetime) -> bool:
    """True when the instant sits exactly on 00:00 UTC (hour and minute)."""
    return start.hour == 0 and start.minute == 0


def resolve_all_day(
    start: datetime,
    end: Optional[datetime],
    *,
    is_all_day: bool,
    opens_at: Optional[str] = None,
    descriptions: Iterable[Optional[str]] = (),
    default_time: str = DEFAULT_OPEN_TIME,
    duration: timedelta = SYNTHETIC_DURATION,
) -> ResolvedTimes:
    """
    Collapse an all-day placeholder into a time-bounded start/end.

    Only triggers when ``is_all_day`` is set and ``start`` (UTC) is exactly
    midnight. Resolution order: ``opens_at`` column, then each description
    in order, then ``default_time``. The start keeps its UTC calendar date;
    when no end was supplied, ``end = start + duration``.

    Args:
        start: Parsed start instant (UTC)
        end: Parsed end instant, if any
        is_all_day: Row's all-day flag
        opens_at: Explicit opening-time cell
        descriptions: Texts to scan (short description first)
        default_time: Fallback ``HH:MM``
        duration: Synthetic event length

    Returns:
        ResolvedTimes (unchanged times when the trigger does not fire)
    """
    if not is_all_day or not is_placeholder_midnight(start):
        return ResolvedTimes(start=start, end=end)

    source = "opens_at"
    parsed = parse_opens_at(opens_at)
    if not parsed:
        source = "description"
        for text in descriptions:
            parsed = parse_opening_time(text)
            if parsed:
                break
    if not parsed:
        source = "default"
        parsed = default_time

    hour, minute = (int(part) for part in parsed.split(":"))
    new_start = start.replace(hour=hour, minute=minute, second=0, microsecond=0)
    new_end = end
    if new_end is None:
        try:
            new_end = new_start + duration
        except OverflowError:
            logger.debug(f"No synthetic end for {new_start.isoformat()}: past the datetime range")

    logger.debug(f"All-day start {start.isoformat()} resolved to {parsed} from {source}")

    return ResolvedTimes(start=new_start, end=new_end, collapsed=True, source=source)
