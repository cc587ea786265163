"""
Status Mapper.

Feeds use whatever status words their editors typed. Everything is folded
into the closed ``EventStatus`` set; unknown or missing values become
``scheduled`` so an event stays visible by default.
"""

from typing import Dict, Optional

from citycal.schemas.event import EventStatus

STATUS_ALIASES: Dict[str, EventStatus] = {
    "scheduled": EventStatus.SCHEDULED,
    "active": EventStatus.SCHEDULED,
    "needs_review": EventStatus.SCHEDULED,
    "cancelled": EventStatus.CANCELLED,
    "canceled": EventStatus.CANCELLED,
    "postponed": EventStatus.POSTPONED,
    "sold_out": EventStatus.SOLD_OUT,
    "soldout": EventStatus.SOLD_OUT,
    "draft": EventStatus.DRAFT,
    "archived": EventStatus.ARCHIVED,
}


def map_status(raw: Optional[str]) -> EventStatus:
    """Map a source status string to the canonical status."""
    if not raw or not isinstance(raw, str):
        return EventStatus.SCHEDULED
    return STATUS_ALIASES.get(raw.strip().lower(), EventStatus.SCHEDULED)
