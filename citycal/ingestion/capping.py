"""
Venue Capper.

Keeps one busy venue from flooding the calendar: at most ``cap`` events per
resolved venue survive, the soonest ones first.
"""

import logging
from typing import Dict, List

from citycal.schemas.event import Event

logger = logging.getLogger(__name__)

DEFAULT_VENUE_CAP = 15


def _group_key(event: Event, position: int) -> str:
    # Events without a venue get a group of their own and are never dropped
    return event.venue_key or f"__no_venue__:{position}"


def cap_per_venue(events: List[Event], cap: int = DEFAULT_VENUE_CAP) -> List[Event]:
    """
    Keep at most ``cap`` events per venue and sort the result by start.

    Args:
        events: Deduplicated, canonicalized events
        cap: Maximum events per venue key

    Returns:
        Events sorted ascending by start
    """
    if cap < 1:
        raise ValueError(f"Venue cap must be at least 1, got {cap}")

    groups: Dict[str, List[Event]] = {}
    for position, event in enumerate(events):
        groups.setdefault(_group_key(event, position), []).append(event)

    kept: List[Event] = []
    for key, group in groups.items():
        group.sort(key=lambda e: e.start)
        if len(group) > cap:
            logger.debug(f"Venue '{key}' capped: {len(group)} -> {cap}")
        kept.extend(group[:cap])

    kept.sort(key=lambda e: e.start)
    return kept


class VenueCapper:
    """Callable wrapper around ``cap_per_venue`` holding the configured cap."""

    def __init__(self, cap: int = DEFAULT_VENUE_CAP):
        if cap < 1:
            raise ValueError(f"Venue cap must be at least 1, got {cap}")
        self.cap = cap

    def apply(self, events: List[Event]) -> List[Event]:
        capped = cap_per_venue(events, self.cap)
        if len(capped) < len(events):
            logger.info(f"Venue cap {self.cap} removed {len(events) - len(capped)} events")
        return capped
