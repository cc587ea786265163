"""
Event deduplication.

Several feed pulls can describe the same real-world event. RecencyDeduplicator
merges them by dedupe_key > event_id > title|start|venue_key, keeping the most
recently updated row per key. Rows with different event_ids collapse only
through a shared dedupe_key.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Hashable, List

from citycal.schemas.event import Event, format_instant

# Events without updated_at lose every recency comparison
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class EventDeduplicator(ABC):
    """Collapses events that describe the same occurrence."""

    @abstractmethod
    def deduplicate(self, events: List[Event]) -> List[Event]:
        """Return the surviving events; inputs are never mutated."""
        pass


def updated_instant(event: Event) -> datetime:
    return event.updated_at or _EPOCH


def should_replace(candidate: Event, existing: Event) -> bool:
    """Later-processed rows win ties: ``candidate.updated_at >= existing.updated_at``."""
    return updated_instant(candidate) >= updated_instant(existing)


def fallback_key(event: Event) -> str:
    """Composite identity ``title|start|venue_key``."""
    return f"{event.title}|{format_instant(event.start)}|{event.venue_key}"


def _keep_newest(index: Dict[Hashable, Event], key: Hashable, event: Event) -> None:
    existing = index.get(key)
    if existing is None or should_replace(event, existing):
        index[key] = event


class RecencyDeduplicator(EventDeduplicator):
    """
    Merge rows describing the same logical event.

    Three indexes are built over the input:
    - by ``dedupe_key`` (only rows that carry one; those rows enter no
      other index)
    - by ``event_id``
    - by ``title|start|venue_key``

    Within an index, a colliding row replaces the kept one when its
    ``updated_at`` is greater or equal, so with equal timestamps the later
    row in input order wins.

    The result is assembled by event_id in priority order (dedupe_key index,
    then event_id index, then fallback index) so no event_id appears twice.
    Running it on its own output returns the same collection.
    """

    def deduplicate(self, events: List[Event]) -> List[Event]:
        by_dedupe_key: Dict[str, Event] = {}
        by_event_id: Dict[str, Event] = {}
        by_fallback: Dict[str, Event] = {}

        for event in events:
            if event.dedupe_key:
                _keep_newest(by_dedupe_key, event.dedupe_key, event)
                continue
            _keep_newest(by_event_id, event.event_id, event)
            _keep_newest(by_fallback, fallback_key(event), event)

        result: Dict[str, Event] = {}
        for event in by_dedupe_key.values():
            existing = result.get(event.event_id)
            if existing is None or should_replace(event, existing):
                result[event.event_id] = event
        for index in (by_event_id, by_fallback):
            for event in index.values():
                if event.event_id not in result:
                    result[event.event_id] = event

        return list(result.values())
