"""
Listing helpers for calling layers.

Visibility rules and filter-picker option lists over normalized events. These
read pipeline output only; they never touch raw rows.
"""

from typing import Iterable, List, Optional, Sequence, Set

from citycal.schemas.event import NEVER_VISIBLE, VISIBLE_IN_LISTING, Event, EventStatus


def _status(event: Event) -> EventStatus:
    return EventStatus(event.status)


def filter_events_for_listing(events: Iterable[Event]) -> List[Event]:
    """Events shown in default listings: scheduled, sold_out and postponed."""
    return [e for e in events if _status(e) in VISIBLE_IN_LISTING]


def is_visible_on_detail(event: Event) -> bool:
    """Detail pages show every status except draft."""
    return _status(event) not in NEVER_VISIBLE


def filter_events(
    events: Iterable[Event],
    search_query: str = "",
    selected_tags: Sequence[str] = (),
    categories: Sequence[str] = (),
    free_only: bool = False,
    language: Optional[str] = None,
    age_restriction: Optional[str] = None,
    event_ids: Optional[Set[str]] = None,
) -> List[Event]:
    """
    Apply listing filters.

    - search: case-insensitive substring of title, venue name, a tag or the category
    - tags: AND (event must carry every selected tag)
    - categories: OR, case-insensitive
    - event_ids: restrict to a collection's members
    """
    query = search_query.strip().lower()
    wanted_categories = {c.lower() for c in categories if c}
    result = []

    for event in events:
        if query:
            haystack = [event.title.lower(), (event.venue_name or "").lower(), (event.category or "")]
            haystack.extend(event.tags)
            if not any(query in field for field in haystack):
                continue
        if selected_tags and not all(tag in event.tags for tag in selected_tags):
            continue
        if wanted_categories and (event.category or "").lower() not in wanted_categories:
            continue
        if free_only and not event.is_free:
            continue
        if language and (event.language or "").lower() != language.lower():
            continue
        if age_restriction and (event.age_restriction or "").lower() != age_restriction.lower():
            continue
        if event_ids is not None and event.event_id not in event_ids:
            continue
        result.append(event)

    return result


def all_tags(events: Iterable[Event]) -> List[str]:
    return sorted({tag for e in events for tag in e.tags})


def all_categories(events: Iterable[Event]) -> List[str]:
    return sorted({e.category for e in events if e.category})


def all_languages(events: Iterable[Event]) -> List[str]:
    return sorted({e.language for e in events if e.language})


def all_venue_keys(events: Iterable[Event]) -> List[str]:
    return sorted({e.venue_key for e in events if e.venue_key})
