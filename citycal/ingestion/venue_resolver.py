"""
Venue Resolver.

Maps an event's loose venue reference (a display name typed by an editor,
an Instagram handle scraped alongside the post) to a canonical venue key.

Matching runs a fixed sequence of rules and the first rule that matches any
registry entry wins; within a rule, entries are tried in registry order.
Two entries whose keys prefix each other can therefore shadow one another
(e.g. "tokyo" hits "tokyo-lisboa" before "tokyo-rooftop"). Downstream venue
analytics rely on the current matches, so that order is kept as is.

When nothing matches, a fallback key is derived from the raw name/address so
events at unknown venues still group together.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Tuple

from citycal.ingestion.normalization.text import (
    collapse_whitespace,
    normalize_handle,
    slugify,
    strip_dots,
)
from citycal.schemas.event import Event
from citycal.schemas.venue import CanonicalVenueDescriptor, Venue

logger = logging.getLogger(__name__)

UNKNOWN_VENUE_ID = "unknown"
MIN_PREFIX_LENGTH = 3

_INSTAGRAM_URL = re.compile(r"instagram\.com/([^/?#]+)", re.IGNORECASE)


class MatchRule(str, Enum):
    """Which rule produced a venue key."""

    VENUE_ID = "venue_id"
    EXACT_SLUG = "exact_slug"
    SLUG_PREFIX = "slug_prefix"
    HANDLE = "handle"
    HANDLE_PREFIX = "handle_prefix"
    NAME_SLUG = "name_slug"
    ALIAS = "alias"
    FALLBACK = "fallback"
    NONE = "none"


@dataclass(frozen=True)
class _Entry:
    """Pre-normalized registry entry."""

    key: str
    name: str
    name_slug: str
    handle: str
    handle_no_dots: str


@dataclass(frozen=True)
class VenueResolution:
    """Result of resolving one venue reference."""

    venue_key: str
    rule: MatchRule
    venue_name: Optional[str] = None

    @property
    def resolved(self) -> bool:
        """True when the key came from the venue_id or a registry match."""
        return self.rule not in (MatchRule.FALLBACK, MatchRule.NONE)


def handle_from_instagram_url(url: Optional[str]) -> Optional[str]:
    """Extract the handle from an instagram.com profile URL."""
    if not url:
        return None
    match = _INSTAGRAM_URL.search(url)
    return normalize_handle(match.group(1)) if match else None


class VenueIndex:
    """
    Read-only lookup structure over the venues loaded for one fetch.

    Built once per pipeline run from the venues feed (or from the static
    registry when there is no feed) and shared by every resolution in that
    run.
    """

    def __init__(
        self,
        descriptors: Iterable[CanonicalVenueDescriptor],
        venues: Iterable[Venue] = (),
    ):
        entries: List[_Entry] = []
        for d in descriptors:
            handle = normalize_handle(d.handle)
            entries.append(
                _Entry(
                    key=d.key,
                    name=d.name,
                    name_slug=slugify(d.name),
                    handle=handle,
                    handle_no_dots=strip_dots(handle),
                )
            )
        self._entries: Tuple[_Entry, ...] = tuple(entries)

        by_id = {}
        by_alias = {}
        for v in venues:
            by_id[v.venue_id] = v
            for alias in v.aliases:
                alias_slug = slugify(alias)
                if alias_slug:
                    by_alias.setdefault(alias_slug, v.venue_id)
        self.by_id: Mapping[str, Venue] = MappingProxyType(by_id)
        self.by_alias: Mapping[str, str] = MappingProxyType(by_alias)
        self.by_key: Mapping[str, _Entry] = MappingProxyType({e.key: e for e in self._entries})

    @classmethod
    def build(cls, venues: Iterable[Venue]) -> "VenueIndex":
        """Build an index from loaded Venue records."""
        venues = list(venues)
        descriptors = [
            CanonicalVenueDescriptor(
                key=v.venue_id,
                name=v.name,
                handle=normalize_handle(v.instagram_handle or "")
                or handle_from_instagram_url(v.instagram_url)
                or "",
            )
            for v in venues
        ]
        return cls(descriptors, venues)

    @classmethod
    def from_registry(cls, descriptors: Iterable[CanonicalVenueDescriptor]) -> "VenueIndex":
        """Build an index straight from registry entries."""
        return cls(descriptors)

    @property
    def entries(self) -> Tuple[_Entry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self.by_key

    def name_for(self, key: str) -> Optional[str]:
        entry = self.by_key.get(key)
        return entry.name if entry else None


def fallback_venue_key(venue_name: Optional[str], venue_address: Optional[str] = None) -> str:
    """
    Derive a grouping key for a venue that matched nothing.

    ``name``, ``name|address`` or ``address`` (each lowercased, trimmed and
    whitespace-collapsed); empty when neither is present.
    """
    name = collapse_whitespace(venue_name or "")
    address = collapse_whitespace(venue_address or "")
    if name and address:
        return f"{name}|{address}"
    return name or address


class VenueResolver:
    """Resolve venue references against a VenueIndex."""

    def __init__(self, index: VenueIndex):
        self.index = index

    def resolve(
        self,
        venue_name: Optional[str] = None,
        source_handle: Optional[str] = None,
        venue_id: Optional[str] = None,
        venue_address: Optional[str] = None,
    ) -> VenueResolution:
        """
        Resolve one venue reference.

        Rules, first match wins:
        1. usable ``venue_id`` (not blank, not "unknown") is used as is
        2. name slug equals a registry key
        3. name slug (3+ chars) is a prefix of a registry key
        4. handle equals a registry handle
        5. dot-stripped handles are equal or one (3+ chars) prefixes the other
        6. registry display name slug equals the name slug
        7. name slug equals a venue alias slug
        Otherwise a fallback key from name/address.

        Args:
            venue_name: Raw venue name from the row
            source_handle: Social handle of the source; defaults to the name
            venue_id: Venue id supplied by the row
            venue_address: Raw address, used only by the fallback key

        Returns:
            VenueResolution
        """
        supplied_id = (venue_id or "").strip()
        if supplied_id and supplied_id.lower() != UNKNOWN_VENUE_ID:
            return VenueResolution(supplied_id, MatchRule.VENUE_ID, self.index.name_for(supplied_id))

        name = (venue_name or "").strip()
        name_slug = slugify(name)
        handle = normalize_handle(source_handle or name)
        handle_no_dots = strip_dots(handle)
        entries = self.index.entries

        if name_slug:
            for e in entries:
                if e.key == name_slug:
                    return VenueResolution(e.key, MatchRule.EXACT_SLUG, e.name)

            if len(name_slug) >= MIN_PREFIX_LENGTH:
                for e in entries:
                    if e.key.startswith(name_slug):
                        return VenueResolution(e.key, MatchRule.SLUG_PREFIX, e.name)

        if handle:
            for e in entries:
                if e.handle and e.handle == handle:
                    return VenueResolution(e.key, MatchRule.HANDLE, e.name)

        if handle_no_dots:
            for e in entries:
                if e.handle_no_dots and _handles_overlap(handle_no_dots, e.handle_no_dots):
                    return VenueResolution(e.key, MatchRule.HANDLE_PREFIX, e.name)

        if name_slug:
            for e in entries:
                if e.name_slug == name_slug:
                    return VenueResolution(e.key, MatchRule.NAME_SLUG, e.name)

            alias_key = self.index.by_alias.get(name_slug)
            if alias_key:
                return VenueResolution(alias_key, MatchRule.ALIAS, self.index.name_for(alias_key))

        key = fallback_venue_key(name, venue_address)
        if key:
            logger.debug(f"No venue match for '{name}', using fallback key '{key}'")
            return VenueResolution(key, MatchRule.FALLBACK)
        return VenueResolution("", MatchRule.NONE)

    def resolve_event(self, event: Event) -> Event:
        """
        Return a copy of the event with ``venue_key`` set.

        A matched venue also backfills a blank ``venue_name``.
        """
        return self._resolve_event(event)[0]

    def resolve_events(self, events: Iterable[Event]) -> Tuple[List[Event], int]:
        """
        Resolve every event.

        Returns:
            (resolved copies in input order, count left without a venue match)
        """
        resolved: List[Event] = []
        unresolved = 0
        for event in events:
            copy, resolution = self._resolve_event(event)
            resolved.append(copy)
            if not resolution.resolved:
                unresolved += 1
        return resolved, unresolved

    def _resolve_event(self, event: Event) -> Tuple[Event, VenueResolution]:
        resolution = self.resolve(
            venue_name=event.venue_name,
            source_handle=event.source_name,
            venue_id=event.venue_id,
            venue_address=event.venue_address,
        )
        update = {"venue_key": resolution.venue_key}
        if resolution.resolved and not event.venue_name and resolution.venue_name:
            update["venue_name"] = resolution.venue_name
        return event.model_copy(update=update), resolution


def _handles_overlap(a: str, b: str) -> bool:
    if a == b:
        return True
    if len(a) >= MIN_PREFIX_LENGTH and b.startswith(a):
        return True
    return len(b) >= MIN_PREFIX_LENGTH and a.startswith(b)
