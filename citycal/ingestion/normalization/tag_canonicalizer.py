"""
Tag/Category Canonicalizer.

Feeds spell the same concept in many ways ("Concert", "concerts",
"live-music", "live_music"). Every spelling is reduced to a canonical key and
each key gets one display form, so filter pickers show one entry per concept.

Singularization is deliberately naive (a trailing "s" is dropped): irregular
plurals such as "parties" keep their own key.
"""

import logging
import re
from typing import Dict, Iterable, List, Mapping, Optional

from citycal.schemas.event import Event

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[-_]+")
_WHITESPACE = re.compile(r"\s+")

# Domain merge table applied to categories before generic canonicalization
CATEGORY_MERGE: Dict[str, str] = {
    # Art
    "art": "arts",
    "arts": "arts",
    "artwork": "arts",
    "artworks": "arts",
    # Music
    "music": "music",
    "musical": "music",
    "musician": "music",
    # Cinema
    "cinema": "cinema",
    "film": "cinema",
    "films": "cinema",
    "movie": "cinema",
    "movies": "cinema",
    "screening": "cinema",
    "screenings": "cinema",
    # Theatre
    "theatre": "theatre",
    "theater": "theatre",
    "theatres": "theatre",
    "theaters": "theatre",
    # Performance
    "performance": "performance",
    "performances": "performance",
    "performing": "performance",
    # Comedy
    "comedy": "comedy",
    "comedies": "comedy",
    "standup": "comedy",
    "stand-up": "comedy",
    "stand up": "comedy",
    # Nightlife
    "nightlife": "nightlife",
    "night life": "nightlife",
    "club": "nightlife",
    "clubs": "nightlife",
    "party": "nightlife",
    "parties": "nightlife",
    # Workshop
    "workshop": "workshop",
    "workshops": "workshop",
    "class": "workshop",
    "classes": "workshop",
    "course": "workshop",
    "courses": "workshop",
    # Food
    "food": "food",
    "foods": "food",
    "restaurant": "food",
    "restaurants": "food",
    "dining": "food",
    # Market
    "market": "market",
    "markets": "market",
    "fair": "market",
    "fairs": "market",
    # Literature
    "literature": "literature",
    "literary": "literature",
    "poetry": "literature",
    "poem": "literature",
    "poems": "literature",
    "reading": "literature",
    "readings": "literature",
    "book": "literature",
    "books": "literature",
    # Exhibition
    "exhibition": "exhibition",
    "exhibitions": "exhibition",
    "exhibit": "exhibition",
    "exhibits": "exhibition",
    "show": "exhibition",
    "shows": "exhibition",
    # Dance
    "dance": "dance",
    "dancing": "dance",
    "dances": "dance",
    # Volunteering
    "volunteering": "volunteering",
    "volunteer": "volunteering",
    "volunteers": "volunteering",
    # Community
    "community": "community",
    "communities": "community",
}


def canonical_key(value: str) -> str:
    """
    Canonical key for a tag or category.

    lowercase -> trim -> hyphen/underscore runs to one space -> collapse
    whitespace -> drop a trailing "s" when longer than 4 chars and not "ss".
    """
    key = _SEPARATORS.sub(" ", (value or "").lower().strip())
    key = _WHITESPACE.sub(" ", key).strip()
    if len(key) > 4 and key.endswith("s") and not key.endswith("ss"):
        key = key[:-1]
    return key


def pick_representative(variants: Iterable[str]) -> Optional[str]:
    """
    Display form for a group of variants sharing one canonical key.

    Shortest wins; on equal length a variant without hyphens wins; after
    that the first seen.
    """
    best = None
    for variant in variants:
        if best is None:
            best = variant
            continue
        if (len(variant), "-" in variant) < (len(best), "-" in best):
            best = variant
    return best


def build_canonical_map(values: Iterable[str]) -> Dict[str, str]:
    """Map each canonical key to its representative, in first-seen key order."""
    groups: Dict[str, List[str]] = {}
    for value in values:
        if not value or not value.strip():
            continue
        groups.setdefault(canonical_key(value), []).append(value.strip())
    return {key: pick_representative(variants) for key, variants in groups.items()}


def canonicalize_values(values: Iterable[str]) -> List[str]:
    """Collapse spelling variants to one representative per concept."""
    return list(build_canonical_map(values).values())


def normalize_category(
    category: Optional[str],
    merge_table: Mapping[str, str] = CATEGORY_MERGE,
) -> Optional[str]:
    """Lowercase/trim a category and apply the domain merge table."""
    if not category:
        return None
    normalized = category.lower().strip()
    if not normalized:
        return None
    return merge_table.get(normalized, normalized)


class TagCanonicalizer:
    """
    Canonicalize tags and categories over a whole event collection.

    The representative for a concept is chosen from every spelling seen in
    the collection, so the same concept renders identically on every event.
    """

    def __init__(self, category_merge: Optional[Mapping[str, str]] = None):
        """
        Args:
            category_merge: Extra category spellings merged on top of
                ``CATEGORY_MERGE`` (e.g. from ingestion.yaml)
        """
        self.category_merge: Dict[str, str] = dict(CATEGORY_MERGE)
        for raw, target in (category_merge or {}).items():
            self.category_merge[str(raw).lower().strip()] = str(target).lower().strip()

    def canonicalize(
        self,
        events: List[Event],
        allowed_tags: Optional[Iterable[str]] = None,
    ) -> List[Event]:
        """
        Return copies of the events with canonical tags and categories.

        Args:
            events: Deduplicated events
            allowed_tags: Optional allow-list; when non-empty, a tag survives
                only if its canonical key matches an allowed tag's key

        Returns:
            List of events in the input order
        """
        allowed_keys = {canonical_key(t) for t in allowed_tags or () if t and t.strip()}

        tag_map = build_canonical_map(tag for event in events for tag in event.tags)
        category_map = build_canonical_map(
            c
            for c in (normalize_category(e.category, self.category_merge) for e in events)
            if c
        )

        result = []
        dropped = 0
        for event in events:
            tags: List[str] = []
            seen = set()
            for tag in event.tags:
                key = canonical_key(tag)
                if not key or key in seen:
                    continue
                if allowed_keys and key not in allowed_keys:
                    dropped += 1
                    continue
                seen.add(key)
                tags.append(tag_map[key])

            category = normalize_category(event.category, self.category_merge)
            if category:
                category = category_map[canonical_key(category)]

            result.append(event.model_copy(update={"tags": tags, "category": category}))

        if dropped:
            logger.info(f"Dropped {dropped} tags not in the allow-list")
        logger.debug(f"Canonical universe: {len(tag_map)} tags, {len(category_map)} categories")
        return result
