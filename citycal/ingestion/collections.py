"""
Collections feeds.

Optional editorial grouping: a collections feed (one row per collection) and
a collection-items feed (one row per member). The site works fully without
them; invalid rows are quarantined and skipped.
"""

import logging
from typing import Any, Iterable, List, Mapping, Set, Tuple

from pydantic import ValidationError

from citycal.ingestion.errors import QuarantinedRow, QuarantineReason
from citycal.ingestion.normalization.field_normalizer import (
    normalize_boolean,
    normalize_number,
    normalize_string,
)
from citycal.ingestion.normalization.text import collapse_whitespace
from citycal.schemas.collection import Collection, CollectionItem, CollectionType

logger = logging.getLogger(__name__)


def _collection_type(value: Any) -> CollectionType:
    text = (normalize_string(value) or "").lower()
    return CollectionType.VENUE if text == CollectionType.VENUE.value else CollectionType.EVENT


def _quarantine(row: Mapping[str, Any], detail: str, feed_name: str) -> QuarantinedRow:
    return QuarantinedRow(
        raw_row={str(k): "" if v is None else str(v) for k, v in row.items() if k is not None},
        reason=QuarantineReason.MISSING_ID,
        detail=detail,
        feed_name=feed_name,
    )


def normalize_collection_rows(
    rows: Iterable[Mapping[str, Any]],
) -> Tuple[List[Collection], List[QuarantinedRow]]:
    """
    Normalize collections-feed rows.

    ``collection_id`` and ``name`` are required. ``slug`` defaults to the
    lowercased name with whitespace runs turned into hyphens; ``is_active``
    defaults to true.
    """
    collections: List[Collection] = []
    quarantined: List[QuarantinedRow] = []

    for row in rows:
        collection_id = normalize_string(row.get("collection_id"))
        name = normalize_string(row.get("name"))
        if not collection_id or not name:
            quarantined.append(_quarantine(row, "Invalid collection row", "collections"))
            continue

        slug = normalize_string(row.get("slug")) or collapse_whitespace(name).replace(" ", "-")
        try:
            collections.append(
                Collection(
                    collection_id=collection_id,
                    collection_type=_collection_type(row.get("collection_type")),
                    name=name,
                    slug=slug,
                    description=normalize_string(row.get("description")),
                    city=normalize_string(row.get("city")),
                    priority=normalize_number(row.get("priority")),
                    is_active=normalize_boolean(row.get("is_active"), True),
                )
            )
        except ValidationError as e:
            quarantined.append(_quarantine(row, str(e), "collections"))

    return collections, quarantined


def normalize_collection_item_rows(
    rows: Iterable[Mapping[str, Any]],
) -> Tuple[List[CollectionItem], List[QuarantinedRow]]:
    """Normalize collection-items rows; ``collection_id`` and ``item_id`` are required."""
    items: List[CollectionItem] = []
    quarantined: List[QuarantinedRow] = []

    for row in rows:
        collection_id = normalize_string(row.get("collection_id"))
        item_id = normalize_string(row.get("item_id"))
        if not collection_id or not item_id:
            quarantined.append(_quarantine(row, "Invalid collection item row", "collection_items"))
            continue

        items.append(
            CollectionItem(
                collection_id=collection_id,
                item_type=_collection_type(row.get("item_type")),
                item_id=item_id,
                sort_order=normalize_number(row.get("sort_order")),
            )
        )

    return items, quarantined


def event_ids_by_collection_slug(
    collections: Iterable[Collection],
    items: Iterable[CollectionItem],
    slug: str,
) -> Set[str]:
    """
    Event ids belonging to the active collection with the given slug.

    Returns an empty set when the collection is unknown or inactive.
    """
    collection = next((c for c in collections if c.slug == slug and c.is_active), None)
    if collection is None:
        return set()
    return {
        i.item_id
        for i in items
        if i.collection_id == collection.collection_id
        and i.item_type == CollectionType.EVENT.value
    }
