"""
Promoter Normalizer.

Turns rows of the optional promoters feed into ``Promoter`` records. A row
needs a ``promoter_id`` or a name; the id falls back to the slug of the name.
Inactive promoters are normalized but dropped by ``normalize_promoter_rows``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from citycal.ingestion.errors import QuarantinedRow, QuarantineReason
from citycal.ingestion.normalization.columns import RawPromoterRow
from citycal.ingestion.normalization.field_normalizer import (
    normalize_boolean,
    normalize_string,
)
from citycal.ingestion.normalization.text import normalize_handle, slugify
from citycal.schemas.promoter import Promoter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromoterOutcome:
    """Exactly one of ``promoter`` / ``quarantined`` is set."""

    promoter: Optional[Promoter] = None
    quarantined: Optional[QuarantinedRow] = None

    @property
    def ok(self) -> bool:
        return self.promoter is not None


def parse_is_active(value: Any) -> bool:
    """Blank means active; otherwise only true/1/yes count as active."""
    text = normalize_string(value)
    if text is None:
        return True
    return normalize_boolean(text, False)


def normalize_promoter_row(raw: Union[RawPromoterRow, Mapping[str, Any]]) -> PromoterOutcome:
    """
    Normalize one promoters-feed row.

    Args:
        raw: RawPromoterRow or a header-keyed mapping

    Returns:
        PromoterOutcome
    """
    row = raw if isinstance(raw, RawPromoterRow) else RawPromoterRow.from_mapping(raw)

    promoter_id = normalize_string(row.promoter_id)
    name = normalize_string(row.name)
    if not promoter_id and not name:
        return PromoterOutcome(
            quarantined=QuarantinedRow(
                raw_row=row.as_dict(),
                reason=QuarantineReason.MISSING_ID,
                detail="Missing promoter_id/name",
                feed_name="promoters",
            )
        )

    promoter_id = promoter_id or slugify(name) or name
    name = name or promoter_id

    promoter = Promoter(
        promoter_id=promoter_id,
        name=name,
        slug=normalize_string(row.slug) or slugify(name),
        instagram_handle=normalize_handle(row.instagram_handle or "") or None,
        website_url=normalize_string(row.website_url),
        description_short=normalize_string(row.description_short),
        primary_image_url=normalize_string(row.primary_image_url),
        is_active=parse_is_active(row.is_active),
    )
    return PromoterOutcome(promoter=promoter)


def normalize_promoter_rows(
    rows: Iterable[Mapping[str, Any]],
) -> Tuple[List[Promoter], List[QuarantinedRow]]:
    """Normalize promoters-feed rows, keeping active promoters only."""
    promoters: List[Promoter] = []
    quarantined: List[QuarantinedRow] = []
    inactive = 0

    for row in rows:
        outcome = normalize_promoter_row(row)
        if not outcome.ok:
            quarantined.append(outcome.quarantined)
        elif outcome.promoter.is_active:
            promoters.append(outcome.promoter)
        else:
            inactive += 1

    if inactive:
        logger.debug(f"Skipped {inactive} inactive promoters")
    return promoters, quarantined
