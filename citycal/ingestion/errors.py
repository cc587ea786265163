"""
Error taxonomy for the ingestion pipeline.

Row-level problems (missing fields, unparseable dates) never raise: the row
is quarantined and the batch continues. Feed-level problems (fetch and parse
failures) are raised inside a feed and caught at the feed boundary, where the
feed degrades to an empty collection.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class IngestionErrorCode(str, Enum):
    """Category of an ingestion error."""

    MISSING_REQUIRED_FIELD = "missing_required_field"
    INVALID_DATE_FORMAT = "invalid_date_format"
    FETCH_FAILURE = "fetch_failure"
    PARSE_FAILURE = "parse_failure"


class QuarantineReason(str, Enum):
    """Why a single raw row was rejected during normalization."""

    MISSING_ID = "MissingId"
    MISSING_TITLE = "MissingTitle"
    MISSING_START = "MissingStart"
    INVALID_START = "InvalidStart"

    @property
    def code(self) -> IngestionErrorCode:
        if self is QuarantineReason.INVALID_START:
            return IngestionErrorCode.INVALID_DATE_FORMAT
        return IngestionErrorCode.MISSING_REQUIRED_FIELD


class IngestionError(Exception):
    """Base class for feed-level ingestion errors."""

    code: IngestionErrorCode

    def __init__(self, message: str, feed_name: Optional[str] = None):
        super().__init__(message)
        self.feed_name = feed_name


class FetchFailure(IngestionError):
    """Feed request failed (network error or non-success status)."""

    code = IngestionErrorCode.FETCH_FAILURE


class ParseFailure(IngestionError):
    """Feed body is not valid delimited text."""

    code = IngestionErrorCode.PARSE_FAILURE


@dataclass(frozen=True)
class QuarantinedRow:
    """A rejected raw row, kept for operational logging only."""

    raw_row: Dict[str, str]
    reason: QuarantineReason
    detail: str = ""
    feed_name: str = "events"

    @property
    def code(self) -> IngestionErrorCode:
        return self.reason.code
