"""
Feed Pipelines.

One ``FeedPipeline`` per configured feed: fetch through an adapter and hand
back a ``FeedResult``. Feed-level failures stop here: a failed feed yields an
empty row list, a logged warning and ``status=FAILED``, and never raises into
the orchestrator, so sibling feeds are unaffected.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

import httpx

from citycal.ingestion.adapters import (
    BaseSourceAdapter,
    CSVFeedAdapter,
    CSVFeedConfig,
    SourceType,
)
from citycal.ingestion.errors import IngestionErrorCode

EVENTS_FEED = "events"
VENUES_FEED = "venues"
EVENT_TAGS_FEED = "event_tags"
VENUE_TAGS_FEED = "venue_tags"
COLLECTIONS_FEED = "collections"
COLLECTION_ITEMS_FEED = "collection_items"
PROMOTERS_FEED = "promoters"

FEED_NAMES = (
    EVENTS_FEED,
    VENUES_FEED,
    EVENT_TAGS_FEED,
    VENUE_TAGS_FEED,
    COLLECTIONS_FEED,
    COLLECTION_ITEMS_FEED,
    PROMOTERS_FEED,
)


class FeedStatus(str, Enum):
    """Status of a feed fetch (also used for a whole pipeline run)."""

    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class FeedConfig:
    """Configuration for one feed."""

    name: str
    url: Optional[str] = None
    enabled: bool = True
    delimiter: str = ","
    request_timeout: float = 30.0

    @property
    def is_configured(self) -> bool:
        return self.enabled and bool(self.url)

    @classmethod
    def from_dict(cls, name: str, data: Optional[Mapping[str, Any]], request_timeout: float = 30.0) -> "FeedConfig":
        """Build from an ``ingestion.yaml`` feed entry."""
        data = data or {}
        return cls(
            name=name,
            url=(data.get("url") or "").strip() or None,
            enabled=bool(data.get("enabled", True)),
            delimiter=data.get("delimiter") or ",",
            request_timeout=float(data.get("request_timeout") or request_timeout),
        )


@dataclass
class FeedResult:
    """Outcome of fetching one feed."""

    feed_name: str
    status: FeedStatus
    rows: List[Dict[str, str]] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    error_code: Optional[IngestionErrorCode] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        """Calculate fetch duration."""
        if self.started_at and self.ended_at:
            return (self.ended_at - self.started_at).total_seconds()
        return 0.0

    @property
    def ok(self) -> bool:
        """True when the feed delivered rows (possibly with skipped lines)."""
        return self.status in (FeedStatus.SUCCESS, FeedStatus.PARTIAL_SUCCESS)

    @classmethod
    def skipped(cls, feed_name: str) -> "FeedResult":
        return cls(feed_name=feed_name, status=FeedStatus.SKIPPED)


class FeedPipeline:
    """
    Fetch one feed and classify the outcome.

    The adapter is created from the config unless one is injected.
    """

    def __init__(
        self,
        config: FeedConfig,
        adapter: Optional[BaseSourceAdapter] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self.client = client
        self._adapter = adapter
        self.logger = logging.getLogger(f"pipeline.{config.name}")

    def _get_adapter(self) -> BaseSourceAdapter:
        if self._adapter is None:
            self._adapter = CSVFeedAdapter(
                CSVFeedConfig(
                    source_id=self.config.name,
                    source_type=SourceType.CSV,
                    request_timeout=self.config.request_timeout,
                    url=self.config.url or "",
                    delimiter=self.config.delimiter,
                ),
                client=self.client,
            )
        return self._adapter

    async def run(self) -> FeedResult:
        """
        Fetch the feed.

        Returns:
            FeedResult; never raises
        """
        if self._adapter is None and not self.config.is_configured:
            self.logger.debug(f"Feed '{self.config.name}' not configured, skipping")
            return FeedResult.skipped(self.config.name)

        started = datetime.now(UTC)
        adapter = self._get_adapter()
        try:
            fetched = await adapter.fetch()
        except Exception as e:
            self.logger.error(f"Feed '{self.config.name}' failed unexpectedly: {e}", exc_info=True)
            return FeedResult(
                feed_name=self.config.name,
                status=FeedStatus.FAILED,
                errors=[str(e)],
                error_code=IngestionErrorCode.FETCH_FAILURE,
                started_at=started,
                ended_at=datetime.now(UTC),
            )
        finally:
            await adapter.close()

        if not fetched.success:
            status = FeedStatus.FAILED
            self.logger.warning(
                f"Feed '{self.config.name}' yielded no data: {'; '.join(fetched.errors)}"
            )
        elif fetched.errors:
            status = FeedStatus.PARTIAL_SUCCESS
        else:
            status = FeedStatus.SUCCESS

        return FeedResult(
            feed_name=self.config.name,
            status=status,
            rows=list(fetched.raw_data),
            errors=list(fetched.errors),
            error_code=fetched.error_code,
            started_at=started,
            ended_at=datetime.now(UTC),
        )
