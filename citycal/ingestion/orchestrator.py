"""
Pipeline Orchestrator.

Composes the ingestion steps for one fetch cycle:

    feeds (concurrent HTTP) -> parse -> normalize (+ status, all-day times)
    -> venue resolution -> deduplication -> tag/category canonicalization
    -> venue cap

Feeds are fetched concurrently; everything after the fetch is sequential and
works on fresh collections. Nothing is cached across invocations.
"""

import asyncio
import logging
from collections import Counter
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import AsyncIterator, Dict, Iterable, List, Optional, Sequence, Tuple

import httpx

from citycal.configs.config import Config, load_yaml_config
from citycal.configs.settings import get_settings
from citycal.ingestion.capping import VenueCapper
from citycal.ingestion.collections import (
    normalize_collection_item_rows,
    normalize_collection_rows,
)
from citycal.ingestion.deduplication import EventDeduplicator, RecencyDeduplicator
from citycal.ingestion.errors import QuarantinedRow
from citycal.ingestion.feeds import (
    COLLECTION_ITEMS_FEED,
    COLLECTIONS_FEED,
    EVENT_TAGS_FEED,
    EVENTS_FEED,
    FEED_NAMES,
    PROMOTERS_FEED,
    VENUE_TAGS_FEED,
    VENUES_FEED,
    FeedConfig,
    FeedPipeline,
    FeedResult,
    FeedStatus,
)
from citycal.ingestion.normalization.field_normalizer import normalize_event_row
from citycal.ingestion.normalization.promoter_normalizer import normalize_promoter_rows
from citycal.ingestion.normalization.tag_canonicalizer import TagCanonicalizer
from citycal.ingestion.normalization.time_resolver import DEFAULT_OPEN_TIME
from citycal.ingestion.normalization.venue_normalizer import (
    normalize_tag_rows,
    normalize_venue_row,
)
from citycal.ingestion.venue_registry import load_canonical_venues, registry_to_venues
from citycal.ingestion.venue_resolver import VenueIndex, VenueResolver
from citycal.schemas.collection import Collection, CollectionItem
from citycal.schemas.event import Event
from citycal.schemas.promoter import Promoter
from citycal.schemas.venue import CanonicalVenueDescriptor, Venue

logger = logging.getLogger(__name__)


@dataclass
class OrchestratorConfig:
    """Per-run knobs for the orchestrator."""

    feeds: Dict[str, FeedConfig] = field(default_factory=dict)
    venue_cap: int = 15
    default_timezone: str = "Europe/Lisbon"
    default_open_time: str = DEFAULT_OPEN_TIME
    synthetic_duration: timedelta = timedelta(hours=1)
    request_timeout: float = 30.0
    category_merge: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_settings(cls) -> "OrchestratorConfig":
        """Build from environment settings alone (no YAML)."""
        settings = get_settings()
        urls = {
            EVENTS_FEED: settings.EVENTS_CSV_URL,
            VENUES_FEED: settings.VENUES_CSV_URL,
            EVENT_TAGS_FEED: settings.EVENT_TAGS_CSV_URL,
            VENUE_TAGS_FEED: settings.VENUE_TAGS_CSV_URL,
            COLLECTIONS_FEED: settings.COLLECTIONS_CSV_URL,
            COLLECTION_ITEMS_FEED: settings.COLLECTION_ITEMS_CSV_URL,
            PROMOTERS_FEED: settings.PROMOTERS_CSV_URL,
        }
        return cls(
            feeds={
                name: FeedConfig(name=name, url=url, request_timeout=settings.REQUEST_TIMEOUT)
                for name, url in urls.items()
            },
            venue_cap=settings.VENUE_CAP,
            default_timezone=settings.DEFAULT_TIMEZONE,
            request_timeout=settings.REQUEST_TIMEOUT,
        )

    @classmethod
    def from_dict(cls, data: Dict) -> "OrchestratorConfig":
        """Build from a parsed ``ingestion.yaml``."""
        pipeline = data.get("pipeline") or {}
        timeout = float(pipeline.get("request_timeout") or 30.0)
        feeds = {
            name: FeedConfig.from_dict(name, (data.get("feeds") or {}).get(name), timeout)
            for name in FEED_NAMES
        }
        return cls(
            feeds=feeds,
            venue_cap=int(pipeline.get("venue_cap") or 15),
            default_timezone=pipeline.get("default_timezone") or "Europe/Lisbon",
            default_open_time=str(pipeline.get("default_open_time") or DEFAULT_OPEN_TIME),
            synthetic_duration=timedelta(minutes=int(pipeline.get("synthetic_end_minutes") or 60)),
            request_timeout=timeout,
            category_merge=dict(data.get("category_merge") or {}),
        )


@dataclass
class VenueLoadResult:
    """Venues for one run and where they came from."""

    venues: List[Venue] = field(default_factory=list)
    quarantined: List[QuarantinedRow] = field(default_factory=list)
    allowed_tags: List[str] = field(default_factory=list)
    from_registry: bool = False


@dataclass
class PipelineRunResult:
    """Everything one pipeline invocation produced."""

    status: FeedStatus
    started_at: datetime
    ended_at: datetime
    events: List[Event] = field(default_factory=list)
    venues: List[Venue] = field(default_factory=list)
    quarantined: List[QuarantinedRow] = field(default_factory=list)
    event_tags: List[str] = field(default_factory=list)
    venue_tags: List[str] = field(default_factory=list)
    collections: List[Collection] = field(default_factory=list)
    collection_items: List[CollectionItem] = field(default_factory=list)
    promoters: List[Promoter] = field(default_factory=list)
    feed_results: Dict[str, FeedResult] = field(default_factory=dict)
    venues_from_registry: bool = False
    rows_fetched: int = 0
    rows_normalized: int = 0
    rows_quarantined: int = 0
    quarantined_by_reason: Dict[str, int] = field(default_factory=dict)
    venues_unresolved: int = 0
    events_after_dedup: int = 0
    events_after_cap: int = 0

    @property
    def duration_seconds(self) -> float:
        """Calculate run duration."""
        return (self.ended_at - self.started_at).total_seconds()

    @property
    def failed_feeds(self) -> List[str]:
        return [name for name, r in self.feed_results.items() if r.status == FeedStatus.FAILED]


class PipelineOrchestrator:
    """
    Coordinates one fetch cycle over all configured feeds.

    Responsibilities:
    - Fetch feeds concurrently over a shared HTTP client
    - Load venues (feed, else static registry) before resolving events
    - Run normalize -> resolve -> dedup -> canonicalize -> cap
    - Degrade failed feeds to empty collections and report them
    """

    def __init__(
        self,
        config: Optional[OrchestratorConfig] = None,
        registry: Optional[Sequence[CanonicalVenueDescriptor]] = None,
        client: Optional[httpx.AsyncClient] = None,
        deduplicator: Optional[EventDeduplicator] = None,
        canonicalizer: Optional[TagCanonicalizer] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Run configuration; defaults to environment settings
            registry: Canonical venue registry; defaults to the bundled asset
            client: Shared async HTTP client (not closed by the orchestrator)
            deduplicator: Deduplication strategy
            canonicalizer: Tag/category canonicalizer
        """
        self.logger = logging.getLogger("orchestrator")
        self.config = config or OrchestratorConfig.from_settings()
        self._registry = tuple(registry) if registry is not None else None
        self._client = client
        self.deduplicator = deduplicator or RecencyDeduplicator()
        self.canonicalizer = canonicalizer or TagCanonicalizer(self.config.category_merge)
        self.capper = VenueCapper(self.config.venue_cap)

    @property
    def registry(self) -> Tuple[CanonicalVenueDescriptor, ...]:
        if self._registry is None:
            self._registry = load_canonical_venues()
        return self._registry

    # ========================================================================
    # FETCHING
    # ========================================================================

    @asynccontextmanager
    async def _http_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(follow_redirects=True) as client:
            yield client

    async def fetch_feeds(self, names: Iterable[str] = FEED_NAMES) -> Dict[str, FeedResult]:
        """
        Fetch the named feeds concurrently.

        Unconfigured feeds come back as SKIPPED; failures as FAILED.
        """
        names = list(names)
        async with self._http_client() as client:
            pipelines = [
                FeedPipeline(self.config.feeds.get(name) or FeedConfig(name=name), client=client)
                for name in names
            ]
            results = await asyncio.gather(*(p.run() for p in pipelines))
        return dict(zip(names, results))

    # ========================================================================
    # STEPS
    # ========================================================================

    def load_venues(
        self,
        venues_feed: Optional[FeedResult],
        venue_tags_feed: Optional[FeedResult] = None,
    ) -> VenueLoadResult:
        """
        Normalize the venues feed, falling back to the registry.

        The registry is used when the venues feed is not configured, failed,
        or produced no valid venue.
        """
        allowed = normalize_tag_rows(venue_tags_feed.rows) if venue_tags_feed else []
        result = VenueLoadResult(allowed_tags=allowed)

        if venues_feed is not None and venues_feed.ok:
            for row in venues_feed.rows:
                outcome = normalize_venue_row(row, allowed_tags=allowed)
                if outcome.ok:
                    result.venues.append(outcome.venue)
                else:
                    result.quarantined.append(outcome.quarantined)

        if not result.venues:
            if venues_feed is not None and venues_feed.status != FeedStatus.SKIPPED:
                self.logger.warning("Venues feed unusable, using canonical venue registry")
            result.venues = registry_to_venues(self.registry)
            result.from_registry = True

        self.logger.info(
            f"Loaded {len(result.venues)} venues"
            f" ({'registry' if result.from_registry else 'feed'})"
        )
        return result

    def normalize_events(self, rows: Iterable[Dict[str, str]]) -> Tuple[List[Event], List[QuarantinedRow]]:
        """Run every events-feed row through the field normalizer."""
        events: List[Event] = []
        quarantined: List[QuarantinedRow] = []
        for row in rows:
            outcome = normalize_event_row(
                row,
                default_timezone=self.config.default_timezone,
                default_open_time=self.config.default_open_time,
                synthetic_duration=self.config.synthetic_duration,
            )
            if outcome.ok:
                events.append(outcome.event)
            else:
                quarantined.append(outcome.quarantined)
        return events, quarantined

    def process_events(
        self,
        events: List[Event],
        venues: Iterable[Venue],
        allowed_tags: Optional[Iterable[str]] = None,
    ) -> Tuple[List[Event], int, int]:
        """
        Resolve venues, deduplicate, canonicalize and cap.

        Returns:
            (final events, count after deduplication, count without a venue match)
        """
        resolver = VenueResolver(VenueIndex.build(venues))
        resolved, unresolved = resolver.resolve_events(events)
        if unresolved:
            self.logger.info(f"{unresolved} of {len(resolved)} events matched no known venue")

        deduped = self.deduplicator.deduplicate(resolved)
        self.logger.info(f"Deduplication: {len(resolved)} -> {len(deduped)} events")

        canonical = self.canonicalizer.canonicalize(deduped, allowed_tags=allowed_tags)
        return self.capper.apply(canonical), len(deduped), unresolved

    # ========================================================================
    # ENTRY POINTS
    # ========================================================================

    async def run(self) -> PipelineRunResult:
        """
        Execute a full fetch cycle.

        Returns:
            PipelineRunResult; feed failures are reported, never raised
        """
        started = datetime.now(UTC)
        self.logger.info("Starting ingestion run...")

        feeds = await self.fetch_feeds(FEED_NAMES)

        venue_load = self.load_venues(feeds.get(VENUES_FEED), feeds.get(VENUE_TAGS_FEED))
        event_tags = normalize_tag_rows(feeds[EVENT_TAGS_FEED].rows)

        events_feed = feeds[EVENTS_FEED]
        normalized, quarantined = self.normalize_events(events_feed.rows)
        if quarantined:
            self.logger.warning(f"Quarantined {len(quarantined)} of {len(events_feed.rows)} event rows")

        final, deduped_count, unresolved = self.process_events(normalized, venue_load.venues, event_tags)

        collections, collection_quarantine = normalize_collection_rows(feeds[COLLECTIONS_FEED].rows)
        items, item_quarantine = normalize_collection_item_rows(feeds[COLLECTION_ITEMS_FEED].rows)
        promoters, promoter_quarantine = normalize_promoter_rows(feeds[PROMOTERS_FEED].rows)

        all_quarantined = (
            quarantined
            + venue_load.quarantined
            + collection_quarantine
            + item_quarantine
            + promoter_quarantine
        )

        ended = datetime.now(UTC)
        result = PipelineRunResult(
            status=self._run_status(feeds),
            started_at=started,
            ended_at=ended,
            events=final,
            venues=venue_load.venues,
            quarantined=all_quarantined,
            event_tags=event_tags,
            venue_tags=venue_load.allowed_tags,
            collections=collections,
            collection_items=items,
            promoters=promoters,
            feed_results=feeds,
            venues_from_registry=venue_load.from_registry,
            rows_fetched=len(events_feed.rows),
            rows_normalized=len(normalized),
            rows_quarantined=len(quarantined),
            quarantined_by_reason=dict(Counter(q.reason.value for q in all_quarantined)),
            venues_unresolved=unresolved,
            events_after_dedup=deduped_count,
            events_after_cap=len(final),
        )

        self.logger.info(
            f"Ingestion run complete: {result.rows_fetched} rows -> {result.events_after_cap} events "
            f"in {result.duration_seconds:.2f}s"
        )
        return result

    async def fetch_events(self) -> List[Event]:
        """Run the full pipeline and return the final events."""
        return (await self.run()).events

    async def fetch_venues(self) -> List[Venue]:
        """Fetch and normalize venues only (feed, else registry)."""
        feeds = await self.fetch_feeds((VENUES_FEED, VENUE_TAGS_FEED))
        return self.load_venues(feeds[VENUES_FEED], feeds[VENUE_TAGS_FEED]).venues

    @staticmethod
    def _run_status(feeds: Dict[str, FeedResult]) -> FeedStatus:
        events_status = feeds[EVENTS_FEED].status
        if events_status in (FeedStatus.FAILED, FeedStatus.SKIPPED):
            return FeedStatus.FAILED
        if any(r.status in (FeedStatus.FAILED, FeedStatus.PARTIAL_SUCCESS) for r in feeds.values()):
            return FeedStatus.PARTIAL_SUCCESS
        return FeedStatus.SUCCESS


def load_orchestrator_from_config(
    config_path: Optional[Path] = None,
    **kwargs,
) -> PipelineOrchestrator:
    """
    Create an orchestrator from YAML config.

    Args:
        config_path: Path to ingestion.yaml; defaults to the bundled config
        **kwargs: Passed through to PipelineOrchestrator

    Returns:
        Configured PipelineOrchestrator
    """
    data = load_yaml_config(config_path) if config_path else Config.load_ingestion_config()
    return PipelineOrchestrator(OrchestratorConfig.from_dict(data), **kwargs)


def fetch_events_sync(orchestrator: Optional[PipelineOrchestrator] = None) -> List[Event]:
    """Blocking wrapper around ``fetch_events`` for scripts."""
    orchestrator = orchestrator or load_orchestrator_from_config()
    return asyncio.run(orchestrator.fetch_events())
