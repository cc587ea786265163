"""
CSV Feed Adapter.

Downloads a delimited-text feed (typically a published spreadsheet) over
HTTP and parses it into header-keyed rows.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Dict, Optional

import httpx

from citycal.ingestion.errors import FetchFailure, IngestionErrorCode, ParseFailure
from citycal.ingestion.parsers import parse_rows

from .base_adapter import AdapterConfig, BaseSourceAdapter, FetchResult, SourceType


@dataclass
class CSVFeedConfig(AdapterConfig):
    """Configuration for a delimited-text feed."""

    url: str = ""
    delimiter: str = ","
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        """Set source type to CSV."""
        self.source_type = SourceType.CSV


class CSVFeedAdapter(BaseSourceAdapter):
    """
    Adapter for one delimited-text feed.

    - One GET per fetch, bounded by ``request_timeout``
    - No retries; callers decide whether to run again
    - Non-2xx responses and network errors become a failed FetchResult
    """

    def __init__(self, config: CSVFeedConfig, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the feed adapter.

        Args:
            config: CSVFeedConfig with the feed URL
            client: Shared async client; one is created (and closed) when omitted
        """
        self._client = client
        self._owns_client = client is None
        super().__init__(config)

    @property
    def feed_config(self) -> CSVFeedConfig:
        """Get typed config."""
        return self.config  # type: ignore[return-value]

    def _validate_config(self) -> None:
        """Validate feed configuration."""
        if not self.feed_config.url:
            raise ValueError(f"Feed '{self.source_id}' requires a url")

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None:
            headers = {"Accept": "text/csv, text/plain;q=0.9, */*;q=0.5", **self.feed_config.headers}
            self._client = httpx.AsyncClient(headers=headers, follow_redirects=True)
        return self._client

    async def fetch(self, **kwargs) -> FetchResult:
        """
        Download and parse the feed.

        Returns:
            FetchResult with header-keyed rows
        """
        fetch_started = datetime.now(UTC)
        metadata = {"url": self.feed_config.url}

        try:
            text = await self._download()
            rows, errors = self._parse(text)
        except (FetchFailure, ParseFailure) as e:
            self.logger.warning(f"Feed '{self.source_id}' degraded ({e.code.value}): {e}")
            return FetchResult(
                success=False,
                source_type=self.source_type,
                errors=[str(e)],
                error_code=e.code,
                metadata=metadata,
                started_at=fetch_started,
                ended_at=datetime.now(UTC),
            )

        if errors:
            self.logger.warning(f"Feed '{self.source_id}': {len(errors)} malformed rows skipped")
        self.logger.info(f"Fetched {len(rows)} rows from '{self.source_id}'")

        return FetchResult(
            success=True,
            source_type=self.source_type,
            raw_data=rows,
            total_fetched=len(rows),
            errors=errors,
            error_code=IngestionErrorCode.PARSE_FAILURE if errors else None,
            metadata=metadata,
            started_at=fetch_started,
            ended_at=datetime.now(UTC),
        )

    async def _download(self) -> str:
        """
        GET the feed body.

        Raises:
            FetchFailure: On network error, timeout or non-2xx status
        """
        client = self._get_client()
        try:
            response = await client.get(
                self.feed_config.url,
                timeout=self.feed_config.request_timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchFailure(
                f"HTTP {e.response.status_code} from {self.feed_config.url}",
                feed_name=self.source_id,
            ) from e
        except httpx.HTTPError as e:
            raise FetchFailure(f"Request failed: {e!r}", feed_name=self.source_id) from e
        return response.text

    def _parse(self, text: str):
        """
        Parse the body into rows.

        Raises:
            ParseFailure: When nothing could be recovered and the parser
                reported errors
        """
        parsed = parse_rows(text, delimiter=self.feed_config.delimiter)
        if parsed.has_errors and not parsed.rows:
            raise ParseFailure(
                f"No rows recovered: {parsed.errors[0]}",
                feed_name=self.source_id,
            )
        return parsed.rows, parsed.errors

    async def close(self) -> None:
        """Close async HTTP client when this adapter created it."""
        if self._client and self._owns_client:
            await self._client.aclose()
        self._client = None
