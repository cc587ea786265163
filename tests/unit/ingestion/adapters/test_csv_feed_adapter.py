"""
Unit tests for the csv_feed_adapter module.

Tests for CSVFeedConfig and CSVFeedAdapter, with HTTP served by
httpx.MockTransport.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from citycal.ingestion.adapters.base_adapter import SourceType
from citycal.ingestion.adapters.csv_feed_adapter import CSVFeedAdapter, CSVFeedConfig
from citycal.ingestion.errors import IngestionErrorCode
from citycal.ingestion.parsers import ParseResult

FEED_URL = "https://sheets.example.com/events.csv"


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def feed_config():
    """Create a basic feed config."""
    return CSVFeedConfig(source_id="events", source_type=SourceType.CSV, url=FEED_URL, request_timeout=5)


def mock_client(handler) -> httpx.AsyncClient:
    """Async client whose requests are answered by ``handler``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# =============================================================================
# TEST CLASSES
# =============================================================================


class TestCSVFeedConfig:
    """Tests for CSVFeedConfig."""

    def test_defaults(self):
        """Source type should be CSV with a comma delimiter."""
        config = CSVFeedConfig(source_id="x", source_type=SourceType.CSV, url=FEED_URL)

        assert config.source_type == SourceType.CSV
        assert config.delimiter == ","

    def test_url_required(self):
        """An adapter without URL should be rejected."""
        with pytest.raises(ValueError):
            CSVFeedAdapter(CSVFeedConfig(source_id="x", source_type=SourceType.CSV))


class TestCSVFeedAdapterFetch:
    """Tests for CSVFeedAdapter.fetch."""

    def test_success(self, feed_config):
        """A 200 response should be parsed into rows."""

        def handler(request):
            assert str(request.url) == FEED_URL
            return httpx.Response(200, text="event_id,title\ne1,Jazz\n")

        adapter = CSVFeedAdapter(feed_config, client=mock_client(handler))
        result = asyncio.run(adapter.fetch())

        assert result.success
        assert result.raw_data == [{"event_id": "e1", "title": "Jazz"}]
        assert result.total_fetched == 1
        assert result.error_code is None
        assert result.duration_seconds >= 0

    def test_http_error_status(self, feed_config):
        """A non-2xx response should give a failed result, not raise."""
        adapter = CSVFeedAdapter(feed_config, client=mock_client(lambda r: httpx.Response(404)))
        result = asyncio.run(adapter.fetch())

        assert not result.success
        assert result.raw_data == []
        assert result.error_code == IngestionErrorCode.FETCH_FAILURE
        assert "404" in result.errors[0]

    def test_network_error(self, feed_config):
        """A transport error should give a failed result, not raise."""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        adapter = CSVFeedAdapter(feed_config, client=mock_client(handler))
        result = asyncio.run(adapter.fetch())

        assert not result.success
        assert result.error_code == IngestionErrorCode.FETCH_FAILURE

    def test_unrecoverable_body(self, feed_config):
        """A body with parse errors and no rows should be a parse failure."""
        with patch(
            "citycal.ingestion.adapters.csv_feed_adapter.parse_rows",
            return_value=ParseResult(errors=["Unreadable header at line 1"]),
        ):
            adapter = CSVFeedAdapter(feed_config, client=mock_client(lambda r: httpx.Response(200, text="x")))
            result = asyncio.run(adapter.fetch())

        assert not result.success
        assert result.error_code == IngestionErrorCode.PARSE_FAILURE

    def test_partial_body(self, feed_config):
        """Recoverable parse errors should keep rows and be reported."""
        body = "event_id,title\ne1,Jazz,extra\ne2,Fado\n"
        adapter = CSVFeedAdapter(feed_config, client=mock_client(lambda r: httpx.Response(200, text=body)))
        result = asyncio.run(adapter.fetch())

        assert result.success
        assert result.total_fetched == 2
        assert result.error_code == IngestionErrorCode.PARSE_FAILURE
        assert len(result.errors) == 1

    def test_timeout_passed(self, feed_config):
        """The configured timeout should be passed to the request."""
        client = AsyncMock(spec=httpx.AsyncClient)
        response = httpx.Response(200, text="a\n1\n", request=httpx.Request("GET", FEED_URL))
        client.get.return_value = response

        adapter = CSVFeedAdapter(feed_config, client=client)
        asyncio.run(adapter.fetch())

        client.get.assert_awaited_once_with(FEED_URL, timeout=5)


class TestCSVFeedAdapterClose:
    """Tests for client ownership."""

    def test_shared_client_not_closed(self, feed_config):
        """An injected client should be left open."""
        client = AsyncMock(spec=httpx.AsyncClient)
        adapter = CSVFeedAdapter(feed_config, client=client)

        asyncio.run(adapter.close())

        client.aclose.assert_not_awaited()

    def test_owned_client_closed(self, feed_config):
        """A client created by the adapter should be closed."""
        adapter = CSVFeedAdapter(feed_config)
        client = adapter._get_client()

        with patch.object(client, "aclose", new=AsyncMock()) as mock_close:
            asyncio.run(adapter.close())

        mock_close.assert_awaited_once()
        assert adapter._client is None

    def test_context_manager_closes(self, feed_config):
        """Leaving ``async with`` should close an owned client."""

        async def use_adapter():
            async with CSVFeedAdapter(feed_config) as adapter:
                adapter._get_client()
                return adapter

        adapter = asyncio.run(use_adapter())

        assert adapter._client is None
