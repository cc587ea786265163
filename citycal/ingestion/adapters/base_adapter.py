"""
Feed adapter interface.

An adapter downloads one feed and reports what came back as a
``FetchResult``. Feed pipelines only ever see that result, so a failed
download and a malformed body look the same to them: ``success=False`` with
the reasons in ``errors``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from citycal.ingestion.errors import IngestionErrorCode


class SourceType(str, Enum):
    """Wire format of a feed."""

    CSV = "csv"


@dataclass
class FetchResult:
    """
    Rows delivered by one adapter fetch.

    ``success`` is False only when the feed produced nothing usable
    (fetch failure, or a body with no recoverable rows and parse errors).
    Recoverable parse problems are listed in ``errors`` with ``success``
    still True.
    """

    success: bool
    source_type: SourceType
    raw_data: List[Dict[str, str]] = field(default_factory=list)
    total_fetched: int = 0
    errors: List[str] = field(default_factory=list)
    error_code: Optional[IngestionErrorCode] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        if not (self.started_at and self.ended_at):
            return 0.0
        return (self.ended_at - self.started_at).total_seconds()


@dataclass
class AdapterConfig:
    """Settings shared by every feed adapter; subclasses add the transport details."""

    source_id: str
    source_type: SourceType
    request_timeout: float = 30.0


class BaseSourceAdapter(ABC):
    """
    One feed, one adapter.

    Implementations provide ``fetch()`` and ``_validate_config()``; the
    latter runs at construction so a misconfigured feed fails before any
    request is made. Adapters are async context managers that release their
    transport on exit.
    """

    def __init__(self, config: AdapterConfig):
        self.config = config
        self.logger = logging.getLogger(f"adapter.{config.source_id}")
        self._validate_config()

    @property
    def source_type(self) -> SourceType:
        return self.config.source_type

    @property
    def source_id(self) -> str:
        """Feed name, used in log lines and error messages."""
        return self.config.source_id

    @abstractmethod
    async def fetch(self, **kwargs) -> FetchResult:
        """
        Download the feed and return its rows.

        Feed-level failures are reported through ``FetchResult.success`` and
        ``errors``, never raised.
        """

    @abstractmethod
    def _validate_config(self) -> None:
        """Raise ValueError when the config cannot be fetched."""

    async def close(self) -> None:
        """Release the transport; no-op by default."""

    async def __aenter__(self) -> "BaseSourceAdapter":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.close()
