"""Feed adapters."""

from .base_adapter import AdapterConfig, BaseSourceAdapter, FetchResult, SourceType
from .csv_feed_adapter import CSVFeedAdapter, CSVFeedConfig

__all__ = [
    "AdapterConfig",
    "BaseSourceAdapter",
    "CSVFeedAdapter",
    "CSVFeedConfig",
    "FetchResult",
    "SourceType",
]
