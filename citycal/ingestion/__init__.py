"""
Ingestion layer for the city events calendar.

This package fetches the events/venues feeds, normalizes rows into canonical
``Event`` and ``Venue`` values and hands them to calling layers.

Key Components:
- CSVFeedAdapter: HTTP download of a delimited-text feed
- field_normalizer / time_resolver / status: per-row normalization
- VenueResolver: loose venue reference -> canonical venue key
- RecencyDeduplicator, TagCanonicalizer, VenueCapper: collection steps
- PipelineOrchestrator: composes one fetch cycle
"""
