"""City events calendar: event and venue ingestion pipeline."""

__version__ = "0.1.0"
