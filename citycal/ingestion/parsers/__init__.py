"""Feed body parsers."""

from .csv_parser import ParseResult, RawRecord, parse_rows

__all__ = ["ParseResult", "RawRecord", "parse_rows"]
