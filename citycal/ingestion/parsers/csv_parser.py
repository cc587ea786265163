"""
Row Parser.

Turns delimited text with a header row into an ordered list of raw records
(header name -> cell string). Malformed input never raises: every row that
can be recovered is returned and problems are reported in ``errors``.
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Dict, List

logger = logging.getLogger(__name__)

RawRecord = Dict[str, str]


@dataclass
class ParseResult:
    """Rows recovered from a feed body plus any parse-level errors."""

    rows: List[RawRecord] = field(default_factory=list)
    header: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def total_rows(self) -> int:
        return len(self.rows)


def parse_rows(text: str, delimiter: str = ",") -> ParseResult:
    """
    Parse delimited text with a header row.

    - Header names are trimmed; a UTF-8 BOM before the header is dropped.
    - Blank lines are skipped.
    - Short rows leave the missing columns out of the record.
    - Long rows keep the first ``len(header)`` cells and report an error.
    - A line the csv module rejects (e.g. a broken quoted field) is skipped
      and reported; parsing continues with the next line.

    Args:
        text: Feed body
        delimiter: Cell delimiter (comma by default; use "\\t" for TSV exports)

    Returns:
        ParseResult with the recovered rows in input order
    """
    result = ParseResult()
    if not text or not text.strip():
        return result

    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")), delimiter=delimiter, strict=True)

    header: List[str] = []
    while not header:
        try:
            record = next(reader)
        except StopIteration:
            return result
        except csv.Error as e:
            result.errors.append(f"Unreadable header at line {reader.line_num}: {e}")
            return result
        if any(cell.strip() for cell in record):
            header = [cell.strip() for cell in record]

    result.header = header

    while True:
        try:
            record = next(reader)
        except StopIteration:
            break
        except csv.Error as e:
            result.errors.append(f"Malformed row at line {reader.line_num}: {e}")
            continue

        if not any(cell.strip() for cell in record):
            continue

        if len(record) > len(header):
            result.errors.append(
                f"Row at line {reader.line_num} has {len(record)} fields, expected {len(header)}"
            )
            record = record[: len(header)]

        result.rows.append({name: value for name, value in zip(header, record) if name})

    if result.errors:
        logger.debug(f"Parsed {len(result.rows)} rows with {len(result.errors)} errors")

    return result
