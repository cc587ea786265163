"""
Unit tests for the csv_parser module.

Tests for parse_rows and ParseResult.
"""

from citycal.ingestion.parsers import ParseResult, parse_rows


class TestParseRows:
    """Tests for parse_rows."""

    def test_header_keyed_rows_in_order(self):
        """Rows should be keyed by header names and keep input order."""
        text = "event_id,title\ne1,Jazz Night\ne2,Fado\n"
        result = parse_rows(text)

        assert result.header == ["event_id", "title"]
        assert result.rows == [
            {"event_id": "e1", "title": "Jazz Night"},
            {"event_id": "e2", "title": "Fado"},
        ]
        assert not result.has_errors

    def test_header_names_trimmed_and_bom_dropped(self):
        """Header cells should be trimmed and a leading BOM ignored."""
        result = parse_rows("\ufeff event_id , title \ne1,Jazz\n")

        assert result.header == ["event_id", "title"]
        assert result.rows[0]["event_id"] == "e1"

    def test_quoted_commas_and_newlines(self):
        """Quoted cells may contain delimiters and line breaks."""
        text = 'event_id,description_long\ne1,"Doors 21:30, show 22h\nBring ID"\n'
        result = parse_rows(text)

        assert result.total_rows == 1
        assert result.rows[0]["description_long"] == "Doors 21:30, show 22h\nBring ID"

    def test_blank_lines_skipped(self):
        """Empty lines and lines of empty cells should be skipped."""
        result = parse_rows("event_id,title\n\ne1,Jazz\n,\n")

        assert result.total_rows == 1

    def test_short_row_omits_missing_columns(self):
        """Missing trailing cells should be absent from the record."""
        result = parse_rows("event_id,title,status\ne1,Jazz\n")

        assert result.rows == [{"event_id": "e1", "title": "Jazz"}]
        assert not result.has_errors

    def test_long_row_truncated_and_reported(self):
        """Extra cells should be dropped and reported without losing the row."""
        result = parse_rows("event_id,title\ne1,Jazz,extra\ne2,Fado\n")

        assert result.total_rows == 2
        assert result.rows[0] == {"event_id": "e1", "title": "Jazz"}
        assert len(result.errors) == 1

    def test_empty_text(self):
        """Empty input should yield an empty result without errors."""
        result = parse_rows("")

        assert isinstance(result, ParseResult)
        assert result.rows == []
        assert result.errors == []

    def test_header_only(self):
        """A header with no rows should yield no rows."""
        result = parse_rows("event_id,title\n")

        assert result.header == ["event_id", "title"]
        assert result.rows == []

    def test_custom_delimiter(self):
        """Tab-separated exports should parse with delimiter='\\t'."""
        result = parse_rows("event_id\ttitle\ne1\tJazz\n", delimiter="\t")

        assert result.rows == [{"event_id": "e1", "title": "Jazz"}]
