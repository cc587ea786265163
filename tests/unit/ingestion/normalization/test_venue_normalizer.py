"""
Unit tests for the venue_normalizer module.
"""

from citycal.ingestion.errors import QuarantineReason
from citycal.ingestion.normalization.venue_normalizer import (
    normalize_tag_rows,
    normalize_venue_row,
    split_aliases,
)


class TestNormalizeVenueRow:
    """Tests for normalize_venue_row."""

    def test_full_row(self):
        """A complete row should become a Venue."""
        outcome = normalize_venue_row(
            {
                "venue_id": "b-leza",
                "name": "B.Leza",
                "aliases": "Clube B.Leza | BLeza",
                "instagram_url": "https://www.instagram.com/clube_b.leza/",
                "tags": "Live Music, Jazz",
                "latitude": "38.706",
                "longitude": "-9.146",
            }
        )

        venue = outcome.venue
        assert outcome.ok
        assert venue.venue_id == "b-leza"
        assert venue.slug == "b-leza"
        assert venue.aliases == ["Clube B.Leza", "BLeza"]
        assert venue.instagram_handle == "clube_b.leza"
        assert venue.tags == ["live music", "jazz"]
        assert venue.coordinates.latitude == 38.706

    def test_legacy_columns(self):
        """venue_name/venue_address/lat/lng should map onto current columns."""
        venue = normalize_venue_row(
            {"venue_name": "Lux Frágil", "venue_address": "Av. Infante D. Henrique", "lat": "38.71", "lng": "-9.12"}
        ).venue

        assert venue.name == "Lux Frágil"
        assert venue.venue_id == "lux-fragil"
        assert venue.address == "Av. Infante D. Henrique"
        assert venue.coordinates is not None

    def test_id_only(self):
        """A row with only an id should use it as the name."""
        venue = normalize_venue_row({"venue_id": "v-1"}).venue

        assert venue.name == "v-1"

    def test_missing_id_and_name_quarantined(self):
        """Rows without venue_id and name should be quarantined."""
        outcome = normalize_venue_row({"city": "Lisboa"})

        assert outcome.venue is None
        assert outcome.quarantined.reason == QuarantineReason.MISSING_ID
        assert outcome.quarantined.feed_name == "venues"

    def test_out_of_range_coordinates_ignored(self):
        """Invalid coordinates should be dropped, not reject the row."""
        venue = normalize_venue_row({"name": "X", "latitude": "123", "longitude": "0"}).venue

        assert venue.coordinates is None

    def test_tag_allow_list(self):
        """Venue tags should be filtered by the allow-list canonical keys."""
        venue = normalize_venue_row(
            {"name": "X", "tags": "Rooftops, secret"}, allowed_tags=["rooftop"]
        ).venue

        assert venue.tags == ["rooftops"]


class TestHelpers:
    """Tests for split_aliases and normalize_tag_rows."""

    def test_split_aliases(self):
        """Aliases should be pipe-split, trimmed and de-duplicated."""
        assert split_aliases(" a | b ||a ") == ["a", "b"]
        assert split_aliases(None) == []

    def test_tag_rows(self):
        """Tag allow-list rows should be trimmed, lowercased and unique."""
        rows = [{"tag": " Jazz "}, {"tag": "jazz"}, {"tag": ""}, {"other": "x"}, {"tag": "Fado"}]

        assert normalize_tag_rows(rows) == ["jazz", "fado"]
