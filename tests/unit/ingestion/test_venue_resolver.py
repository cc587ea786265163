"""
Unit tests for the venue_resolver module.

Tests VenueIndex construction, each matching rule in order, the fallback key
and event-level resolution.
"""

import pytest

from citycal.ingestion.normalization.text import normalize_handle, slugify, strip_dots
from citycal.ingestion.venue_resolver import (
    MatchRule,
    VenueIndex,
    VenueResolver,
    fallback_venue_key,
    handle_from_instagram_url,
)
from citycal.schemas.venue import CanonicalVenueDescriptor, Venue


@pytest.fixture
def resolver(registry):
    """Resolver over the shared fixture registry."""
    return VenueResolver(VenueIndex.from_registry(registry))


class TestTextHelpers:
    """Tests for slug and handle normalization."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("B.Leza", "b-leza"),
            ("Lux Frágil", "lux-fragil"),
            ("  Galeria Zé dos Bois ", "galeria-ze-dos-bois"),
            ("--Rumu--", "rumu"),
            ("", ""),
        ],
    )
    def test_slugify(self, name, expected):
        """Slugs should be lowercase, diacritic-free and hyphen-separated."""
        assert slugify(name) == expected

    def test_handles(self):
        """Handles should be lowercased with '@' dropped; dots stripped in the variant."""
        assert normalize_handle(" @Rumu.Club ") == "rumu.club"
        assert strip_dots("rumu.club") == "rumuclub"

    def test_handle_from_instagram_url(self):
        """The handle should be read from a profile URL."""
        assert handle_from_instagram_url("https://instagram.com/Lux.Fragil?hl=en") == "lux.fragil"
        assert handle_from_instagram_url("https://example.com") is None
        assert handle_from_instagram_url(None) is None


class TestVenueResolverRules:
    """Tests for each matching rule, in order."""

    def test_usable_venue_id_used_directly(self, resolver):
        """A supplied venue_id should short-circuit matching."""
        resolution = resolver.resolve(venue_name="B.Leza", venue_id="custom-1")

        assert resolution.venue_key == "custom-1"
        assert resolution.rule == MatchRule.VENUE_ID

    @pytest.mark.parametrize("venue_id", ["", "  ", "unknown", "UNKNOWN"])
    def test_unusable_venue_id_ignored(self, resolver, venue_id):
        """Blank or 'unknown' venue ids should fall through to matching."""
        assert resolver.resolve(venue_name="B.Leza", venue_id=venue_id).venue_key == "b-leza"

    def test_exact_slug(self, resolver):
        """A name whose slug equals a key should match it."""
        resolution = resolver.resolve(venue_name="B.Leza")

        assert resolution.venue_key == "b-leza"
        assert resolution.rule == MatchRule.EXACT_SLUG
        assert resolution.venue_name == "B.Leza"

    def test_slug_prefix_rumu(self, resolver):
        """'Rumu' should match the 'rumuclub' key by prefix."""
        resolution = resolver.resolve(venue_name="Rumu")

        assert resolution.venue_key == "rumuclub"
        assert resolution.rule == MatchRule.SLUG_PREFIX

    def test_slug_prefix_needs_three_chars(self, resolver):
        """Two-character slugs should not prefix-match."""
        assert resolver.resolve(venue_name="Ru").rule == MatchRule.FALLBACK

    def test_prefix_first_match_wins(self, resolver):
        """With mutual prefixes the earlier registry entry should win."""
        assert resolver.resolve(venue_name="Tokyo").venue_key == "tokyo-lisboa"

    def test_exact_handle(self, resolver):
        """An exact handle should match."""
        resolution = resolver.resolve(venue_name="Some Night", source_handle="@luxfragil")

        assert resolution.venue_key == "lux-fragil"
        assert resolution.rule == MatchRule.HANDLE

    def test_dot_stripped_handle(self, resolver):
        """Dot-stripped handles should match when equal."""
        resolution = resolver.resolve(venue_name="Party", source_handle="tokyorooftop")

        assert resolution.venue_key == "tokyo-rooftop"
        assert resolution.rule == MatchRule.HANDLE_PREFIX

    def test_handle_prefix(self, resolver):
        """A 3+ char handle prefixing a registry handle should match."""
        resolution = resolver.resolve(venue_name="Party", source_handle="zedos")

        assert resolution.venue_key == "ze-dos-bois"

    def test_display_name_slug(self):
        """A registry name whose slug equals the name slug should match."""
        index = VenueIndex.from_registry(
            [CanonicalVenueDescriptor(key="zdb", name="Galeria Zé dos Bois", handle="")]
        )
        resolution = VenueResolver(index).resolve(venue_name="Galeria Ze dos Bois")

        assert resolution.venue_key == "zdb"
        assert resolution.rule == MatchRule.NAME_SLUG

    def test_alias(self):
        """A venue alias should match after the registry rules."""
        venues = [Venue(venue_id="v-lux", name="Lux Frágil", slug="lux-fragil", aliases=["Lux Club"])]
        resolution = VenueResolver(VenueIndex.build(venues)).resolve(venue_name="LUX club")

        assert resolution.venue_key == "v-lux"
        assert resolution.rule == MatchRule.ALIAS

    def test_determinism(self, resolver):
        """The same input should always resolve to the same key."""
        keys = {resolver.resolve(venue_name="Rumu", source_handle="rumu.club").venue_key for _ in range(20)}

        assert keys == {"rumuclub"}


class TestFallbackKey:
    """Tests for fallback_venue_key and unmatched resolution."""

    def test_name_only(self):
        """Unmatched names should collapse to a lowercase key."""
        assert fallback_venue_key("  Casa   Independente ") == "casa independente"

    def test_name_and_address(self):
        """Name and address should join with a pipe."""
        assert fallback_venue_key("Casa", "Largo  do Intendente 45") == "casa|largo do intendente 45"

    def test_address_only(self):
        """Address alone should be used when there is no name."""
        assert fallback_venue_key(None, "Rua X") == "rua x"

    def test_nothing(self):
        """No name and no address should give an empty key."""
        assert fallback_venue_key(None, None) == ""

    def test_unmatched_resolution(self, resolver):
        """An unmatched name should resolve to its fallback key."""
        resolution = resolver.resolve(venue_name="Casa Independente", venue_address="Largo do Intendente")

        assert resolution.venue_key == "casa independente|largo do intendente"
        assert resolution.rule == MatchRule.FALLBACK
        assert not resolution.resolved

    def test_no_venue_at_all(self, resolver):
        """No venue information should give an empty key."""
        resolution = resolver.resolve()

        assert resolution.venue_key == ""
        assert resolution.rule == MatchRule.NONE


class TestResolveEvent:
    """Tests for VenueResolver.resolve_event."""

    def test_sets_venue_key(self, resolver, create_event):
        """The copy should carry the resolved key."""
        event = create_event(venue_name="B.Leza", venue_key="")
        resolved = resolver.resolve_event(event)

        assert resolved.venue_key == "b-leza"
        assert event.venue_key == ""

    def test_backfills_blank_venue_name(self, resolver, create_event):
        """A matched venue should backfill a missing venue_name."""
        event = create_event(venue_name=None, venue_key="", source_name="@rumu.club")

        assert resolver.resolve_event(event).venue_name == "Rumu Club"

    def test_source_name_used_as_handle(self, resolver, create_event):
        """source_name should be used as the handle when present."""
        event = create_event(venue_name="Tonight", venue_key="", source_name="luxfragil")

        assert resolver.resolve_event(event).venue_key == "lux-fragil"

    def test_non_empty_key_when_name_supplied(self, resolver, create_event):
        """Any supplied venue name should give a non-empty key."""
        event = create_event(venue_name="!!!", venue_key="")

        assert resolver.resolve_event(event).venue_key == "!!!"

    def test_resolve_events_counts_unmatched(self, resolver, create_event):
        """resolve_events should keep input order and count events with no venue match."""
        events = [
            create_event(event_id="a", venue_name="B.Leza", venue_key=""),
            create_event(event_id="b", venue_name="Zzyzx Hall", venue_key=""),
            create_event(event_id="c", venue_name=None, venue_key=""),
            create_event(event_id="d", venue_name=None, venue_id="custom-venue", venue_key=""),
        ]

        resolved, unresolved = resolver.resolve_events(events)

        assert [e.venue_key for e in resolved] == ["b-leza", "zzyzx hall", "", "custom-venue"]
        assert unresolved == 2


class TestVenueIndex:
    """Tests for VenueIndex."""

    def test_build_from_venues(self):
        """Handles should come from instagram_handle or instagram_url."""
        venues = [
            Venue(venue_id="a", name="A", slug="a", instagram_url="https://instagram.com/aaa.bar"),
            Venue(venue_id="b", name="B", slug="b", instagram_handle="@BBB"),
        ]
        index = VenueIndex.build(venues)

        assert [e.handle for e in index.entries] == ["aaa.bar", "bbb"]
        assert "a" in index
        assert len(index) == 2
        assert index.by_id["b"].name == "B"

    def test_read_only(self, registry):
        """Index lookups should not be mutable."""
        index = VenueIndex.from_registry(registry)

        with pytest.raises(TypeError):
            index.by_key["x"] = None
