"""
Unit tests for geography -> macro-region mapping.
"""

import pytest

from carbonlens.domain.regions import (
    OTHER_REGION,
    UNKNOWN_REGION,
    map_geography_to_region,
    resolve_region,
)


class TestMapGeographyToRegion:
    """Tests for map_geography_to_region."""

    @pytest.mark.parametrize(
        "geography,region",
        [
            ("United States", "North America"),
            ("US", "North America"),
            ("Germany", "Europe"),
            ("UK", "Europe"),
            ("Japan", "Asia-Pacific"),
            ("Brazil", "Latin America"),
            ("South Africa", "Middle East & Africa"),
        ],
    )
    def test_known_geographies(self, geography, region):
        assert map_geography_to_region(geography) == region

    def test_case_and_whitespace_insensitive(self):
        assert map_geography_to_region("  united kingdom ") == "Europe"
        assert map_geography_to_region("canada") == "North America"

    @pytest.mark.parametrize("geography", [None, "", "   "])
    def test_missing_geography_is_unknown(self, geography):
        assert map_geography_to_region(geography) == UNKNOWN_REGION

    def test_unlisted_geography_is_other(self):
        assert map_geography_to_region("Atlantis") == OTHER_REGION


class TestResolveRegion:
    """Tests for resolve_region (region names pass through, countries are mapped)."""

    @pytest.mark.parametrize("region", ["Europe", "North America", OTHER_REGION, UNKNOWN_REGION])
    def test_region_names_pass_through(self, region):
        assert resolve_region(region) == region

    def test_country_is_mapped(self):
        assert resolve_region("France") == "Europe"
