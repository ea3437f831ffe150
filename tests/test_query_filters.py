"""Tests for view filtering and sorting."""

import pytest
from pydantic import ValidationError

from landvalue.query.filters import (
    FeatureFlag,
    SortKey,
    ValueRange,
    ViewSpec,
    apply_view,
    matches,
    sort_properties,
)


def ids(properties):
    return [p.id for p in properties]


class TestFilters:
    """Test ViewSpec filters."""

    def test_default_view_keeps_everything(self, sample_properties):
        assert len(apply_view(sample_properties, ViewSpec())) == 5

    def test_price_range_is_inclusive(self, sample_properties):
        spec = ViewSpec(price_range=ValueRange(low=50000, high=300000))
        assert ids(apply_view(sample_properties, spec)) == ["d", "a", "c"]

    def test_missing_area_always_passes(self, sample_properties):
        spec = ViewSpec(area_range=ValueRange(low=5000))
        assert set(ids(apply_view(sample_properties, spec))) == {"b", "c", "e"}

    def test_zoning_is_case_insensitive(self, sample_properties):
        for zoning in ("residential", "RESIDENTIAL", "Residential"):
            spec = ViewSpec(zoning=zoning)
            assert ids(apply_view(sample_properties, spec)) == ["d", "a"]

    def test_all_zoning_disables_filter(self, sample_properties):
        assert len(apply_view(sample_properties, ViewSpec(zoning="All"))) == 5
        assert len(apply_view(sample_properties, ViewSpec(zoning=None))) == 5

    def test_unzoned_listing_excluded_by_zoning_filter(self, sample_properties):
        spec = ViewSpec(zoning="agricultural")
        assert ids(apply_view(sample_properties, spec)) == ["b"]

    def test_required_features(self, sample_properties):
        spec = ViewSpec(features=frozenset({FeatureFlag.NEAR_WATER}))
        assert ids(apply_view(sample_properties, spec)) == ["b", "e"]

        spec = ViewSpec(features=frozenset({FeatureFlag.ROAD_ACCESS, FeatureFlag.UTILITIES}))
        assert set(ids(apply_view(sample_properties, spec))) == {"a", "b", "e"}

    def test_matches_single_listing(self, make_property):
        prop = make_property("x", 100, area=50, zoning="industrial")
        assert matches(prop, ViewSpec(zoning="industrial"))
        assert not matches(prop, ViewSpec(price_range=ValueRange(high=99)))

    def test_inverted_range_rejected(self):
        with pytest.raises(ValidationError):
            ValueRange(low=10, high=5)


class TestSorting:
    """Test ordering of the visible list."""

    def test_price_ascending(self, sample_properties):
        assert ids(sort_properties(sample_properties, SortKey.PRICE)) == ["b", "d", "a", "c", "e"]

    def test_descending_reverses_without_ties(self, sample_properties):
        for key in (SortKey.PRICE, SortKey.AREA):
            ascending = ids(sort_properties(sample_properties, key, ascending=True))
            descending = ids(sort_properties(sample_properties, key, ascending=False))
            assert descending == list(reversed(ascending))

    def test_missing_values_last_ascending(self, sample_properties):
        assert ids(sort_properties(sample_properties, SortKey.AREA)) == ["d", "a", "c", "e", "b"]

    def test_missing_values_first_descending(self, sample_properties):
        result = sort_properties(sample_properties, SortKey.AREA, ascending=False)
        assert ids(result) == ["b", "e", "c", "a", "d"]

    def test_ties_keep_input_order(self, sample_properties):
        """a and c share a price per sq ft; a was fetched first."""
        ascending = ids(sort_properties(sample_properties, SortKey.PRICE_PER_SQ_FT))
        descending = ids(sort_properties(sample_properties, SortKey.PRICE_PER_SQ_FT, False))

        assert ascending == ["a", "c", "e", "d", "b"]
        assert descending == ["b", "d", "e", "a", "c"]

    def test_sort_key_wire_names(self):
        assert SortKey("pricePerSqFt") is SortKey.PRICE_PER_SQ_FT
        assert FeatureFlag("nearWater") is FeatureFlag.NEAR_WATER


class TestApplyView:
    """Test the combined filter and sort."""

    def test_idempotent(self, sample_properties):
        spec = ViewSpec(
            sort_key=SortKey.AREA,
            ascending=False,
            price_range=ValueRange(high=500000),
        )
        once = apply_view(sample_properties, spec)
        assert apply_view(once, spec) == once

    def test_does_not_mutate_collection(self, sample_properties):
        collection = tuple(sample_properties)
        apply_view(collection, ViewSpec(sort_key=SortKey.PRICE, ascending=False))
        assert ids(collection) == ["a", "b", "c", "d", "e"]

    def test_filter_then_sort(self, sample_properties):
        spec = ViewSpec(
            sort_key=SortKey.PRICE,
            ascending=False,
            features=frozenset({FeatureFlag.NEAR_WATER}),
        )
        assert ids(apply_view(sample_properties, spec)) == ["e", "b"]
