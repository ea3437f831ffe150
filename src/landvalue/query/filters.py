"""Filtering and sorting of a fetched property collection.

apply_view is a pure function: it never mutates the collection or its
listings, and applying the same ViewSpec twice gives the same result as
applying it once.
"""

from collections.abc import Iterable
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models.property import Property

ALL_ZONING = "all"


class SortKey(str, Enum):
    """Fields a property list can be sorted by."""

    PRICE = "price"
    AREA = "area"
    PRICE_PER_SQ_FT = "pricePerSqFt"

    def value_of(self, prop: Property) -> Optional[float]:
        if self is SortKey.PRICE:
            return prop.price
        if self is SortKey.AREA:
            return prop.area
        return prop.price_per_sq_ft


class FeatureFlag(str, Enum):
    """Parcel amenities a view can require."""

    NEAR_WATER = "nearWater"
    ROAD_ACCESS = "roadAccess"
    UTILITIES = "utilities"

    def is_set(self, prop: Property) -> bool:
        if self is FeatureFlag.NEAR_WATER:
            return prop.features.near_water
        if self is FeatureFlag.ROAD_ACCESS:
            return prop.features.road_access
        return prop.features.utilities


class ValueRange(BaseModel):
    """Inclusive numeric range; a missing bound is unbounded."""

    low: Optional[float] = None
    high: Optional[float] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_order(self) -> "ValueRange":
        if self.low is not None and self.high is not None and self.low > self.high:
            raise ValueError(f"range low {self.low} exceeds high {self.high}")
        return self

    def contains(self, value: float) -> bool:
        if self.low is not None and value < self.low:
            return False
        if self.high is not None and value > self.high:
            return False
        return True


class ViewSpec(BaseModel):
    """Declarative description of how to present a property collection.

    Example:
        spec = ViewSpec(
            sort_key=SortKey.AREA,
            ascending=False,
            price_range=ValueRange(low=10000, high=250000),
            zoning="agricultural",
            features=frozenset({FeatureFlag.NEAR_WATER}),
        )
        visible = apply_view(collection, spec)
    """

    sort_key: SortKey = SortKey.PRICE
    ascending: bool = True
    price_range: ValueRange = Field(default_factory=ValueRange)
    area_range: ValueRange = Field(default_factory=ValueRange)
    zoning: Optional[str] = ALL_ZONING
    features: frozenset[FeatureFlag] = frozenset()

    model_config = ConfigDict(frozen=True)


def matches(prop: Property, spec: ViewSpec) -> bool:
    """Check whether a listing passes the view's filters."""
    if not spec.price_range.contains(prop.price):
        return False

    # Listings without an area are never excluded by the area range
    if prop.area is not None and not spec.area_range.contains(prop.area):
        return False

    if spec.zoning and spec.zoning.lower() != ALL_ZONING:
        if (prop.zoning or "").lower() != spec.zoning.lower():
            return False

    return all(flag.is_set(prop) for flag in spec.features)


def sort_properties(
    properties: Iterable[Property],
    key: SortKey,
    ascending: bool = True,
) -> list[Property]:
    """Stable sort on ``key`` with missing values last when ascending.

    Missing values go first when descending, so toggling the direction
    exactly reverses a list without ties or gaps. Ties keep input order.
    """
    present: list[Property] = []
    missing: list[Property] = []
    for prop in properties:
        (missing if key.value_of(prop) is None else present).append(prop)

    ordered = sorted(present, key=key.value_of, reverse=not ascending)
    return ordered + missing if ascending else missing + ordered


def apply_view(collection: Iterable[Property], spec: ViewSpec) -> list[Property]:
    """Filter then sort a collection according to ``spec``.

    Args:
        collection: Listings in fetch order
        spec: Filters and sort order to apply

    Returns:
        New list of the listings that pass, in display order
    """
    return sort_properties(
        (prop for prop in collection if matches(prop, spec)),
        spec.sort_key,
        spec.ascending,
    )
