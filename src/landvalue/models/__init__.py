"""Data models for landvalue."""

from landvalue.models.property import (
    GeocodedLocation,
    Position,
    Property,
    PropertyBatch,
    PropertyFeatures,
    SearchResult,
)
from landvalue.models.valuation import (
    ComparableProperty,
    LocationInfo,
    ValuationFactor,
    ValuationInfo,
    ValuationRequest,
    ValuationResult,
    Zoning,
)

__all__ = [
    "Position",
    "PropertyFeatures",
    "Property",
    "PropertyBatch",
    "GeocodedLocation",
    "SearchResult",
    "Zoning",
    "ValuationRequest",
    "LocationInfo",
    "ValuationFactor",
    "ValuationInfo",
    "ComparableProperty",
    "ValuationResult",
]
