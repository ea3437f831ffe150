"""Search, filter and sort over fetched property collections."""

from .engine import PropertyQueryEngine, QueryTicket, clamp_radius
from .filters import (
    ALL_ZONING,
    FeatureFlag,
    SortKey,
    ValueRange,
    ViewSpec,
    apply_view,
    matches,
    sort_properties,
)

__all__ = [
    "ALL_ZONING",
    "FeatureFlag",
    "PropertyQueryEngine",
    "QueryTicket",
    "SortKey",
    "ValueRange",
    "ViewSpec",
    "apply_view",
    "clamp_radius",
    "matches",
    "sort_properties",
]
