"""Parcel valuation requests."""

from .builder import ValuationRequestBuilder, parse_area, parse_zoning
from .session import ValuationSession

__all__ = [
    "ValuationRequestBuilder",
    "ValuationSession",
    "parse_area",
    "parse_zoning",
]
