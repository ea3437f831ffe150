"""Device position acquisition."""

from .base import LocationPermission, LocationProvider, StaticLocationProvider
from .gate import GateState, GeoLocationGate

__all__ = [
    "GateState",
    "GeoLocationGate",
    "LocationPermission",
    "LocationProvider",
    "StaticLocationProvider",
]
