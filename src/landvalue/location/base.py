"""Abstract base class for device location providers.

A LocationProvider wraps whatever platform service can report the device
position (a mobile OS API, a desktop geolocation daemon, a fixed value from
configuration). GeoLocationGate drives providers through the permission
negotiation; providers only answer the individual questions.

Example usage:
    class MyProvider(LocationProvider):
        async def is_service_enabled(self):
            return True

        async def check_permission(self):
            return LocationPermission.WHILE_IN_USE

        async def request_permission(self):
            return LocationPermission.WHILE_IN_USE

        async def get_current_position(self):
            return Position(latitude=45.5, longitude=-73.6)
"""

from abc import ABC, abstractmethod
from enum import Enum

from ..models.property import Position


class LocationPermission(str, Enum):
    """Permission status reported by a location provider."""

    DENIED = "denied"
    DENIED_FOREVER = "deniedForever"
    WHILE_IN_USE = "whileInUse"
    ALWAYS = "always"
    UNABLE_TO_DETERMINE = "unableToDetermine"

    @property
    def is_granted(self) -> bool:
        return self in (LocationPermission.WHILE_IN_USE, LocationPermission.ALWAYS)


class LocationProvider(ABC):
    """Abstract base class for location providers.

    All methods are coroutines so providers backed by a platform channel or
    a network service can suspend without blocking the event loop.
    """

    @abstractmethod
    async def is_service_enabled(self) -> bool:
        """Return True if the device location service is switched on."""

    @abstractmethod
    async def check_permission(self) -> LocationPermission:
        """Return the current permission status without prompting."""

    @abstractmethod
    async def request_permission(self) -> LocationPermission:
        """Prompt the user for permission and return the outcome."""

    @abstractmethod
    async def get_current_position(self) -> Position:
        """Return the device's current position.

        Only called once permission has been granted.
        """


class StaticLocationProvider(LocationProvider):
    """Provider that reports a fixed, pre-configured position.

    Used where no device location service exists (CLI, servers, tests).
    Without a position the service is reported as disabled.

    Example:
        provider = StaticLocationProvider(Position(latitude=37.77, longitude=-122.42))
        gate = GeoLocationGate(provider)
        position = await gate.acquire()
    """

    def __init__(self, position: Position | None = None):
        self.position = position

    @classmethod
    def from_settings(cls, settings) -> "StaticLocationProvider":
        """Build a provider from LANDVALUE_LATITUDE / LANDVALUE_LONGITUDE."""
        if settings.latitude is None or settings.longitude is None:
            return cls(None)
        return cls(Position(latitude=settings.latitude, longitude=settings.longitude))

    async def is_service_enabled(self) -> bool:
        return self.position is not None

    async def check_permission(self) -> LocationPermission:
        return LocationPermission.WHILE_IN_USE

    async def request_permission(self) -> LocationPermission:
        return LocationPermission.WHILE_IN_USE

    async def get_current_position(self) -> Position:
        if self.position is None:
            raise RuntimeError("No position configured")
        return self.position
