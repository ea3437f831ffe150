"""Permission-gated position acquisition.

GeoLocationGate runs the startup sequence every location-aware screen
depends on: check the location service, check and if needed request
permission, then resolve the current position. Each terminal failure is
raised as a LocationError subclass; calling acquire() again restarts the
whole sequence, which is how a "Grant Permission" / "Retry" action works.
"""

import logging
from enum import Enum
from typing import Optional

from ..errors import (
    LocationDeniedError,
    LocationError,
    LocationPermanentlyDeniedError,
    LocationPlatformError,
    LocationServiceDisabledError,
)
from ..models.property import Position
from .base import LocationPermission, LocationProvider

logger = logging.getLogger(__name__)


class GateState(str, Enum):
    """States of the acquisition state machine."""

    IDLE = "idle"
    CHECKING_SERVICE = "checking_service"
    CHECKING_PERMISSION = "checking_permission"
    REQUESTING_PERMISSION = "requesting_permission"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    DENIED = "denied"
    SERVICE_DISABLED = "service_disabled"
    PERMANENTLY_DENIED = "permanently_denied"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset({
    GateState.RESOLVED,
    GateState.DENIED,
    GateState.SERVICE_DISABLED,
    GateState.PERMANENTLY_DENIED,
    GateState.FAILED,
})

# Permission statuses that allow prompting the user
_PROMPTABLE = frozenset({
    LocationPermission.DENIED,
    LocationPermission.UNABLE_TO_DETERMINE,
})


class GeoLocationGate:
    """Acquire the device position through permission negotiation.

    The gate keeps the state of the most recent run so a caller can show
    a loading or error screen, and records every transition in ``history``.

    Example:
        gate = GeoLocationGate(StaticLocationProvider.from_settings(config))
        try:
            position = await gate.acquire()
        except LocationError as e:
            print(e.message)  # e.g. "Location services are disabled."
    """

    def __init__(self, provider: LocationProvider):
        """Initialize the gate.

        Args:
            provider: Platform seam answering service/permission/position queries
        """
        self.provider = provider
        self.state = GateState.IDLE
        self.position: Optional[Position] = None
        self.error: Optional[LocationError] = None
        self.history: list[GateState] = [GateState.IDLE]

    def _enter(self, state: GateState) -> None:
        logger.debug(f"Location gate: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def _fail(self, state: GateState, error: LocationError) -> LocationError:
        self._enter(state)
        self.error = error
        logger.warning(f"Location unavailable: {error.message}")
        return error

    async def acquire(self) -> Position:
        """Run the state machine from IDLE to a terminal state.

        Returns:
            The resolved Position

        Raises:
            LocationServiceDisabledError: Location services are off
            LocationDeniedError: The user declined the permission prompt
            LocationPermanentlyDeniedError: Permission is denied for good
            LocationPlatformError: The provider failed unexpectedly
        """
        self.state = GateState.IDLE
        self.history = [GateState.IDLE]
        self.position = None
        self.error = None

        try:
            self._enter(GateState.CHECKING_SERVICE)
            if not await self.provider.is_service_enabled():
                raise self._fail(GateState.SERVICE_DISABLED, LocationServiceDisabledError())

            self._enter(GateState.CHECKING_PERMISSION)
            permission = await self.provider.check_permission()

            if permission in _PROMPTABLE:
                self._enter(GateState.REQUESTING_PERMISSION)
                permission = await self.provider.request_permission()
                if permission in _PROMPTABLE:
                    raise self._fail(GateState.DENIED, LocationDeniedError())

            if permission == LocationPermission.DENIED_FOREVER:
                raise self._fail(
                    GateState.PERMANENTLY_DENIED, LocationPermanentlyDeniedError()
                )

            self._enter(GateState.RESOLVING)
            position = await self.provider.get_current_position()

        except LocationError:
            raise
        except Exception as e:
            raise self._fail(GateState.FAILED, LocationPlatformError(str(e))) from e

        self.position = position
        self._enter(GateState.RESOLVED)
        logger.info(
            f"Resolved position {position.latitude:.5f}, {position.longitude:.5f}"
        )
        return position
