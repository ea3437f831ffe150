"""Exception hierarchy for landvalue.

Every failure surfaced by the package derives from LandValueError. None of
them is fatal: each marks the terminal state of one operation and the
caller may simply try again.
"""

from typing import Optional


class LandValueError(Exception):
    """Base exception for all landvalue errors."""


# =============================================================================
# Location
# =============================================================================


class LocationError(LandValueError):
    """Base exception for position acquisition failures.

    Attributes:
        message: User-facing description
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class LocationServiceDisabledError(LocationError):
    """Raised when device location services are turned off."""

    def __init__(self) -> None:
        super().__init__("Location services are disabled.")


class LocationDeniedError(LocationError):
    """Raised when the user declines the permission prompt."""

    def __init__(self) -> None:
        super().__init__("Location permissions are denied.")


class LocationPermanentlyDeniedError(LocationError):
    """Raised when permission was denied and the platform will not ask again."""

    def __init__(self) -> None:
        super().__init__("Location permissions are permanently denied.")


class LocationPlatformError(LocationError):
    """Raised when the location provider fails unexpectedly."""

    def __init__(self, cause: str):
        self.cause = cause
        super().__init__(f"Error determining position: {cause}")


# =============================================================================
# Backend fetches
# =============================================================================


class FetchError(LandValueError):
    """Base exception for backend request failures.

    Attributes:
        endpoint: Backend path that was called (e.g. "/properties/nearby")
        message: Error description
    """

    def __init__(self, endpoint: str, message: str):
        self.endpoint = endpoint
        self.message = message
        super().__init__(f"[{endpoint}] {message}")


class TransportError(FetchError):
    """Raised on a non-2xx response or a network failure.

    Attributes:
        status: HTTP status code, or None when no response was received
        body: Response body, or the network error message
    """

    def __init__(self, endpoint: str, status: Optional[int], body: str):
        self.status = status
        self.body = body
        if status is None:
            message = f"Network error: {body}"
        else:
            message = f"HTTP {status}"
            if body:
                message += f": {body[:200]}"
        super().__init__(endpoint, message)


class UnrecognizedShapeError(FetchError):
    """Raised when no known envelope holds the property list."""

    def __init__(self, endpoint: str, payload_type: str, keys: Optional[list[str]] = None):
        self.payload_type = payload_type
        self.keys = keys or []
        message = f"Unrecognized response shape ({payload_type}"
        if self.keys:
            message += f" with keys {', '.join(self.keys)}"
        message += ")"
        super().__init__(endpoint, message)


class IncompleteValuationError(FetchError):
    """Raised when a valuation response lacks required sections."""

    def __init__(self, endpoint: str, missing: list[str]):
        self.missing = missing
        super().__init__(endpoint, f"Valuation response missing: {', '.join(missing)}")


class ParseFailureError(FetchError):
    """Raised when a response body cannot be decoded.

    Attributes:
        dropped_count: Records that were discarded before the failure
    """

    def __init__(self, endpoint: str, message: str, dropped_count: int = 0):
        self.dropped_count = dropped_count
        super().__init__(endpoint, message)


# =============================================================================
# Valuation input
# =============================================================================


class ValuationInputError(LandValueError):
    """Base exception for rejected valuation form input."""


class InvalidAreaError(ValuationInputError):
    """Raised when the entered area is not a positive, finite number."""

    def __init__(self, area_text: str):
        self.area_text = area_text
        super().__init__(f"Please enter a valid land area (got {area_text!r})")


class InvalidZoningError(ValuationInputError):
    """Raised when the zoning is not one the valuation endpoint accepts."""

    def __init__(self, zoning: str, allowed: list[str]):
        self.zoning = zoning
        self.allowed = allowed
        super().__init__(f"Unknown zoning {zoning!r}; expected one of {', '.join(allowed)}")
