"""Valuation request lifecycle."""

import logging
from typing import Optional

from ..api.client import ApiClient
from ..errors import LandValueError
from ..models.property import Position, Property, PropertyFeatures
from ..models.valuation import ValuationRequest, ValuationResult
from .builder import ValuationRequestBuilder

logger = logging.getLogger(__name__)


class ValuationSession:
    """Track the current valuation for one parcel form.

    ``result`` is cleared as soon as a new request starts and only set
    again by the newest request, so display code never shows an estimate
    for input the user has since changed.

    Example:
        session = ValuationSession(client, position)
        result = await session.estimate("1500", "residential")
        print(result.valuation.estimated_value)
    """

    def __init__(self, client: ApiClient, position: Position):
        self.client = client
        self.builder = ValuationRequestBuilder(position)
        self.result: Optional[ValuationResult] = None
        self.last_error: Optional[LandValueError] = None
        self.in_flight = False
        self._generation = 0

    @property
    def position(self) -> Position:
        return self.builder.position

    def set_position(self, position: Position) -> None:
        """Value a different parcel; any shown estimate is discarded."""
        self.builder = ValuationRequestBuilder(position)
        self.result = None

    async def estimate(
        self,
        area_text: str,
        zoning: Optional[str] = None,
        features: Optional[PropertyFeatures] = None,
    ) -> Optional[ValuationResult]:
        """Validate the form input and request a valuation.

        Returns:
            The ValuationResult, or None if a newer request superseded this one

        Raises:
            ValuationInputError: If the input is invalid (no request is sent)
            FetchError: If the backend call fails while this request is current
        """
        return await self._submit(lambda: self.builder.build(area_text, zoning, features))

    async def estimate_property(
        self,
        prop: Property,
        area_text: Optional[str] = None,
        zoning: Optional[str] = None,
        features: Optional[PropertyFeatures] = None,
    ) -> Optional[ValuationResult]:
        """Value an existing listing, pre-filled from its attributes."""
        self.set_position(prop.location)
        return await self._submit(
            lambda: ValuationRequestBuilder.build_for_property(prop, area_text, zoning, features)
        )

    async def _submit(self, build) -> Optional[ValuationResult]:
        self._generation += 1
        generation = self._generation
        self.result = None
        self.last_error = None

        try:
            request: ValuationRequest = build()
        except LandValueError as e:
            self.last_error = e
            self.in_flight = False
            raise

        self.in_flight = True
        try:
            result = await self.client.estimate_value(request)
        except LandValueError as e:
            if generation != self._generation:
                logger.debug(f"Ignoring error from superseded valuation {generation}: {e}")
                return None
            self.last_error = e
            self.in_flight = False
            raise

        if generation != self._generation:
            logger.debug(f"Discarding superseded valuation {generation}")
            return None

        self.in_flight = False
        self.result = result
        return result
