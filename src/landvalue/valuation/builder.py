"""Validation of user-entered parcel attributes."""

import math
from typing import Optional

from ..errors import InvalidAreaError, InvalidZoningError
from ..models.property import Position, Property, PropertyFeatures
from ..models.valuation import ValuationRequest, Zoning


def parse_area(area_text: str) -> float:
    """Parse an area field into a positive, finite number of sq ft.

    Raises:
        InvalidAreaError: If the text is empty, not numeric, non-finite, or <= 0
    """
    try:
        area = float(str(area_text).strip())
    except ValueError:
        raise InvalidAreaError(area_text) from None
    if not math.isfinite(area) or area <= 0:
        raise InvalidAreaError(area_text)
    return area


def parse_zoning(zoning: Optional[str]) -> Zoning:
    """Resolve a zoning selector, defaulting to residential when unset.

    Raises:
        InvalidZoningError: If the value is not a known zoning class
    """
    if isinstance(zoning, Zoning):
        return zoning
    if zoning is None or not zoning.strip():
        return Zoning.RESIDENTIAL
    try:
        return Zoning(zoning.strip().lower())
    except ValueError:
        raise InvalidZoningError(zoning, [z.value for z in Zoning]) from None


class ValuationRequestBuilder:
    """Build validated valuation requests for a parcel position.

    The builder has no side effects; it only turns raw form input into a
    ValuationRequest or raises a ValuationInputError.

    Example:
        builder = ValuationRequestBuilder(position)
        request = builder.build("1500", "commercial", PropertyFeatures(near_water=True))
        result = await client.estimate_value(request)
    """

    def __init__(self, position: Position):
        self.position = position

    def build(
        self,
        area_text: str,
        zoning: Optional[str] = None,
        features: Optional[PropertyFeatures] = None,
    ) -> ValuationRequest:
        """Validate input and assemble a request.

        Args:
            area_text: Area as typed by the user, in sq ft
            zoning: Zoning class (residential when unset)
            features: Parcel amenities (backend defaults when unset)

        Raises:
            InvalidAreaError: If the area is not a positive, finite number
            InvalidZoningError: If the zoning is not a known class
        """
        return ValuationRequest(
            position=self.position,
            area=parse_area(area_text),
            zoning=parse_zoning(zoning),
            features=features or PropertyFeatures(),
        )

    @classmethod
    def build_for_property(
        cls,
        prop: Property,
        area_text: Optional[str] = None,
        zoning: Optional[str] = None,
        features: Optional[PropertyFeatures] = None,
    ) -> ValuationRequest:
        """Value an existing listing, pre-filling from its attributes.

        Explicit arguments win over the listing's own area, zoning and
        features.

        Raises:
            InvalidAreaError: If neither the argument nor the listing gives a valid area
            InvalidZoningError: If the resulting zoning is not a known class
        """
        if area_text is None:
            area_text = "" if prop.area is None else str(prop.area)
        return cls(prop.location).build(
            area_text,
            zoning if zoning is not None else prop.zoning,
            features if features is not None else prop.features,
        )
