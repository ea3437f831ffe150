"""Valuation request and result data models."""

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .property import Position, PropertyFeatures

_WIRE_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
    frozen=True,
)


class Zoning(str, Enum):
    """Zoning classes accepted by the valuation endpoint."""

    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    AGRICULTURAL = "agricultural"
    INDUSTRIAL = "industrial"


class ValuationRequest(BaseModel):
    """Validated input for ``POST /valuation/estimate``."""

    position: Position
    area: float = Field(..., gt=0, description="Parcel area in sq ft")
    zoning: Zoning = Zoning.RESIDENTIAL
    features: PropertyFeatures = Field(default_factory=PropertyFeatures)

    model_config = ConfigDict(frozen=True)

    def to_payload(self) -> dict[str, Any]:
        return {
            "lat": self.position.latitude,
            "lng": self.position.longitude,
            "area": self.area,
            "zoning": self.zoning.value,
            "features": self.features.to_payload(),
        }


class LocationInfo(BaseModel):
    """Where the valued parcel is, as resolved by the backend."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: str
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None

    model_config = _WIRE_CONFIG

    @property
    def position(self) -> Position:
        return Position(latitude=self.lat, longitude=self.lng)


class ValuationFactor(BaseModel):
    """A named adjustment applied by the valuation model, e.g. ``+12%``."""

    factor: str
    adjustment: str

    model_config = _WIRE_CONFIG

    @property
    def is_increase(self) -> bool:
        """Display hint only: True when the adjustment text contains '+'.

        The adjustment is free text, so "+0% (no change)" also counts as an
        increase. Do not treat this as a numeric sign.
        """
        return "+" in self.adjustment


class ValuationInfo(BaseModel):
    """The estimate itself plus the factors that shaped it."""

    estimated_value: int
    area_in_sq_ft: float
    avg_price_per_sq_ft: float
    zoning: str
    valuation_factors: list[ValuationFactor] = Field(default_factory=list)

    model_config = _WIRE_CONFIG

    @field_validator("estimated_value", mode="before")
    @classmethod
    def _round_estimate(cls, value: Any) -> Any:
        # Some backend versions emit the estimate as a float
        if isinstance(value, float):
            return round(value)
        return value

    @field_validator("valuation_factors", mode="before")
    @classmethod
    def _default_factors(cls, value: Any) -> Any:
        return [] if value is None else value


class ComparableProperty(BaseModel):
    """A nearby sale the estimate was compared against."""

    id: str = Field(..., validation_alias=AliasChoices("id", "_id"))
    address: str
    price: float
    area: float
    price_per_sq_ft: float
    features: PropertyFeatures = Field(default_factory=PropertyFeatures)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        coerce_numbers_to_str=True,
    )

    @field_validator("features", mode="before")
    @classmethod
    def _default_features(cls, value: Any) -> Any:
        return {} if value is None else value


class ValuationResult(BaseModel):
    """Full response of the valuation endpoint."""

    location: LocationInfo
    valuation: ValuationInfo
    comparables: list[ComparableProperty]

    model_config = ConfigDict(frozen=True)
