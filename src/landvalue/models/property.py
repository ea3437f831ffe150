"""Position and property listing data models."""

from datetime import datetime, timezone
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

# price / area may drift from the backend's pricePerSqFt by this much before
# a listing is flagged as inconsistent
PRICE_PER_SQ_FT_TOLERANCE = 0.05


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Position(BaseModel):
    """A geographic point in decimal degrees."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    model_config = ConfigDict(frozen=True)

    @staticmethod
    def coordinates_to_dict(coordinates: Any) -> dict[str, Any]:
        """Convert a GeoJSON ``[longitude, latitude]`` pair to field values.

        Raises:
            ValueError: If the pair is missing, short, or not numeric
        """
        if not isinstance(coordinates, (list, tuple)) or len(coordinates) < 2:
            raise ValueError(f"expected [lng, lat] coordinates, got {coordinates!r}")
        lng, lat = coordinates[0], coordinates[1]
        for value in (lng, lat):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"coordinates must be numeric, got {coordinates!r}")
        return {"latitude": lat, "longitude": lng}


class PropertyFeatures(BaseModel):
    """Parcel amenities reported by the backend.

    Missing or null flags fall back to the backend's own defaults: not near
    water, with road access and utilities.
    """

    near_water: bool = False
    road_access: bool = True
    utilities: bool = True

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if data is None:
            return {}
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    def to_payload(self) -> dict[str, bool]:
        """Wire representation (camelCase keys)."""
        return self.model_dump(by_alias=True)


class Property(BaseModel):
    """Land listing returned by the backend.

    Decoded from the backend's JSON record in a single validating step:
    the ``_id`` key becomes ``id`` and the GeoJSON ``location.coordinates``
    pair becomes a ``Position``. Anything that cannot be decoded raises a
    pydantic ``ValidationError`` instead of producing a partial object.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
    )

    # Identification
    id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("_id", "id"),
        description="Backend-assigned identifier",
    )

    # Location
    location: Position = Field(..., description="Parcel position")
    address: str = Field(..., description="Street address")
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None

    # Pricing and size
    price: float = Field(..., ge=0, description="Asking price")
    area: float | None = Field(default=None, ge=0, description="Area in sq ft")
    price_per_sq_ft: float | None = Field(default=None, ge=0)

    zoning: str | None = None
    features: PropertyFeatures = Field(default_factory=PropertyFeatures)
    source_url: str | None = None
    images: list[str] | None = None
    last_updated: datetime = Field(
        default_factory=_utcnow,
        description="Last refresh on the backend (decode time when not reported)",
    )
    description: str | None = None

    # Extended fields from newer backends
    original_price: str | None = None
    original_area: str | None = None
    governorate: str | None = None
    neighborhood: str | None = None
    property_type: str | None = None
    source: str | None = None
    price_usd: float | None = Field(default=None, alias="priceUSD")
    area_in_sq_meters: float | None = None
    area_in_hectares: float | None = None

    @field_validator("location", mode="before")
    @classmethod
    def _parse_location(cls, value: Any) -> Any:
        if isinstance(value, dict) and "coordinates" in value:
            return Position.coordinates_to_dict(value["coordinates"])
        return value

    @field_validator("features", mode="before")
    @classmethod
    def _default_features(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("last_updated", mode="before")
    @classmethod
    def _default_last_updated(cls, value: Any) -> Any:
        return _utcnow() if value is None else value

    def has_consistent_price_per_sq_ft(self) -> bool | None:
        """Check the backend's price per sq ft against price / area.

        The backend is authoritative, so this only flags a mismatch.

        Returns:
            None when area or price per sq ft is missing, otherwise whether
            the two agree within PRICE_PER_SQ_FT_TOLERANCE.
        """
        if not self.area or self.price_per_sq_ft is None:
            return None
        computed = self.price / self.area
        if self.price_per_sq_ft == 0:
            return computed == 0
        deviation = abs(computed - self.price_per_sq_ft) / self.price_per_sq_ft
        return deviation <= PRICE_PER_SQ_FT_TOLERANCE


class PropertyBatch(BaseModel):
    """Normalized result of a listing fetch.

    Attributes:
        properties: Successfully decoded listings in fetch order, unique by id
        dropped: Number of raw records that were skipped
    """

    properties: tuple[Property, ...] = ()
    dropped: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    @property
    def is_empty(self) -> bool:
        return not self.properties


class GeocodedLocation(BaseModel):
    """Location resolved by the backend for an address search."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    formatted_address: str | None = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    @property
    def position(self) -> Position:
        return Position(latitude=self.lat, longitude=self.lng)


class SearchResult(BaseModel):
    """Address search outcome: the geocoded point and the listings around it.

    ``degraded`` is True when the backend omitted the geocoded location and
    a placeholder at (0, 0) carrying the query text was substituted.
    """

    location: GeocodedLocation
    properties: tuple[Property, ...] = ()
    dropped: int = Field(default=0, ge=0)
    degraded: bool = False

    model_config = ConfigDict(frozen=True)
