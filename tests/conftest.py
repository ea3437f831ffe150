"""Pytest fixtures and test utilities."""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from landvalue.api.client import ApiClient
from landvalue.models.property import Position, Property, PropertyFeatures

BASE_URL = "http://test.local/api"


def _raw_record(
    record_id: str = "p1",
    price: Any = 50000,
    lng: float = -122.4,
    lat: float = 37.7,
    **fields: Any,
) -> dict[str, Any]:
    """Backend-style property record (Mongo ``_id``, GeoJSON coordinates)."""
    record = {
        "_id": record_id,
        "address": f"{record_id} Main St",
        "price": price,
        "location": {"type": "Point", "coordinates": [lng, lat]},
        "features": {},
    }
    record.update(fields)
    return record


def _make_property(
    prop_id: str,
    price: float,
    area: float | None = None,
    price_per_sq_ft: float | None = None,
    zoning: str | None = None,
    **features: bool,
) -> Property:
    """Property built directly, bypassing the wire format."""
    return Property(
        id=prop_id,
        location=Position(latitude=37.7, longitude=-122.4),
        address=f"{prop_id} Test Road",
        price=price,
        area=area,
        price_per_sq_ft=price_per_sq_ft,
        zoning=zoning,
        features=PropertyFeatures(**features),
    )


class RecordingHandler:
    """MockTransport handler returning queued responses and recording requests.

    Each queued item is either an httpx.Response, a JSON-serializable body
    (sent with status 200), or an exception instance to raise.
    """

    def __init__(self, *responses: Any):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, httpx.Response):
            return item
        return httpx.Response(200, json=item)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def last_json(self) -> Any:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest.fixture
def raw_record() -> Callable[..., dict[str, Any]]:
    """Factory for backend-style property records."""
    return _raw_record


@pytest.fixture
def make_property() -> Callable[..., Property]:
    """Factory for listings built directly, bypassing the wire format."""
    return _make_property


@pytest.fixture
def recording_handler() -> type[RecordingHandler]:
    """Factory for MockTransport handlers with queued responses."""
    return RecordingHandler


@pytest.fixture
def position() -> Position:
    """San Francisco."""
    return Position(latitude=37.7749, longitude=-122.4194)


@pytest.fixture
def make_client() -> Callable[[RecordingHandler], ApiClient]:
    """Factory for an ApiClient wired to a RecordingHandler."""

    def factory(handler: RecordingHandler) -> ApiClient:
        return ApiClient(BASE_URL, timeout=5.0, transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def sample_properties() -> list[Property]:
    """Mixed listings in fetch order."""
    return [
        _make_property("a", 120000, area=4000, price_per_sq_ft=30.0, zoning="residential"),
        _make_property("b", 45000, area=None, price_per_sq_ft=None, zoning="agricultural", near_water=True),
        _make_property("c", 300000, area=10000, price_per_sq_ft=30.0, zoning="commercial", utilities=False),
        _make_property("d", 80000, area=2000, price_per_sq_ft=40.0, zoning="Residential", road_access=False),
        _make_property("e", 950000, area=25000, price_per_sq_ft=38.0, zoning=None, near_water=True),
    ]


@pytest.fixture
def valuation_payload() -> dict[str, Any]:
    """Valuation response as the backend sends it."""
    return {
        "location": {
            "lat": 37.7749,
            "lng": -122.4194,
            "address": "1 Market St",
            "city": "San Francisco",
            "state": "CA",
            "zipCode": "94105",
        },
        "valuation": {
            "estimatedValue": 412500,
            "areaInSqFt": 1500,
            "avgPricePerSqFt": 275.0,
            "zoning": "residential",
            "valuationFactors": [
                {"factor": "Water proximity", "adjustment": "+12%"},
                {"factor": "No utilities", "adjustment": "-5%"},
            ],
        },
        "comparables": [
            {
                "id": "c1",
                "address": "3 Mission St",
                "price": 400000,
                "area": 1450,
                "pricePerSqFt": 275.86,
                "features": {"nearWater": True},
            }
        ],
    }
