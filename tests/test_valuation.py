"""Tests for valuation input validation and the valuation session."""

import asyncio

import httpx
import pytest

from landvalue.api.normalizer import normalize_valuation
from landvalue.errors import (
    IncompleteValuationError,
    InvalidAreaError,
    InvalidZoningError,
    TransportError,
)
from landvalue.models.property import Position, PropertyFeatures
from landvalue.models.valuation import ValuationFactor, Zoning
from landvalue.valuation import ValuationRequestBuilder, ValuationSession, parse_area, parse_zoning


class GatedValuationClient:
    """Client stub whose valuations stay pending until the test resolves them."""

    def __init__(self):
        self.gates: list[asyncio.Future] = []

    async def estimate_value(self, request):
        gate = asyncio.get_running_loop().create_future()
        self.gates.append(gate)
        return await gate


class TestParseArea:
    """Test area field parsing."""

    @pytest.mark.parametrize("text,expected", [("1500", 1500.0), (" 2.5 ", 2.5), ("1e3", 1000.0)])
    def test_valid(self, text, expected):
        assert parse_area(text) == expected

    @pytest.mark.parametrize("text", ["", "   ", "0", "-10", "abc", "nan", "inf", "-inf", "1,500"])
    def test_invalid(self, text):
        with pytest.raises(InvalidAreaError):
            parse_area(text)


class TestParseZoning:
    """Test zoning selector parsing."""

    def test_default_is_residential(self):
        assert parse_zoning(None) is Zoning.RESIDENTIAL
        assert parse_zoning("  ") is Zoning.RESIDENTIAL

    def test_case_insensitive(self):
        assert parse_zoning("Commercial") is Zoning.COMMERCIAL

    def test_enum_passthrough(self):
        assert parse_zoning(Zoning.INDUSTRIAL) is Zoning.INDUSTRIAL

    def test_unknown(self):
        with pytest.raises(InvalidZoningError) as exc_info:
            parse_zoning("mixed-use")
        assert "agricultural" in exc_info.value.allowed


class TestValuationRequestBuilder:
    """Test request assembly."""

    def test_build(self, position):
        request = ValuationRequestBuilder(position).build(
            "1500", "agricultural", PropertyFeatures(near_water=True)
        )
        assert request.area == 1500.0
        assert request.zoning is Zoning.AGRICULTURAL
        assert request.to_payload() == {
            "lat": 37.7749,
            "lng": -122.4194,
            "area": 1500.0,
            "zoning": "agricultural",
            "features": {"nearWater": True, "roadAccess": True, "utilities": True},
        }

    def test_default_features(self, position):
        request = ValuationRequestBuilder(position).build("10")
        assert request.features == PropertyFeatures()
        assert request.zoning is Zoning.RESIDENTIAL

    def test_zero_area_rejected(self, position):
        with pytest.raises(InvalidAreaError):
            ValuationRequestBuilder(position).build("0")

    def test_build_for_property_prefills(self, make_property):
        prop = make_property("lot", 90000, area=43560, zoning="Agricultural", near_water=True)
        request = ValuationRequestBuilder.build_for_property(prop)

        assert request.position == prop.location
        assert request.area == 43560
        assert request.zoning is Zoning.AGRICULTURAL
        assert request.features.near_water is True

    def test_build_for_property_overrides(self, make_property):
        prop = make_property("lot", 90000, area=43560, zoning="agricultural")
        request = ValuationRequestBuilder.build_for_property(prop, "500", "commercial")

        assert request.area == 500
        assert request.zoning is Zoning.COMMERCIAL

    def test_build_for_property_without_area(self, make_property):
        prop = make_property("lot", 90000)
        with pytest.raises(InvalidAreaError):
            ValuationRequestBuilder.build_for_property(prop)


class TestValuationFactor:
    """Test factor display hints."""

    @pytest.mark.parametrize(
        "adjustment,increase",
        [("+12%", True), ("-5%", False), ("+0% (no change)", True), ("n/a", False)],
    )
    def test_is_increase(self, adjustment, increase):
        assert ValuationFactor(factor="x", adjustment=adjustment).is_increase is increase


class TestValuationSession:
    """Test the valuation request lifecycle."""

    @pytest.mark.asyncio
    async def test_estimate(self, make_client, position, valuation_payload, recording_handler):
        handler = recording_handler(valuation_payload)
        async with make_client(handler) as client:
            session = ValuationSession(client, position)
            result = await session.estimate("1500", "residential")

        assert result.valuation.estimated_value == 412500
        assert session.result is result
        assert session.in_flight is False
        assert session.last_error is None

    @pytest.mark.asyncio
    async def test_invalid_input_sends_nothing(self, make_client, position, recording_handler):
        handler = recording_handler()
        async with make_client(handler) as client:
            session = ValuationSession(client, position)
            with pytest.raises(InvalidAreaError):
                await session.estimate("abc")

        assert handler.calls == 0
        assert isinstance(session.last_error, InvalidAreaError)
        assert session.result is None

    @pytest.mark.asyncio
    async def test_new_request_clears_previous_result(
        self,
        make_client,
        position,
        valuation_payload,
        recording_handler,
    ):
        handler = recording_handler(valuation_payload, httpx.Response(500, text="model offline"))
        async with make_client(handler) as client:
            session = ValuationSession(client, position)
            await session.estimate("1500")
            with pytest.raises(TransportError):
                await session.estimate("2000")

        assert session.result is None
        assert isinstance(session.last_error, TransportError)
        assert session.in_flight is False

    @pytest.mark.asyncio
    async def test_incomplete_response(self, make_client, position, recording_handler):
        handler = recording_handler({"success": True, "data": {}})
        async with make_client(handler) as client:
            session = ValuationSession(client, position)
            with pytest.raises(IncompleteValuationError):
                await session.estimate("1500")

        assert session.result is None

    @pytest.mark.asyncio
    async def test_superseded_request_discarded(self, position, valuation_payload):
        client = GatedValuationClient()
        session = ValuationSession(client, position)
        first = asyncio.create_task(session.estimate("1000"))
        await asyncio.sleep(0)
        second = asyncio.create_task(session.estimate("2000"))
        await asyncio.sleep(0)

        newer = normalize_valuation(valuation_payload)
        client.gates[1].set_result(newer)
        assert (await second) is newer
        client.gates[0].set_result(normalize_valuation(valuation_payload))
        assert (await first) is None
        assert session.result is newer

    @pytest.mark.asyncio
    async def test_superseded_failure_discarded(self, position, valuation_payload):
        """A failure of an older request neither raises nor overwrites state."""
        client = GatedValuationClient()
        session = ValuationSession(client, position)
        first = asyncio.create_task(session.estimate("1000"))
        await asyncio.sleep(0)
        second = asyncio.create_task(session.estimate("2000"))
        await asyncio.sleep(0)

        newer = normalize_valuation(valuation_payload)
        client.gates[1].set_result(newer)
        await second
        client.gates[0].set_exception(TransportError("/valuation/estimate", 503, "busy"))

        assert (await first) is None
        assert session.result is newer
        assert session.last_error is None
        assert session.in_flight is False

    @pytest.mark.asyncio
    async def test_estimate_property_moves_position(
        self,
        make_client,
        position,
        valuation_payload,
        make_property,
        recording_handler,
    ):
        handler = recording_handler(valuation_payload)
        prop = make_property("lot", 90000, area=1200, zoning="industrial")
        async with make_client(handler) as client:
            session = ValuationSession(client, position)
            await session.estimate_property(prop)

        assert session.position == prop.location
        sent = handler.last_json()
        assert sent["area"] == 1200.0
        assert sent["zoning"] == "industrial"

    def test_set_position_discards_result(self, position):
        session = ValuationSession(client=None, position=position)
        session.result = object()
        session.set_position(Position(latitude=1, longitude=1))

        assert session.result is None
        assert session.position.latitude == 1
