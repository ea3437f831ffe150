"""Shape-tolerant decoding of backend responses.

The land-listing backend has returned its property list in several
envelopes over time. Rather than probing the payload with nested
conditionals, the list is located by a prioritized table of extraction
strategies: each takes the decoded JSON and returns the raw record list or
None, and the first match wins.

Records are then decoded one at a time. A record that fails validation is
dropped and counted; it never fails the whole response.
"""

import logging
from collections.abc import Callable
from typing import Any, Optional

from pydantic import ValidationError

from ..errors import IncompleteValuationError, ParseFailureError, UnrecognizedShapeError
from ..models.property import GeocodedLocation, Property, PropertyBatch, SearchResult
from ..models.valuation import ValuationResult

logger = logging.getLogger(__name__)

ExtractionStrategy = Callable[[Any], Optional[list]]

VALUATION_SECTIONS = ("location", "valuation", "comparables")


# =============================================================================
# List extraction strategies
# =============================================================================


def _bare_list(payload: Any) -> Optional[list]:
    return payload if isinstance(payload, list) else None


def _list_field(key: str) -> ExtractionStrategy:
    def strategy(payload: Any) -> Optional[list]:
        if isinstance(payload, dict) and isinstance(payload.get(key), list):
            return payload[key]
        return None

    strategy.__name__ = f"_{key}_field"
    return strategy


def _first_list_on_success(payload: Any) -> Optional[list]:
    # dicts keep the key order of the JSON document
    if isinstance(payload, dict) and payload.get("success") is True:
        for value in payload.values():
            if isinstance(value, list):
                return value
    return None


LIST_STRATEGIES: tuple[tuple[str, ExtractionStrategy], ...] = (
    ("array", _bare_list),
    ("data", _list_field("data")),
    ("properties", _list_field("properties")),
    ("success", _first_list_on_success),
)


def extract_records(payload: Any, endpoint: str = "") -> list:
    """Locate the raw property records inside a decoded response.

    Args:
        payload: Decoded JSON body
        endpoint: Backend path, for error messages

    Returns:
        The raw record list (not yet validated)

    Raises:
        UnrecognizedShapeError: If no strategy matches
    """
    for name, strategy in LIST_STRATEGIES:
        records = strategy(payload)
        if records is not None:
            logger.debug(f"{endpoint or 'payload'}: matched '{name}' shape ({len(records)} records)")
            return records

    keys = list(payload.keys()) if isinstance(payload, dict) else None
    raise UnrecognizedShapeError(endpoint, type(payload).__name__, keys)


# =============================================================================
# Entity decoding
# =============================================================================


def decode_property(record: Any) -> Property:
    """Decode one raw record into a Property.

    Raises:
        pydantic.ValidationError: If a required field is missing or malformed
    """
    return Property.model_validate(record)


def decode_properties(records: list) -> PropertyBatch:
    """Decode records independently, dropping failures and duplicate ids.

    Args:
        records: Raw records from extract_records

    Returns:
        PropertyBatch with the decoded listings (in input order) and the
        number of records that were dropped
    """
    properties: list[Property] = []
    seen: set[str] = set()
    dropped = 0

    for index, record in enumerate(records):
        try:
            prop = decode_property(record)
        except ValidationError as e:
            dropped += 1
            fields = ", ".join(
                ".".join(str(part) for part in err["loc"]) or "record"
                for err in e.errors()
            )
            logger.warning(f"Dropped property record #{index}: invalid {fields}")
            continue

        if prop.id in seen:
            dropped += 1
            logger.warning(f"Dropped duplicate property record #{index} (id {prop.id})")
            continue

        seen.add(prop.id)
        properties.append(prop)

    return PropertyBatch(properties=tuple(properties), dropped=dropped)


def normalize_property_list(payload: Any, endpoint: str = "") -> PropertyBatch:
    """Extract and decode a property list payload in one step."""
    return decode_properties(extract_records(payload, endpoint))


def normalize_search(payload: Any, query_text: str, endpoint: str = "") -> SearchResult:
    """Decode an address search response.

    A ``data`` object envelope is unwrapped once. The geocoded point is read
    from ``geocodedLocation`` or ``location``; when neither is present a
    degraded location at (0, 0) carrying the query text is substituted.

    Raises:
        UnrecognizedShapeError: If no property list can be found
        ParseFailureError: If the geocoded location is present but malformed
    """
    body = payload
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        body = body["data"]

    batch = normalize_property_list(body, endpoint)

    raw_location = None
    if isinstance(body, dict):
        raw_location = body.get("geocodedLocation") or body.get("location")

    degraded = raw_location is None
    if degraded:
        logger.warning(f"Search for {query_text!r} returned no geocoded location")
        location = GeocodedLocation(lat=0.0, lng=0.0, formatted_address=query_text)
    else:
        try:
            location = GeocodedLocation.model_validate(raw_location)
        except ValidationError as e:
            raise ParseFailureError(
                endpoint, f"Invalid geocoded location: {e.error_count()} error(s)", batch.dropped
            ) from e

    return SearchResult(
        location=location,
        properties=batch.properties,
        dropped=batch.dropped,
        degraded=degraded,
    )


def _valuation_body(payload: Any) -> Optional[dict]:
    """Return the dict holding the valuation sections, unwrapping once."""
    if not isinstance(payload, dict):
        return None
    if all(section in payload for section in VALUATION_SECTIONS):
        return payload
    inner = payload.get("data")
    if isinstance(inner, dict):
        return inner
    return payload


def normalize_valuation(payload: Any, endpoint: str = "") -> ValuationResult:
    """Decode a valuation response.

    Raises:
        IncompleteValuationError: If location, valuation or comparables is
            missing after unwrapping a success/data envelope once
        ParseFailureError: If the sections are present but malformed
    """
    body = _valuation_body(payload)
    if body is None:
        raise IncompleteValuationError(endpoint, list(VALUATION_SECTIONS))

    missing = [s for s in VALUATION_SECTIONS if body.get(s) is None]
    if missing:
        raise IncompleteValuationError(endpoint, missing)

    try:
        return ValuationResult.model_validate(body)
    except ValidationError as e:
        raise ParseFailureError(
            endpoint, f"Invalid valuation response: {e.error_count()} error(s)"
        ) from e
