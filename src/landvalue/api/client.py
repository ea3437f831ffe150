"""HTTP client for the land-listing backend.

ApiClient is a request/response mapper: it issues the call, turns transport
failures into TransportError, and hands the decoded body to the normalizer.
It never retries on its own; the empty-result retry policy belongs to the
query engine, which knows whether a newer query has superseded the old one.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ..config import Settings, config
from ..errors import FetchError, ParseFailureError, TransportError
from ..models.property import Position, PropertyBatch, SearchResult
from ..models.valuation import ValuationRequest, ValuationResult
from .normalizer import normalize_property_list, normalize_search, normalize_valuation

logger = logging.getLogger(__name__)

NEARBY_PATH = "/properties/nearby"
SEARCH_PATH = "/properties/search"
VALUATION_PATH = "/valuation/estimate"
SCRAPE_PATH = "/scrape/listings"
HEALTH_PATH = "/health"


@dataclass
class EndpointStatus:
    """Outcome of probing one backend endpoint."""

    endpoint: str
    status: int | None
    ok: bool
    detail: str = ""


class ApiClient:
    """Async client for the land-listing backend.

    Example:
        async with ApiClient("http://localhost:5000/api") as client:
            batch = await client.fetch_nearby(position, radius=5000)
            for prop in batch.properties:
                print(prop.address, prop.price)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        settings: Optional[Settings] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Backend base URL (defaults to settings.api_base_url)
            timeout: Request timeout in seconds (defaults to settings.request_timeout)
            transport: Custom httpx transport, e.g. httpx.MockTransport in tests
            settings: Settings instance (defaults to the module singleton)
        """
        settings = settings or config
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request and map transport failures to TransportError.

        Raises:
            TransportError: On a non-2xx status or a network failure
        """
        client = await self._get_client()
        url = f"{self.base_url}{path}"

        try:
            response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise TransportError(path, None, str(e) or type(e).__name__) from e

        if not response.is_success:
            logger.warning(f"{method} {path} returned {response.status_code}")
            raise TransportError(path, response.status_code, response.text)

        return response

    async def _request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and decode the JSON body.

        Raises:
            TransportError: On a non-2xx status or a network failure
            ParseFailureError: If the body is not valid JSON
        """
        response = await self._request(method, path, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise ParseFailureError(path, f"Response is not JSON: {e}") from e

    async def fetch_nearby(
        self,
        position: Position,
        radius: float = 5000,
        limit: int = 20,
    ) -> PropertyBatch:
        """Fetch listings within ``radius`` meters of ``position``.

        Args:
            position: Search center
            radius: Search radius in meters
            limit: Maximum number of listings to request

        Returns:
            PropertyBatch; records that failed validation are counted in
            ``dropped`` rather than raised

        Raises:
            TransportError: On a non-2xx status or a network failure
            UnrecognizedShapeError: If the property list cannot be located
            ParseFailureError: If the body is not valid JSON
        """
        params = {
            "lat": position.latitude,
            "lng": position.longitude,
            "radius": radius,
            "limit": limit,
        }
        payload = await self._request_json("GET", NEARBY_PATH, params=params)
        batch = normalize_property_list(payload, NEARBY_PATH)

        logger.info(
            f"Fetched {len(batch.properties)} properties near "
            f"{position.latitude:.5f}, {position.longitude:.5f} (radius {radius:.0f}m)"
        )
        if batch.dropped:
            logger.warning(f"Dropped {batch.dropped} unreadable property records")
        return batch

    async def search_properties(self, query_text: str) -> SearchResult:
        """Geocode an address and fetch the listings around it.

        A response without a geocoded location still succeeds: the result
        is marked ``degraded`` and centered on (0, 0).

        Raises:
            TransportError: On a non-2xx status or a network failure
            UnrecognizedShapeError: If the property list cannot be located
            ParseFailureError: If the body or geocoded location is malformed
        """
        payload = await self._request_json("GET", SEARCH_PATH, params={"address": query_text})
        result = normalize_search(payload, query_text, SEARCH_PATH)
        logger.info(f"Search {query_text!r} returned {len(result.properties)} properties")
        return result

    async def estimate_value(self, request: ValuationRequest) -> ValuationResult:
        """Request a valuation for a parcel.

        Raises:
            TransportError: On a non-2xx status or a network failure
            IncompleteValuationError: If a required section is missing
            ParseFailureError: If the body is malformed
        """
        payload = await self._request_json("POST", VALUATION_PATH, json=request.to_payload())
        result = normalize_valuation(payload, VALUATION_PATH)
        logger.info(
            f"Estimated {result.valuation.estimated_value:,} for "
            f"{request.area:,.0f} sq ft ({request.zoning.value})"
        )
        return result

    async def scrape_listings(self, location: str) -> dict[str, Any]:
        """Ask the backend to scrape new listings for a location.

        The acknowledgement is returned as-is; scraping runs in the
        background on the server.

        Raises:
            TransportError: On a non-2xx status or a network failure
            ParseFailureError: If the body is not valid JSON
        """
        payload = await self._request_json("POST", SCRAPE_PATH, json={"location": location})
        logger.info(f"Scrape requested for {location!r}")
        if isinstance(payload, dict):
            return payload
        return {"result": payload}

    async def check_endpoints(self, sample: Optional[Position] = None) -> dict[str, EndpointStatus]:
        """Call each backend endpoint once and report what came back.

        Failures are reported, not raised, so one broken endpoint does not
        hide the state of the others.

        Args:
            sample: Position used for the nearby and valuation checks
        """
        sample = sample or Position(latitude=37.7749, longitude=-122.4194)
        checks = {
            "nearby": lambda: self.fetch_nearby(sample, radius=5000, limit=10),
            "search": lambda: self.search_properties("San Francisco, CA"),
            "valuation": lambda: self.estimate_value(
                ValuationRequest(position=sample, area=10000)
            ),
            "health": lambda: self._request_json("GET", HEALTH_PATH),
        }

        results: dict[str, EndpointStatus] = {}
        for name, call in checks.items():
            try:
                outcome = await call()
            except TransportError as e:
                results[name] = EndpointStatus(name, e.status, False, e.message)
            except FetchError as e:
                results[name] = EndpointStatus(name, None, False, e.message)
            else:
                detail = ""
                if isinstance(outcome, PropertyBatch):
                    detail = f"{len(outcome.properties)} properties"
                elif isinstance(outcome, SearchResult):
                    detail = f"{len(outcome.properties)} properties"
                elif isinstance(outcome, ValuationResult):
                    detail = f"estimate {outcome.valuation.estimated_value:,}"
                results[name] = EndpointStatus(name, None, True, detail)
        return results
