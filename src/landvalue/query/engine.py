"""Stateful property query engine.

PropertyQueryEngine holds the last successfully fetched collection and the
current ViewSpec, and decides when to go back to the backend.

Every user-initiated fetch (refresh, radius change, address search) starts
a new query generation. Results are applied only if their generation is
still current, so a slow response or a pending empty-result retry from an
older query can never overwrite newer state. Starting a new query, or
calling cancel(), cancels the previous query's pending retry wait; a
request that is already in flight is left to finish and its result is
discarded.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from ..api.client import ApiClient
from ..config import Settings, config
from ..errors import FetchError
from ..models.property import Position, Property, PropertyBatch, SearchResult
from .filters import SortKey, ViewSpec, apply_view

logger = logging.getLogger(__name__)


def clamp_radius(radius: float, settings: Optional[Settings] = None) -> float:
    """Clamp a requested radius to the allowed range (1-10 km by default)."""
    settings = settings or config
    return max(settings.min_radius, min(settings.max_radius, radius))


@dataclass
class QueryTicket:
    """Identity of one logical query."""

    generation: int
    cancelled: asyncio.Event = field(default_factory=asyncio.Event)


class PropertyQueryEngine:
    """Hold the current property collection and derive the visible list.

    Example:
        engine = PropertyQueryEngine(client, position)
        await engine.refresh()
        engine.view = ViewSpec(sort_key=SortKey.AREA, ascending=False)
        for prop in engine.visible():
            print(prop.address)

        await engine.adjust_radius(clamp_radius(8000))
    """

    def __init__(
        self,
        client: ApiClient,
        position: Position,
        radius: Optional[float] = None,
        limit: Optional[int] = None,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        settings: Optional[Settings] = None,
    ):
        """Initialize the engine.

        Args:
            client: Backend client used for fetches
            position: Initial search center
            radius: Search radius in meters (defaults to settings.default_radius)
            limit: Listings per fetch (defaults to settings.default_limit)
            max_attempts: Fetch attempts per query while results are empty
            retry_delay: Seconds between empty-result attempts
            settings: Settings instance (defaults to the module singleton)
        """
        settings = settings or config
        self.client = client
        self.position = position
        self.radius = radius if radius is not None else settings.default_radius
        self.limit = limit if limit is not None else settings.default_limit
        self.max_attempts = max_attempts if max_attempts is not None else settings.max_fetch_attempts
        self.retry_delay = retry_delay if retry_delay is not None else settings.retry_delay

        self.collection: tuple[Property, ...] = ()
        self.dropped = 0
        self.view = ViewSpec()
        self.last_error: Optional[FetchError] = None
        self.attempts = 0

        self._generation = 0
        self._ticket: Optional[QueryTicket] = None

    # =========================================================================
    # Query generations
    # =========================================================================

    @property
    def generation(self) -> int:
        """Generation of the most recently started query."""
        return self._generation

    def _start_query(self) -> QueryTicket:
        if self._ticket is not None:
            self._ticket.cancelled.set()
        self._generation += 1
        self._ticket = QueryTicket(self._generation)
        return self._ticket

    def _is_current(self, ticket: QueryTicket) -> bool:
        return ticket is self._ticket and not ticket.cancelled.is_set()

    def cancel(self) -> None:
        """Abandon the current query.

        A pending retry wait is cancelled; an in-flight request completes
        but its result is discarded.
        """
        if self._ticket is not None:
            logger.debug(f"Cancelled query {self._ticket.generation}")
            self._ticket.cancelled.set()
            self._ticket = None

    async def _wait(self, ticket: QueryTicket, delay: float) -> bool:
        """Sleep for ``delay`` seconds unless the query is cancelled first.

        Returns:
            True if the full delay elapsed, False if the query was cancelled
        """
        try:
            await asyncio.wait_for(ticket.cancelled.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return True
        return False

    def _replace(self, properties: tuple[Property, ...], dropped: int) -> None:
        self.collection = properties
        self.dropped = dropped
        self.last_error = None

    # =========================================================================
    # Fetching
    # =========================================================================

    async def refresh(self) -> Optional[PropertyBatch]:
        """Fetch listings around the current position and radius.

        An empty result is retried after ``retry_delay`` seconds, up to
        ``max_attempts`` attempts in total; once the cap is reached the
        empty result is accepted. Transport and shape errors are raised
        immediately and leave the held collection untouched.

        Returns:
            The applied PropertyBatch, or None if the query was superseded
            or cancelled before it settled

        Raises:
            FetchError: If the fetch fails while this query is still current
        """
        ticket = self._start_query()
        position, radius, limit = self.position, self.radius, self.limit
        attempt = 0

        while True:
            attempt += 1
            try:
                batch = await self.client.fetch_nearby(position, radius=radius, limit=limit)
            except FetchError as e:
                if not self._is_current(ticket):
                    logger.debug(f"Ignoring error from stale query {ticket.generation}: {e}")
                    return None
                self.last_error = e
                self.attempts = attempt
                raise

            if not self._is_current(ticket):
                logger.debug(f"Discarding result of stale query {ticket.generation}")
                return None

            if not batch.is_empty or attempt >= self.max_attempts:
                break

            logger.info(
                f"No properties found, retrying in {self.retry_delay:g}s "
                f"(attempt {attempt + 1}/{self.max_attempts})"
            )
            if not await self._wait(ticket, self.retry_delay):
                logger.debug(f"Retry for query {ticket.generation} cancelled")
                return None

        self.attempts = attempt
        self._replace(batch.properties, batch.dropped)
        if batch.is_empty:
            logger.info(f"No properties found after {attempt} attempts")
        return batch

    async def adjust_radius(self, radius: float) -> Optional[PropertyBatch]:
        """Change the search radius and refetch.

        The held collection is replaced by the new fetch, never filtered
        locally: a different radius means a different candidate set on the
        server. The radius is used as given; clamp it with clamp_radius.
        """
        self.radius = radius
        return await self.refresh()

    async def search(self, query_text: str) -> Optional[SearchResult]:
        """Search by address and move the engine to the geocoded location.

        When the backend omits the geocoded location the listings are still
        applied but the current position is kept. Blank query text is
        ignored: nothing is sent and the current query is left running.

        Returns:
            The applied SearchResult, or None if the text is blank or the
            search was superseded or cancelled

        Raises:
            FetchError: If the search fails while this query is still current
        """
        if not query_text.strip():
            return None

        ticket = self._start_query()
        try:
            result = await self.client.search_properties(query_text)
        except FetchError as e:
            if not self._is_current(ticket):
                return None
            self.last_error = e
            raise

        if not self._is_current(ticket):
            logger.debug(f"Discarding result of stale search {ticket.generation}")
            return None

        if not result.degraded:
            self.position = result.location.position
        self.attempts = 1
        self._replace(result.properties, result.dropped)
        return result

    async def scrape_and_refresh(
        self,
        location: Optional[str] = None,
        delay: float = 10.0,
    ) -> tuple[dict[str, Any], Optional[PropertyBatch]]:
        """Trigger a backend scrape, then refresh once it has had time to run.

        Args:
            location: Free-text location to scrape (defaults to "lat,lng")
            delay: Seconds to wait before refreshing

        Returns:
            The scrape acknowledgement and the refreshed batch (None if a
            newer query started or the engine was cancelled during the wait)
        """
        location = location or f"{self.position.latitude},{self.position.longitude}"
        ack = await self.client.scrape_listings(location)

        ticket = self._start_query()
        if not await self._wait(ticket, delay) or not self._is_current(ticket):
            return ack, None
        return ack, await self.refresh()

    def set_position(self, position: Position) -> None:
        """Move the search center (e.g. a map tap) without fetching."""
        self.position = position

    # =========================================================================
    # View
    # =========================================================================

    def visible(self) -> list[Property]:
        """Listings that pass the current view, in display order."""
        return apply_view(self.collection, self.view)

    def sort_by(self, key: SortKey, ascending: Optional[bool] = None) -> None:
        update: dict[str, Any] = {"sort_key": key}
        if ascending is not None:
            update["ascending"] = ascending
        self.view = self.view.model_copy(update=update)

    def toggle_sort_direction(self) -> None:
        self.view = self.view.model_copy(update={"ascending": not self.view.ascending})

    def reset_view(self) -> None:
        """Clear all filters and restore the default sort."""
        self.view = ViewSpec()
