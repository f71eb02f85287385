"""Async client for the price lookup API, with latest-query-wins search state."""

import asyncio
import logging
from typing import Any, Optional

import httpx

from pricescanner.errors import PriceScannerError, ValidationError
from pricescanner.services.pipeline import validate_query

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = "No listings found"


class PriceScannerClient:
    """Calls ``GET /api/ebay`` on a running price scanner."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.transport = transport
        self.timeout = timeout

    async def lookup(
        self,
        query: str,
        marketplace: Optional[str] = None,
        condition: str = "all",
        mock: bool = False,
        **params: Any,
    ) -> dict:
        query = validate_query(query)
        request_params = {"q": query, "condition": condition}
        if marketplace:
            request_params["marketplace"] = marketplace
        if mock:
            request_params["mock"] = "true"
        for key, value in params.items():
            if value is None:
                continue
            request_params[key] = str(value).lower() if isinstance(value, bool) else value

        try:
            async with httpx.AsyncClient(base_url=self.base_url, transport=self.transport) as client:
                response = await client.get("/api/ebay", params=request_params, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.warning(f"Price lookup request failed: {e}")
            raise PriceScannerError(f"Price lookup request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {"error": response.text}
        if not isinstance(data, dict):
            data = {"error": "Unexpected response"}

        if response.status_code == 400:
            raise ValidationError(data.get("error", "Invalid request"))
        if response.status_code != 200:
            raise PriceScannerError(data.get("error", f"Request failed with status {response.status_code}"),
                                    data.get("details"))
        return data


class SearchSession:
    """User-visible search state where only the most recent query may land.

    Every ``search`` takes a new ticket. A response whose ticket is no longer
    the latest is dropped, so a slow earlier query can never overwrite a newer
    one. By default starting a search also cancels the one in flight.
    """

    def __init__(self, client: PriceScannerClient, marketplace: Optional[str] = None, cancel_previous: bool = True):
        self.client = client
        self.marketplace = marketplace
        self.cancel_previous = cancel_previous
        self.query: Optional[str] = None
        self.report: Optional[dict] = None
        self.error: Optional[str] = None
        self.loading = False
        self._ticket = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def ticket(self) -> int:
        return self._ticket

    def _is_current(self, ticket: int) -> bool:
        return ticket == self._ticket

    async def search(self, query: str, **params: Any) -> bool:
        """Run a search; returns True if its result was applied to the session."""
        query = validate_query(query)

        self._ticket += 1
        ticket = self._ticket
        if self.cancel_previous and self._task is not None and not self._task.done():
            self._task.cancel()

        self.query = query
        self.report = None
        self.error = None
        self.loading = True

        task = asyncio.ensure_future(self.client.lookup(query, marketplace=self.marketplace, **params))
        self._task = task
        try:
            data = await task
        except asyncio.CancelledError:
            if self._is_current(ticket):
                raise
            logger.debug(f"Search {query!r} superseded before completion")
            return False
        except PriceScannerError as e:
            if not self._is_current(ticket):
                return False
            self.error = e.message
            self.loading = False
            return True

        if not self._is_current(ticket):
            logger.debug(f"Dropping stale result for {query!r}")
            return False

        self.report = data
        if data.get("error"):
            self.error = data["error"]
        elif not data.get("listings"):
            self.error = NO_RESULTS_MESSAGE
        self.loading = False
        return True
