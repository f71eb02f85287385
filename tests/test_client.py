import asyncio

import httpx
import pytest

from pricescanner.client import NO_RESULTS_MESSAGE, PriceScannerClient, SearchSession
from pricescanner.errors import PriceScannerError, ValidationError


def api_payload(query, listings=1, error=None):
    payload = {
        "query": query,
        "listings": [{"title": query, "price": 10.0}] * listings,
        "stats": {"min": 10.0, "max": 10.0, "average": 10.0, "median": 10.0, "count": listings},
        "source": "mock",
    }
    if error:
        payload["error"] = error
    return payload


class SlowApi:
    """Answers each query once its gate is opened."""

    def __init__(self):
        self.gates: dict[str, asyncio.Event] = {}
        self.requests: list[httpx.Request] = []

    def gate(self, query) -> asyncio.Event:
        return self.gates.setdefault(query, asyncio.Event())

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        query = request.url.params["q"]
        await self.gate(query).wait()
        return httpx.Response(200, json=api_payload(query))


@pytest.mark.asyncio
async def test_lookup_sends_query_params():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=api_payload("ps5"))

    client = PriceScannerClient("http://scanner.test", transport=httpx.MockTransport(handler))
    data = await client.lookup("ps5", marketplace="US", mock=True, active=True)

    assert data["query"] == "ps5"
    params = seen[0].url.params
    assert seen[0].url.path == "/api/ebay"
    assert params["q"] == "ps5"
    assert params["marketplace"] == "US"
    assert params["mock"] == "true"
    assert params["active"] == "true"
    assert params["condition"] == "all"


@pytest.mark.asyncio
async def test_lookup_maps_error_statuses():
    def handler(request):
        if request.url.params["q"] == "bad":
            return httpx.Response(400, json={"error": 'Query parameter "q" is required'})
        return httpx.Response(502, json={"error": "eBay token request failed with status 401", "details": {"status": 401}})

    client = PriceScannerClient("http://scanner.test", transport=httpx.MockTransport(handler))
    with pytest.raises(ValidationError):
        await client.lookup("bad")
    with pytest.raises(PriceScannerError) as exc_info:
        await client.lookup("camera")
    assert exc_info.value.details == {"status": 401}


@pytest.mark.asyncio
async def test_blank_query_rejected_locally():
    def handler(request):
        raise AssertionError("no request expected")

    session = SearchSession(PriceScannerClient(transport=httpx.MockTransport(handler)))
    with pytest.raises(ValidationError):
        await session.search("   ")


@pytest.mark.asyncio
async def test_latest_query_wins_when_earlier_response_arrives_late():
    api = SlowApi()
    session = SearchSession(
        PriceScannerClient("http://scanner.test", transport=httpx.MockTransport(api.handler)),
        cancel_previous=False,
    )

    first = asyncio.ensure_future(session.search("query a"))
    await asyncio.sleep(0)
    second = asyncio.ensure_future(session.search("query b"))

    api.gate("query b").set()
    assert await second is True
    assert session.report["query"] == "query b"

    api.gate("query a").set()
    assert await first is False
    assert session.query == "query b"
    assert session.report["query"] == "query b"
    assert session.loading is False


@pytest.mark.asyncio
async def test_new_search_cancels_in_flight_one():
    api = SlowApi()
    session = SearchSession(PriceScannerClient("http://scanner.test", transport=httpx.MockTransport(api.handler)))

    first = asyncio.ensure_future(session.search("query a"))
    await asyncio.sleep(0)
    api.gate("query b").set()
    assert await session.search("query b") is True

    assert await first is False
    assert session.report["query"] == "query b"
    assert session.ticket == 2


@pytest.mark.asyncio
async def test_session_surfaces_non_fatal_messages():
    payloads = {
        "empty": api_payload("empty", listings=0),
        "failing": api_payload("failing", listings=0, error="Search request failed"),
    }

    def handler(request):
        return httpx.Response(200, json=payloads[request.url.params["q"]])

    session = SearchSession(PriceScannerClient(transport=httpx.MockTransport(handler)))
    await session.search("empty")
    assert session.error == NO_RESULTS_MESSAGE

    await session.search("failing")
    assert session.error == "Search request failed"


@pytest.mark.asyncio
async def test_session_records_request_errors():
    def handler(request):
        return httpx.Response(502, json={"error": "eBay token request failed with status 401"})

    session = SearchSession(PriceScannerClient(transport=httpx.MockTransport(handler)))
    assert await session.search("camera") is True
    assert session.error == "eBay token request failed with status 401"
    assert session.report is None
    assert session.loading is False


@pytest.mark.asyncio
async def test_transport_error_becomes_session_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    session = SearchSession(PriceScannerClient(transport=httpx.MockTransport(handler)))
    assert await session.search("camera") is True
    assert session.error.startswith("Price lookup request failed")
    assert session.loading is False
    assert session.report is None


@pytest.mark.asyncio
async def test_stale_transport_error_is_dropped():
    gate = asyncio.Event()

    async def handler(request):
        if request.url.params["q"] == "query a":
            await gate.wait()
            raise httpx.ReadTimeout("timed out", request=request)
        return httpx.Response(200, json=api_payload("query b"))

    session = SearchSession(
        PriceScannerClient("http://scanner.test", transport=httpx.MockTransport(handler)),
        cancel_previous=False,
    )
    first = asyncio.ensure_future(session.search("query a"))
    await asyncio.sleep(0)
    assert await session.search("query b") is True

    gate.set()
    assert await first is False
    assert session.error is None
    assert session.report["query"] == "query b"
