"""Shared fixtures: settings and a fake eBay served through httpx.MockTransport."""

import json
from urllib.parse import parse_qs

import httpx
import pytest

from pricescanner.api.ebay_auth import EbayAuth
from pricescanner.api.ebay_browse import EbayBrowseAPI
from pricescanner.config import Settings
from pricescanner.services.pipeline import PriceLookup


def make_settings(**overrides) -> Settings:
    values = {
        "ebay_app_id": "test-app-id",
        "ebay_cert_id": "test-cert-id",
        "ebay_environment": "production",
        "default_marketplace": "GB",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def browse_item(title, value, currency="USD", condition_id="3000", sold_date="2026-01-15T10:00:00.000Z", **extra):
    slug = title.lower().replace(" ", "-")
    item = {
        "itemId": f"v1|{slug}|0",
        "title": title,
        "price": {"value": str(value), "currency": currency},
        "conditionId": condition_id,
        "itemWebUrl": f"https://www.ebay.com/itm/{slug}",
    }
    if sold_date:
        item["lastSoldDate"] = sold_date
    item.update(extra)
    return item


class FakeEbay:
    """Minimal identity + Browse search endpoints recording every request."""

    def __init__(self, items=None, token_status=200, search_status=200, token_body=None, search_body=None):
        self.items = list(items or [])
        self.active_items = None
        self.token_status = token_status
        self.search_status = search_status
        self.token_body = token_body
        self.search_body = search_body
        self.token_requests: list[httpx.Request] = []
        self.search_requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/identity/v1/oauth2/token":
            self.token_requests.append(request)
            if self.token_status != 200:
                return httpx.Response(self.token_status, text=self.token_body or '{"error":"invalid_client"}')
            body = self.token_body or json.dumps({"access_token": "token-123", "expires_in": 7200})
            return httpx.Response(200, text=body)

        if request.url.path == "/buy/browse/v1/item_summary/search":
            self.search_requests.append(request)
            if self.search_status != 200:
                return httpx.Response(self.search_status, text=self.search_body or "upstream exploded")
            sold = "soldItemsOnly:true" in request.url.params.get("filter", "")
            items = self.items if sold or self.active_items is None else self.active_items
            return httpx.Response(200, json={"total": len(items), "itemSummaries": items})

        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def form_body(request: httpx.Request) -> dict:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def fake_ebay():
    return FakeEbay(
        items=[
            browse_item("Apple iPhone 12 64GB", "200.00", sold_date="2026-01-10T09:00:00.000Z"),
            browse_item("Apple iPhone 12 128GB", "300.00", sold_date="2026-01-10T18:00:00.000Z"),
            browse_item("iPhone 12 spares", "50.00", condition_id="7000", sold_date="2026-01-12T12:00:00.000Z"),
        ]
    )


@pytest.fixture
def lookup_factory():
    def factory(fake: FakeEbay, **overrides) -> PriceLookup:
        cfg = make_settings(**overrides)
        transport = fake.transport
        return PriceLookup(
            settings=cfg,
            auth=EbayAuth(settings=cfg, transport=transport),
            browse=EbayBrowseAPI(settings=cfg, transport=transport),
        )

    return factory
