"""eBay Browse API client for fetching sold and active listings."""

import logging
import re
from typing import Any, Optional

import httpx

from pricescanner.config import Settings, settings as default_settings
from pricescanner.errors import UpstreamSearchError, excerpt
from pricescanner.marketplaces import resolve_marketplace
from pricescanner.models.report import SOURCE_LIVE, SOURCE_MOCK, FetchResult

logger = logging.getLogger(__name__)

SEARCH_PATH = "/buy/browse/v1/item_summary/search"
MAX_LIMIT = 200

SEARCH_FAILED_MESSAGE = "Search request failed"

_CONDITION_SPLIT = re.compile(r"[|,\s]+")


def parse_condition_filter(condition: Optional[str]) -> list[str]:
    """Numeric condition ids from a filter value; "all" (or nothing usable) gives []."""
    value = (condition or "all").strip()
    if not value or value.lower() == "all":
        return []
    codes = []
    for part in _CONDITION_SPLIT.split(value):
        if not part:
            continue
        if part.isdigit():
            codes.append(part)
        else:
            logger.warning(f"Ignoring non-numeric condition filter value {part!r}")
    return codes


def build_filter(condition: Optional[str], sold: bool = True) -> str:
    """Browse filter expression for buying option, sold-only and condition."""
    parts = ["buyingOptions:{FIXED_PRICE}"]
    if sold:
        parts.append("soldItemsOnly:true")
    codes = parse_condition_filter(condition)
    if codes:
        parts.append(f"conditionIds:{{{'|'.join(codes)}}}")
    return ",".join(parts)


def mock_items(query: str, currency: str, sold: bool = True) -> list[dict[str, Any]]:
    """Three fixed item summaries, shaped like Browse results."""
    items = [
        {
            "itemId": "v1|mock-1|0",
            "title": f"Test Product: {query}",
            "price": {"value": "25.99", "currency": currency},
            "condition": "Used",
            "conditionId": "3000",
            "itemWebUrl": "https://www.ebay.com/itm/test",
            "lastSoldDate": "2026-01-15T12:00:00.000Z",
        },
        {
            "itemId": "v1|mock-2|0",
            "title": f"Another {query} - Used",
            "price": {"value": "32.50", "currency": currency},
            "condition": "Used - Good",
            "conditionId": "3002",
            "itemWebUrl": "https://www.ebay.com/itm/test2",
            "lastSoldDate": "2026-01-10T12:00:00.000Z",
        },
        {
            "itemId": "v1|mock-3|0",
            "title": f"{query} - Brand New",
            "price": {"value": "45.00", "currency": currency},
            "condition": "New",
            "conditionId": "1000",
            "itemWebUrl": "https://www.ebay.com/itm/test3",
            "lastSoldDate": "2026-01-05T12:00:00.000Z",
        },
    ]
    if not sold:
        for item in items:
            del item["lastSoldDate"]
    return items


class EbayBrowseAPI:
    """Client for the eBay Browse item search."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or default_settings
        self.transport = transport

    @property
    def search_url(self) -> str:
        return f"{self.settings.ebay_api_base_url}{SEARCH_PATH}"

    def build_params(
        self,
        query: str,
        condition: Optional[str] = "all",
        sold: bool = True,
        limit: Optional[int] = None,
    ) -> dict:
        limit = self.settings.search_limit if limit is None else limit
        return {
            "q": query,
            "filter": build_filter(condition, sold=sold),
            "limit": max(1, min(int(limit), MAX_LIMIT)),
        }

    async def search(
        self,
        query: str,
        marketplace_code: Optional[str],
        condition: Optional[str],
        token: str,
        sold: bool = True,
        limit: Optional[int] = None,
    ) -> dict:
        """
        Run one item summary search.

        Args:
            query: Free-text search
            marketplace_code: Short region code (US, GB, ...)
            condition: "all" or condition id(s)
            token: Bearer token
            sold: Restrict to sold items
            limit: Page size (defaults to settings.search_limit)

        Returns:
            Raw API response

        Raises:
            UpstreamSearchError: non-200 response or transport failure
        """
        marketplace = resolve_marketplace(marketplace_code, self.settings.default_marketplace)
        headers = {
            "Authorization": f"Bearer {token}",
            "X-EBAY-C-MARKETPLACE-ID": marketplace.ebay_id,
            "Content-Type": "application/json",
        }
        params = self.build_params(query, condition, sold=sold, limit=limit)

        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.get(
                    self.search_url,
                    headers=headers,
                    params=params,
                    timeout=self.settings.http_timeout_seconds,
                )
        except httpx.HTTPError as e:
            logger.error(f"Browse API transport error: {e}")
            raise UpstreamSearchError(f"Browse API request failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"Browse API error: {response.status_code} - {excerpt(response.text)}")
            raise UpstreamSearchError(
                f"Browse API returned status {response.status_code}",
                upstream_status=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamSearchError("Browse API returned invalid JSON", response.status_code, response.text) from e
        if not isinstance(data, dict):
            raise UpstreamSearchError("Browse API returned unexpected payload", response.status_code, response.text)
        return data

    async def fetch_listings(
        self,
        query: str,
        marketplace_code: Optional[str],
        condition: Optional[str],
        token: Optional[str],
        sold: bool = True,
        mock: bool = False,
    ) -> FetchResult:
        """Fetch raw item summaries, never raising for upstream failures.

        Without a token, or with ``mock`` set, the fixed synthetic dataset is
        returned and tagged ``mock``. A failed search yields no items and an
        error message; the caller reports it as a non-fatal notice.
        """
        if mock or not token:
            return self.mock_listings(query, marketplace_code, sold=sold)

        try:
            data = await self.search(query, marketplace_code, condition, token, sold=sold)
        except UpstreamSearchError as e:
            return FetchResult(
                items=(),
                source=SOURCE_LIVE,
                error=SEARCH_FAILED_MESSAGE,
                detail={"message": e.message, **e.details},
            )

        items = data.get("itemSummaries") or []
        if isinstance(items, dict):
            items = [items]
        items = tuple(item for item in items if isinstance(item, dict))
        logger.info(
            f"Browse API returned {len(items)} items for {query!r} "
            f"(total={data.get('total')}, sold={sold})"
        )
        return FetchResult(items=items, source=SOURCE_LIVE, total=data.get("total"))

    def mock_listings(self, query: str, marketplace_code: Optional[str], sold: bool = True) -> FetchResult:
        marketplace = resolve_marketplace(marketplace_code, self.settings.default_marketplace)
        logger.info(f"Using mock listings for {query!r} ({marketplace.code})")
        items = tuple(mock_items(query, marketplace.currency, sold=sold))
        return FetchResult(items=items, source=SOURCE_MOCK, total=len(items))


# Global client instance
ebay_browse = EbayBrowseAPI()
