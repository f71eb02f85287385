"""Price lookup pipeline: token -> search -> normalize -> aggregate."""

import asyncio
import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Iterable, Optional

from pricescanner.api.ebay_auth import EbayAuth, ebay_auth
from pricescanner.api.ebay_browse import EbayBrowseAPI, ebay_browse, parse_condition_filter
from pricescanner.config import Settings, settings as default_settings
from pricescanner.errors import CredentialError, ValidationError
from pricescanner.marketplaces import Marketplace, resolve_marketplace
from pricescanner.models.listing import Listing
from pricescanner.models.report import (
    ACTIVE,
    SOLD,
    SOURCE_MOCK,
    FetchResult,
    ListingSet,
    PriceReport,
)
from pricescanner.services.aggregator import aggregate, aggregate_history
from pricescanner.services.currency import convert_statistics
from pricescanner.services.normalizer import normalize_all

logger = logging.getLogger(__name__)


def validate_query(query: Optional[str]) -> str:
    cleaned = (query or "").strip()
    if not cleaned:
        raise ValidationError('Query parameter "q" is required')
    return cleaned


def condition_key(condition: Optional[str]) -> str:
    """Canonical form of the condition filter echoed back to the caller."""
    codes = parse_condition_filter(condition)
    return "|".join(codes) if codes else "all"


def dominant_currency(listings: Iterable[Listing], default: str) -> str:
    """Most common currency among priced listings."""
    counts = Counter(listing.currency for listing in listings if listing.price > 0)
    if not counts:
        return default
    return counts.most_common(1)[0][0]


class PriceLookup:
    """Runs one query through the pipeline. Holds no per-query state."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        auth: Optional[EbayAuth] = None,
        browse: Optional[EbayBrowseAPI] = None,
    ):
        self.settings = settings or default_settings
        self.auth = auth or ebay_auth
        self.browse = browse or ebay_browse

    async def _token(self, mock: bool) -> Optional[str]:
        """Bearer token, or None when the mock dataset should be used."""
        if mock or self.settings.mock_mode:
            return None
        try:
            return await self.auth.get_client_credentials_token()
        except CredentialError as e:
            if not self.settings.mock_fallback:
                raise
            logger.warning(f"{e.message} ({', '.join(e.missing)}); falling back to mock listings")
            return None

    def _listing_set(
        self,
        fetched: FetchResult,
        listing_type: str,
        query: str,
        marketplace: Marketplace,
        now: datetime,
    ) -> ListingSet:
        listings = normalize_all(fetched.items, query, marketplace, context=listing_type, now=now)
        return ListingSet(
            listing_type=listing_type,
            listings=listings,
            stats=aggregate(listings),
            error=fetched.error,
            detail=fetched.detail,
        )

    async def run(
        self,
        query: Optional[str],
        marketplace: Optional[str] = None,
        condition: Optional[str] = "all",
        mock: bool = False,
        listing_type: str = SOLD,
        include_active: bool = False,
        include_history: bool = True,
        display_currency: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PriceReport:
        """
        Look up prices for one query.

        Args:
            query: Free-text search (required)
            marketplace: Marketplace code; unknown codes use the default
            condition: "all" or condition id(s)
            mock: Force the synthetic dataset
            listing_type: "sold" or "active" for the main result
            include_active: With sold results, also fetch active listings
            include_history: Attach daily sold price history
            display_currency: Add converted statistics in this currency
            now: Substitute for missing sold dates (defaults to current UTC time)

        Raises:
            ValidationError: empty query
            CredentialError: no credentials and mock fallback disabled
            AuthServiceError: token exchange refused
        """
        query = validate_query(query)
        market = resolve_marketplace(marketplace, self.settings.default_marketplace)
        condition = condition_key(condition)
        listing_type = ACTIVE if listing_type == ACTIVE else SOLD
        now = now or datetime.now(timezone.utc)

        token = await self._token(mock)
        use_mock = token is None

        fetches = [
            self.browse.fetch_listings(
                query, market.code, condition, token, sold=listing_type == SOLD, mock=use_mock
            )
        ]
        with_active = include_active and listing_type == SOLD
        if with_active:
            fetches.append(
                self.browse.fetch_listings(query, market.code, condition, token, sold=False, mock=use_mock)
            )
        fetched = await asyncio.gather(*fetches)

        result = self._listing_set(fetched[0], listing_type, query, market, now)
        active = self._listing_set(fetched[1], ACTIVE, query, market, now) if with_active else None

        history = None
        if include_history and listing_type == SOLD:
            history = tuple(aggregate_history(result.listings, self.settings.history_max_days))

        display = None
        if display_currency:
            from_currency = dominant_currency(result.listings, market.currency)
            display = convert_statistics(result.stats, from_currency, display_currency)

        source = SOURCE_MOCK if use_mock else fetched[0].source
        logger.info(
            f"Lookup {query!r} [{market.code}, {condition}, {listing_type}] "
            f"source={source} listings={len(result.listings)} priced={result.stats.count}"
        )
        return PriceReport(
            query=query,
            marketplace=market,
            condition=condition,
            result=result,
            source=source,
            history=history,
            active=active,
            display=display,
        )


price_lookup = PriceLookup()
