"""Per-request result records for the price lookup pipeline."""

from dataclasses import dataclass, field
from typing import Any, Optional

from pricescanner.marketplaces import Marketplace
from pricescanner.models.listing import Listing, PriceHistoryPoint, PriceStatistics

SOURCE_LIVE = "live"
SOURCE_MOCK = "mock"

SOLD = "sold"
ACTIVE = "active"


@dataclass(frozen=True)
class FetchResult:
    """Raw item summaries from one search call, tagged with where they came from.

    An empty ``items`` with ``error`` set means the search failed; empty without
    ``error`` means the marketplace simply had no matches.
    """

    items: tuple[dict[str, Any], ...]
    source: str
    error: Optional[str] = None
    detail: dict[str, Any] = field(default_factory=dict)
    total: Optional[int] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class ListingSet:
    """Normalized listings of one type (sold or active) with their statistics."""

    listing_type: str
    listings: tuple[Listing, ...]
    stats: PriceStatistics
    error: Optional[str] = None
    detail: dict[str, Any] = field(default_factory=dict)

    def to_dict(self, debug: bool = False) -> dict:
        payload = {
            "listings": [listing.to_dict() for listing in self.listings],
            "stats": self.stats.to_dict(),
        }
        if self.error:
            payload["error"] = self.error
            if debug and self.detail:
                payload["details"] = self.detail
        return payload


@dataclass(frozen=True)
class PriceReport:
    """Everything returned for one query.

    ``result`` holds the requested listing type; ``active`` is only set when
    active listings were fetched alongside sold ones.
    """

    query: str
    marketplace: Marketplace
    condition: str
    result: ListingSet
    source: str
    history: Optional[tuple[PriceHistoryPoint, ...]] = None
    active: Optional[ListingSet] = None
    display: Optional[dict[str, Any]] = None

    @property
    def listings(self) -> tuple[Listing, ...]:
        return self.result.listings

    @property
    def stats(self) -> PriceStatistics:
        return self.result.stats

    @property
    def error(self) -> Optional[str]:
        return self.result.error

    def to_dict(self, debug: bool = False) -> dict:
        payload = {
            "query": self.query,
            "marketplace": self.marketplace.code,
            "condition": self.condition,
            "currency": self.marketplace.currency,
            "type": self.result.listing_type,
            "source": self.source,
        }
        payload.update(self.result.to_dict(debug=debug))
        if self.history is not None:
            payload["history"] = [point.to_dict() for point in self.history]
        if self.active is not None:
            payload["active"] = self.active.to_dict(debug=debug)
        if self.display is not None:
            payload["display"] = self.display
        return payload
