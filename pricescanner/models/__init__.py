"""Domain models."""

from pricescanner.models.listing import Listing, PriceHistoryPoint, PriceStatistics
from pricescanner.models.report import FetchResult, ListingSet, PriceReport

__all__ = [
    "Listing",
    "PriceStatistics",
    "PriceHistoryPoint",
    "FetchResult",
    "ListingSet",
    "PriceReport",
]
