"""eBay API clients."""

from pricescanner.api.ebay_auth import EbayAuth, acquire_token
from pricescanner.api.ebay_browse import EbayBrowseAPI

__all__ = [
    "EbayAuth",
    "EbayBrowseAPI",
    "acquire_token",
]
