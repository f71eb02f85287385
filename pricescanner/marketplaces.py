"""Marketplace and item condition lookup tables."""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote_plus


@dataclass(frozen=True)
class Marketplace:
    code: str
    name: str
    ebay_id: str
    currency: str
    locale: str
    web_host: str

    def search_url(self, query: str) -> str:
        """Generic search results page on the marketplace's site."""
        return f"https://{self.web_host}/sch/i.html?_nkw={quote_plus(query)}"

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "name": self.name,
            "ebayId": self.ebay_id,
            "currency": self.currency,
            "locale": self.locale,
            "webHost": self.web_host,
        }


MARKETPLACES: dict[str, Marketplace] = {
    m.code: m
    for m in (
        Marketplace("GB", "UK", "EBAY_GB", "GBP", "en", "www.ebay.co.uk"),
        Marketplace("US", "US", "EBAY_US", "USD", "en", "www.ebay.com"),
        Marketplace("CA", "Canada", "EBAY_CA", "CAD", "en", "www.ebay.ca"),
        Marketplace("AU", "Australia", "EBAY_AU", "AUD", "en", "www.ebay.com.au"),
        # No Brazilian eBay site; Brasil searches the US marketplace but displays BRL.
        Marketplace("PT", "Brasil", "EBAY_US", "BRL", "pt-BR", "www.ebay.com"),
        Marketplace("ES", "Espana", "EBAY_ES", "EUR", "es", "www.ebay.es"),
        Marketplace("FR", "France", "EBAY_FR", "EUR", "fr", "www.ebay.fr"),
        Marketplace("IT", "Italia", "EBAY_IT", "EUR", "it", "www.ebay.it"),
        Marketplace("DE", "Deutschland", "EBAY_DE", "EUR", "de", "www.ebay.de"),
    )
}

FALLBACK_MARKETPLACE = "GB"


def resolve_marketplace(code: Optional[str], default: str = FALLBACK_MARKETPLACE) -> Marketplace:
    """Map a marketplace code to its entry. Unknown codes resolve to the default."""
    key = (code or "").strip().upper()
    if key in MARKETPLACES:
        return MARKETPLACES[key]
    return MARKETPLACES.get((default or "").upper(), MARKETPLACES[FALLBACK_MARKETPLACE])


UNKNOWN_CONDITION = "Unknown"

CONDITION_LABELS: dict[str, str] = {
    "1000": "New",
    "1500": "New - Other",
    "1750": "New - With Defects",
    "2000": "Refurbished",
    "2010": "Refurbished",
    "2020": "Refurbished",
    "2030": "Refurbished",
    "2500": "Refurbished",
    "2750": "Like New",
    "3000": "Used",
    "3001": "Used - Very Good",
    "3002": "Used - Good",
    "3003": "Used - Acceptable",
    "3004": "New",
    "3005": "New - Other",
    "3007": "Refurbished",
    "4000": "Used - Very Good",
    "5000": "Used - Good",
    "6000": "Used - Acceptable",
    "7000": "For Parts",
}


def condition_label(code) -> str:
    """Label for an upstream condition id; anything outside the table is Unknown."""
    if code is None or isinstance(code, bool):
        return UNKNOWN_CONDITION
    key = str(code).strip()
    # Tolerate numeric ids that arrive as floats (3000.0)
    if key.endswith(".0"):
        key = key[:-2]
    return CONDITION_LABELS.get(key, UNKNOWN_CONDITION)
