"""Map Browse item summaries (and similar shapes) onto the canonical Listing.

Upstream field shapes drift, so each Listing field is resolved by a short
chain of extractors tried in priority order; the first one that yields a
value wins. Nothing in here raises on bad input: an unreadable price becomes
0 and an unknown condition becomes "Unknown".
"""

import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable, Optional

from pricescanner.marketplaces import (
    UNKNOWN_CONDITION,
    Marketplace,
    condition_label,
    resolve_marketplace,
)
from pricescanner.models.listing import Listing
from pricescanner.models.report import ACTIVE, SOLD

ZERO = Decimal("0")

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

Money = tuple[Decimal, Optional[str]]


_THOUSANDS_COMMA = re.compile(r"^\d{1,3}(,\d{3})+(\.\d+)?$")
_THOUSANDS_DOT_DECIMAL_COMMA = re.compile(r"^\d{1,3}(\.\d{3})+,\d{1,2}$")
_DECIMAL_COMMA = re.compile(r"^\d+,\d{1,2}$")


def _clean_amount(text: str) -> Optional[str]:
    """Plain decimal string from "1,234.50", "1.234,50" or "12,50"; None if ambiguous."""
    text = text.strip()
    if "," not in text:
        return text or None
    if _THOUSANDS_COMMA.match(text):
        return text.replace(",", "")
    if _THOUSANDS_DOT_DECIMAL_COMMA.match(text):
        return text.replace(".", "").replace(",", ".")
    if _DECIMAL_COMMA.match(text):
        return text.replace(",", ".")
    return None


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = _clean_amount(value)
        if value is None:
            return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


def _currency(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip().upper()
    return None


def _money_node(node: Any) -> Optional[Money]:
    """{"value": "12.50", "currency": "GBP"} style amount."""
    if not isinstance(node, dict):
        return None
    amount = _to_decimal(node.get("value", node.get("__value__")))
    if amount is None:
        return None
    return amount, _currency(node.get("currency") or node.get("@currencyId"))


def _primary_price(item: dict) -> Optional[Money]:
    return _money_node(item.get("price"))


def _current_price(item: dict) -> Optional[Money]:
    return _money_node(item.get("currentBidPrice")) or _money_node(item.get("currentPrice"))


def _raw_price(item: dict) -> Optional[Money]:
    for key in ("price", "soldPrice"):
        value = item.get(key)
        if isinstance(value, dict):
            continue
        amount = _to_decimal(value)
        if amount is not None:
            return amount, _currency(item.get("currency"))
    return None


PRICE_EXTRACTORS: tuple[Callable[[dict], Optional[Money]], ...] = (
    _primary_price,
    _current_price,
    _raw_price,
)


def extract_price(item: dict, default_currency: str) -> Money:
    """Price and currency; (0, default_currency) when no field parses."""
    for extractor in PRICE_EXTRACTORS:
        found = extractor(item)
        if found is not None:
            amount, currency = found
            return amount, currency or _currency(item.get("currency")) or default_currency
    return ZERO, _currency(item.get("currency")) or default_currency


def _condition_from_code(item: dict) -> Optional[str]:
    code = item.get("conditionId")
    if (code is None or code == "") and isinstance(item.get("condition"), dict):
        code = item["condition"].get("conditionId")
    if code is None or code == "":
        return None
    return condition_label(code)


def _condition_from_text(item: dict) -> Optional[str]:
    text = item.get("condition")
    if isinstance(text, str) and text.strip():
        return text.strip()
    return None


def extract_condition(item: dict) -> str:
    # A present code is authoritative, even when it is outside the table.
    return _condition_from_code(item) or _condition_from_text(item) or UNKNOWN_CONDITION


def _image_url(node: Any) -> Optional[str]:
    if isinstance(node, dict):
        node = node.get("imageUrl")
    if isinstance(node, str) and node.strip():
        return node.strip()
    return None


def extract_image(item: dict) -> Optional[str]:
    image = _image_url(item.get("image"))
    if image:
        return image
    thumbnails = item.get("thumbnailImages") or []
    if isinstance(thumbnails, list) and thumbnails:
        return _image_url(thumbnails[0])
    return None


def extract_url(item: dict, query: str, marketplace: Marketplace) -> str:
    for key in ("itemWebUrl", "itemAffiliateWebUrl", "url"):
        value = item.get(key)
        if isinstance(value, str) and value.strip() and value.strip() != "#":
            return value.strip()
    return marketplace.search_url(query)


def parse_date(value: Any) -> Optional[date]:
    """Calendar date from an ISO timestamp or YYYY-MM-DD string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def format_date(day: date) -> str:
    """Short display date, e.g. "Jan 15, 2026"."""
    return f"{_MONTHS[day.month - 1]} {day.day}, {day.year}"


def extract_sold_date(item: dict) -> Optional[date]:
    for key in ("lastSoldDate", "soldDateRaw", "soldDate", "itemEndDate"):
        parsed = parse_date(item.get(key))
        if parsed is not None:
            return parsed
    return None


def normalize(
    raw_item: dict,
    query: str,
    marketplace: Optional[Marketplace] = None,
    context: str = SOLD,
    now: Optional[datetime] = None,
) -> Listing:
    """
    Build a Listing from one raw item summary.

    In the ``sold`` context a missing sold date is replaced by ``now`` (the
    current UTC instant when not given); in the ``active`` context it stays
    empty. Pass ``now`` explicitly for reproducible output.
    """
    marketplace = marketplace or resolve_marketplace(None)
    price, currency = extract_price(raw_item, marketplace.currency)

    sold_day = extract_sold_date(raw_item)
    if sold_day is None and context == SOLD:
        sold_day = (now or datetime.now(timezone.utc)).date()

    title = raw_item.get("title")
    title = title.strip() if isinstance(title, str) and title.strip() else query

    return Listing(
        title=title,
        price=price,
        currency=currency,
        condition=extract_condition(raw_item),
        url=extract_url(raw_item, query, marketplace),
        image=extract_image(raw_item),
        sold_date=format_date(sold_day) if sold_day else None,
        sold_date_raw=sold_day.isoformat() if sold_day else None,
    )


def normalize_all(
    raw_items: Iterable[dict],
    query: str,
    marketplace: Optional[Marketplace] = None,
    context: str = SOLD,
    now: Optional[datetime] = None,
) -> tuple[Listing, ...]:
    """Normalize a batch with one shared ``now`` so substituted dates agree."""
    now = now or datetime.now(timezone.utc)
    return tuple(normalize(item, query, marketplace, context=context, now=now) for item in raw_items)
