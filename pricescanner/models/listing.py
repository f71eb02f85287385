"""Canonical listing and derived price records."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


def _money(value: Decimal) -> float:
    return float(value)


@dataclass(frozen=True)
class Listing:
    """One normalized marketplace item."""

    title: str
    price: Decimal
    currency: str
    condition: str
    url: str
    image: Optional[str] = None
    sold_date: Optional[str] = None
    sold_date_raw: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "image": self.image,
            "price": _money(self.price),
            "currency": self.currency,
            "condition": self.condition,
            "soldDate": self.sold_date,
            "soldDateRaw": self.sold_date_raw,
            "url": self.url,
        }


@dataclass(frozen=True)
class PriceStatistics:
    """Summary over listings with a known (non-zero) price."""

    min: Decimal
    max: Decimal
    average: Decimal
    median: Decimal
    count: int

    @classmethod
    def empty(cls) -> "PriceStatistics":
        zero = Decimal("0")
        return cls(min=zero, max=zero, average=zero, median=zero, count=0)

    def to_dict(self) -> dict:
        return {
            "min": _money(self.min),
            "max": _money(self.max),
            "average": _money(self.average),
            "median": _money(self.median),
            "count": self.count,
        }


@dataclass(frozen=True)
class PriceHistoryPoint:
    date: str
    avg_price: Decimal
    count: int

    def to_dict(self) -> dict:
        return {"date": self.date, "avgPrice": _money(self.avg_price), "count": self.count}
