"""Price statistics and daily price history over normalized listings."""

from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from pricescanner.models.listing import Listing, PriceHistoryPoint, PriceStatistics

CENT = Decimal("0.01")
UNIT = Decimal("1")
HISTORY_MAX_DAYS = 30


def round_half_up(value: Decimal, exponent: Decimal = CENT) -> Decimal:
    return value.quantize(exponent, rounding=ROUND_HALF_UP)


def _median_dec(values: list[Decimal]) -> Decimal:
    """Median of an ascending list; even lengths average the two middle values."""
    if not values:
        return Decimal("0")
    n = len(values)
    mid = n // 2
    if n % 2 == 1:
        return values[mid]
    return round_half_up((values[mid - 1] + values[mid]) / Decimal("2"))


def aggregate(listings: Iterable[Listing]) -> PriceStatistics:
    """Min, max, average and median over listings with a known price.

    Listings priced 0 (unparsed) are left out of every figure, including count.
    Averages and even-length medians round half-up to the cent.
    """
    prices = sorted(listing.price for listing in listings if listing.price > 0)
    if not prices:
        return PriceStatistics.empty()

    count = len(prices)
    return PriceStatistics(
        min=prices[0],
        max=prices[-1],
        average=round_half_up(sum(prices, Decimal("0")) / count),
        median=_median_dec(prices),
        count=count,
    )


def aggregate_history(
    sold_listings: Iterable[Listing],
    max_days: int = HISTORY_MAX_DAYS,
) -> list[PriceHistoryPoint]:
    """Per-day mean sold price (whole units) and count, oldest first, last ``max_days`` days."""
    by_day: dict[str, list[Decimal]] = defaultdict(list)
    for listing in sold_listings:
        if not listing.sold_date_raw or listing.price <= 0:
            continue
        by_day[listing.sold_date_raw].append(listing.price)

    points = [
        PriceHistoryPoint(
            date=day,
            avg_price=round_half_up(sum(prices, Decimal("0")) / len(prices), UNIT),
            count=len(prices),
        )
        for day, prices in sorted(by_day.items())
    ]
    if max_days <= 0:
        return []
    return points[-max_days:]
