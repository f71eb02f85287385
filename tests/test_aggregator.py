from decimal import Decimal

import pytest

from pricescanner.models.listing import Listing, PriceStatistics
from pricescanner.services.aggregator import aggregate, aggregate_history


def listing(price, sold_date_raw=None, currency="USD"):
    return Listing(
        title="item",
        price=Decimal(str(price)),
        currency=currency,
        condition="Used",
        url="https://www.ebay.com/itm/1",
        sold_date_raw=sold_date_raw,
    )


def test_empty_input_gives_zero_statistics():
    assert aggregate([]) == PriceStatistics.empty()
    assert aggregate([]).to_dict() == {"min": 0.0, "max": 0.0, "average": 0.0, "median": 0.0, "count": 0}


def test_unpriced_listings_are_excluded():
    assert aggregate([listing(0), listing(0)]) == PriceStatistics.empty()

    stats = aggregate([listing(0), listing(10), listing(30)])
    assert stats.count == 2
    assert stats.min == Decimal("10")
    assert stats.max == Decimal("30")


def test_even_count_median_is_mean_of_middle_pair():
    stats = aggregate([listing(20), listing(10)])
    assert stats.median == Decimal("15.00")
    assert stats.to_dict()["median"] == 15.0


def test_odd_count_median_is_middle_element():
    stats = aggregate([listing(30), listing(10), listing(20)])
    assert stats.median == Decimal("20")


def test_average_rounds_half_up_to_cents():
    stats = aggregate([listing("10.005"), listing("10.005")])
    assert stats.average == Decimal("10.01")


def test_even_median_rounds_half_up():
    stats = aggregate([listing("1.00"), listing("1.01")])
    assert stats.median == Decimal("1.01")


@pytest.mark.parametrize(
    "prices",
    [
        [5],
        [1, 1000],
        ["0.99", "12.50", "12.50", "400"],
        ["3.33", "3.34", "3.35"],
    ],
)
def test_median_and_average_lie_between_extrema(prices):
    stats = aggregate([listing(p) for p in prices])
    assert stats.min <= stats.median <= stats.max
    assert stats.min <= stats.average <= stats.max
    assert stats.count == len(prices)


def test_history_buckets_same_day_sales():
    points = aggregate_history([listing(10, "2026-01-10"), listing(20, "2026-01-10")])
    assert len(points) == 1
    assert points[0].date == "2026-01-10"
    assert points[0].avg_price == Decimal("15")
    assert points[0].count == 2


def test_history_rounds_to_whole_units_and_sorts_by_date():
    points = aggregate_history(
        [
            listing("10.50", "2026-01-12"),
            listing("9.99", "2026-01-03"),
            listing("11.00", "2026-01-12"),
        ]
    )
    assert [p.date for p in points] == ["2026-01-03", "2026-01-12"]
    assert points[0].avg_price == Decimal("10")
    # 10.75 -> 11
    assert points[1].avg_price == Decimal("11")
    assert points[1].to_dict() == {"date": "2026-01-12", "avgPrice": 11.0, "count": 2}


def test_history_keeps_most_recent_days():
    sold = [listing(10 + day, f"2026-01-{day:02d}") for day in range(1, 32)]
    sold += [listing(99, "2025-12-31")]
    points = aggregate_history(sold)
    assert len(points) == 30
    assert points[0].date == "2026-01-02"
    assert points[-1].date == "2026-01-31"

    assert [p.date for p in aggregate_history(sold, max_days=2)] == ["2026-01-30", "2026-01-31"]


def test_history_skips_undated_and_unpriced_listings():
    points = aggregate_history([listing(10), listing(0, "2026-01-01"), listing(12, "2026-01-02")])
    assert [(p.date, p.count) for p in points] == [("2026-01-02", 1)]
