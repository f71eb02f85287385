"""Display-only currency conversion from a fixed rate table."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pricescanner.models.listing import PriceStatistics

# Units of each currency per 1 USD.
USD_RATES: dict[str, Decimal] = {
    "USD": Decimal("1"),
    "GBP": Decimal("0.79"),
    "EUR": Decimal("0.92"),
    "CAD": Decimal("1.36"),
    "AUD": Decimal("1.52"),
    "BRL": Decimal("5.0"),
    "JPY": Decimal("150"),
}


def rate(currency: Optional[str]) -> Decimal:
    """Rate for a currency code; unknown codes are treated as USD."""
    return USD_RATES.get((currency or "").strip().upper(), Decimal("1"))


def convert(amount: Decimal, from_currency: Optional[str], to_currency: Optional[str]) -> Decimal:
    """Convert an amount between currencies, to the cent. Same currency is a no-op."""
    if (from_currency or "").strip().upper() == (to_currency or "").strip().upper():
        return amount
    converted = Decimal(str(amount)) / rate(from_currency) * rate(to_currency)
    return converted.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def convert_statistics(stats: PriceStatistics, from_currency: str, to_currency: str) -> dict:
    """Converted copy of the statistics for display. The input is left untouched."""
    return {
        "currency": (to_currency or "").upper(),
        "fromCurrency": (from_currency or "").upper(),
        "stats": {
            "min": float(convert(stats.min, from_currency, to_currency)),
            "max": float(convert(stats.max, from_currency, to_currency)),
            "average": float(convert(stats.average, from_currency, to_currency)),
            "median": float(convert(stats.median, from_currency, to_currency)),
            "count": stats.count,
        },
    }
