import argparse
import asyncio
import json

from pricescanner.errors import PriceScannerError
from pricescanner.services.pipeline import price_lookup


async def main(args: argparse.Namespace) -> int:
    try:
        report = await price_lookup.run(
            args.query,
            marketplace=args.marketplace,
            condition=args.condition,
            mock=args.mock,
            include_active=args.active,
            display_currency=args.currency,
        )
    except PriceScannerError as e:
        print(json.dumps(e.to_dict(), indent=2))
        return 1

    print(json.dumps(report.to_dict(debug=args.debug), indent=2))
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Look up eBay sold price statistics")
    parser.add_argument("query")
    parser.add_argument("--marketplace", default=None)
    parser.add_argument("--condition", default="all")
    parser.add_argument("--currency", default=None, help="display currency for converted stats")
    parser.add_argument("--mock", action="store_true")
    parser.add_argument("--active", action="store_true")
    parser.add_argument("--debug", action="store_true")
    raise SystemExit(asyncio.run(main(parser.parse_args())))
