"""Price lookup routes."""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from pricescanner.api.ebay_auth import acquire_token, missing_credentials
from pricescanner.config import Settings, get_settings
from pricescanner.errors import CredentialError, UpstreamSearchError
from pricescanner.marketplaces import MARKETPLACES
from pricescanner.models.report import ACTIVE, SOLD
from pricescanner.services.pipeline import PriceLookup, price_lookup

router = APIRouter()


def get_price_lookup() -> PriceLookup:
    """Dependency providing the pipeline (overridden in tests)."""
    return price_lookup


@router.get("/api/ebay")
async def lookup_prices(
    q: Optional[str] = None,
    marketplace: Optional[str] = None,
    condition: str = "all",
    mock: bool = False,
    active: bool = False,
    history: bool = True,
    currency: Optional[str] = None,
    debug: bool = False,
    lookup: PriceLookup = Depends(get_price_lookup),
):
    """
    Sold-price statistics for a query.

    Args:
        q: Search text (required)
        marketplace: Marketplace code, e.g. GB or US
        condition: 'all' or condition id(s)
        mock: Use the synthetic dataset
        active: Also fetch active listings
        history: Include daily sold price history
        currency: Add statistics converted to this currency for display
        debug: Include upstream error detail
    """
    report = await lookup.run(
        q,
        marketplace=marketplace,
        condition=condition,
        mock=mock,
        listing_type=SOLD,
        include_active=active,
        include_history=history,
        display_currency=currency,
    )
    return report.to_dict(debug=debug)


@router.get("/api/ebay/sold")
async def sold_listings(
    q: Optional[str] = None,
    marketplace: Optional[str] = None,
    condition: str = "all",
    mock: bool = False,
    debug: bool = False,
    lookup: PriceLookup = Depends(get_price_lookup),
):
    """Sold listings and their statistics."""
    report = await lookup.run(
        q, marketplace=marketplace, condition=condition, mock=mock, listing_type=SOLD, include_history=False
    )
    return report.to_dict(debug=debug)


@router.get("/api/ebay/active")
async def active_listings(
    q: Optional[str] = None,
    marketplace: Optional[str] = None,
    condition: str = "all",
    mock: bool = False,
    debug: bool = False,
    lookup: PriceLookup = Depends(get_price_lookup),
):
    """Currently listed (fixed price) items and their statistics."""
    report = await lookup.run(
        q, marketplace=marketplace, condition=condition, mock=mock, listing_type=ACTIVE, include_history=False
    )
    return report.to_dict(debug=debug)


@router.get("/api/ebay/test")
async def mock_prices(
    q: Optional[str] = None,
    marketplace: Optional[str] = None,
    lookup: PriceLookup = Depends(get_price_lookup),
):
    """Fixed sample data; never calls eBay."""
    report = await lookup.run(q, marketplace=marketplace, mock=True)
    return report.to_dict()


@router.get("/api/ebay/status")
async def credential_status(settings: Settings = Depends(get_settings)):
    """Which eBay credentials are configured (never their values)."""
    def state(value: str) -> str:
        return "set" if (value or "").strip() else "MISSING"

    return {
        "status": "ok",
        "credentials": {
            "EBAY_APP_ID": state(settings.ebay_app_id),
            "EBAY_CERT_ID": state(settings.ebay_cert_id),
            "EBAY_DEV_ID": state(settings.ebay_dev_id),
            "EBAY_ENVIRONMENT": settings.ebay_environment or "not set",
        },
        "mockMode": settings.mock_mode,
        "mockFallback": settings.mock_fallback,
    }


@router.get("/api/ebay/test-auth")
async def auth_check(lookup: PriceLookup = Depends(get_price_lookup)):
    """Check the credentials end to end: token exchange, then a small search."""
    settings = lookup.settings
    missing = missing_credentials(settings.ebay_app_id, settings.ebay_cert_id)
    if missing:
        raise CredentialError(missing)

    # AuthServiceError propagates and is rendered by the app's error handler.
    token = await acquire_token(
        settings.ebay_app_id,
        settings.ebay_cert_id,
        settings.ebay_environment,
        transport=lookup.auth.transport,
        timeout=settings.http_timeout_seconds,
    )

    payload = {"oauthStatus": "success", "tokenLength": len(token)}
    try:
        data = await lookup.browse.search("iphone", "US", "all", token, sold=True, limit=5)
    except UpstreamSearchError as e:
        payload.update({"browseStatus": e.upstream_status or "error", "browseError": e.details.get("body") or e.message})
        return JSONResponse(status_code=500, content=payload)

    items = data.get("itemSummaries") or []
    payload.update(
        {
            "browseStatus": "success",
            "itemCount": len(items),
            "sampleItem": items[0] if items else None,
        }
    )
    return payload


@router.get("/api/marketplaces")
async def list_marketplaces(settings: Settings = Depends(get_settings)):
    """Supported marketplaces."""
    return {
        "default": settings.default_marketplace,
        "marketplaces": [m.to_dict() for m in MARKETPLACES.values()],
    }
