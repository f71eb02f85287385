"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pricescanner import __version__
from pricescanner.config import settings
from pricescanner.errors import PriceScannerError
from pricescanner.routes.prices import router as prices_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting eBay Price Scanner...")
    logger.info(f"Environment: {settings.environment} (eBay: {settings.ebay_environment})")
    if not settings.has_credentials:
        logger.warning("eBay credentials not configured; lookups will use mock listings")

    yield

    # Shutdown
    logger.info("Shutting down eBay Price Scanner...")


# Create FastAPI app
app = FastAPI(
    title="eBay Price Scanner",
    description="Sold and active price statistics for eBay searches",
    version=__version__,
    lifespan=lifespan,
)

# Include routes
app.include_router(prices_router)


@app.exception_handler(PriceScannerError)
async def price_scanner_error_handler(request: Request, exc: PriceScannerError):
    if exc.status_code >= 500:
        logger.error(f"{request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": "eBay Price Scanner",
        "version": __version__,
    }


@app.get("/health")
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "environment": settings.environment,
        "ebay_environment": settings.ebay_environment,
        "credentials_configured": settings.has_credentials,
        "mock_mode": settings.mock_mode,
    }
