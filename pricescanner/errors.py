"""Error types raised by the price lookup pipeline."""

from typing import Optional

BODY_EXCERPT_LIMIT = 500


def excerpt(text: Optional[str], limit: int = BODY_EXCERPT_LIMIT) -> str:
    """Trim an upstream response body for logs and diagnostics."""
    text = text or ""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class PriceScannerError(Exception):
    """Base class for all price scanner errors."""

    status_code = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(PriceScannerError):
    """Request rejected at the boundary (e.g. missing query)."""

    status_code = 400


class CredentialError(PriceScannerError):
    """eBay client id or secret is not configured."""

    def __init__(self, missing: list[str]):
        super().__init__(
            "Missing eBay credentials",
            {"missing": missing},
        )
        self.missing = missing


class AuthServiceError(PriceScannerError):
    """The identity endpoint refused the client credentials exchange."""

    status_code = 502

    def __init__(self, upstream_status: int, body: str):
        super().__init__(
            f"eBay token request failed with status {upstream_status}",
            {"status": upstream_status, "body": excerpt(body)},
        )
        self.upstream_status = upstream_status
        self.body = excerpt(body)


class UpstreamSearchError(PriceScannerError):
    """The item search call failed. Absorbed by the fetcher."""

    status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None, body: str = ""):
        details = {"body": excerpt(body)} if body else {}
        if upstream_status is not None:
            details["status"] = upstream_status
        super().__init__(message, details)
        self.upstream_status = upstream_status
