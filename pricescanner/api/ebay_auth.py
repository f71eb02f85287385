"""eBay OAuth authentication handler."""

import base64
import logging
from datetime import datetime, timedelta
from typing import Optional

import httpx

from pricescanner.config import Settings, api_base_url, settings as default_settings
from pricescanner.errors import AuthServiceError, CredentialError, excerpt

logger = logging.getLogger(__name__)

OAUTH_SCOPE = "https://api.ebay.com/oauth/api_scope"


def basic_auth_header(client_id: str, client_secret: str) -> str:
    """Generate Base64 encoded authorization header."""
    credentials = f"{client_id}:{client_secret}"
    encoded = base64.b64encode(credentials.encode()).decode()
    return f"Basic {encoded}"


def missing_credentials(client_id: Optional[str], client_secret: Optional[str]) -> list[str]:
    missing = []
    if not (client_id or "").strip():
        missing.append("EBAY_APP_ID")
    if not (client_secret or "").strip():
        missing.append("EBAY_CERT_ID")
    return missing


async def _exchange(
    client_id: str,
    client_secret: str,
    environment: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: float = 30.0,
) -> dict:
    missing = missing_credentials(client_id, client_secret)
    if missing:
        raise CredentialError(missing)

    headers = {
        "Content-Type": "application/x-www-form-urlencoded",
        "Authorization": basic_auth_header(client_id, client_secret),
    }
    data = {
        "grant_type": "client_credentials",
        "scope": OAUTH_SCOPE,
    }
    url = f"{api_base_url(environment)}/identity/v1/oauth2/token"

    async with httpx.AsyncClient(transport=transport) as client:
        response = await client.post(url, headers=headers, data=data, timeout=timeout)

    if response.status_code != 200:
        logger.error(f"Client credentials token failed: {response.status_code} - {excerpt(response.text)}")
        raise AuthServiceError(response.status_code, response.text)

    try:
        token_data = response.json()
    except ValueError:
        logger.error(f"Token response was not JSON: {excerpt(response.text)}")
        raise AuthServiceError(response.status_code, response.text)
    if not isinstance(token_data, dict) or not token_data.get("access_token"):
        raise AuthServiceError(response.status_code, response.text or "Token response did not include access_token")

    try:
        token_data["expires_in"] = int(token_data.get("expires_in", 7200))
    except (TypeError, ValueError):
        raise AuthServiceError(response.status_code, response.text)
    return token_data


async def acquire_token(
    client_id: str,
    client_secret: str,
    environment: str = "production",
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: float = 30.0,
) -> str:
    """Get an application access token using the client credentials grant.

    Raises CredentialError before any network call when the id or secret is
    empty, and AuthServiceError when the identity endpoint refuses the exchange.
    """
    token_data = await _exchange(client_id, client_secret, environment, transport, timeout)
    return token_data["access_token"]


class EbayAuth:
    """Handles eBay OAuth2 application tokens, cached until shortly before expiry."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or default_settings
        self.transport = transport
        self._access_token: Optional[str] = None
        self._token_expiry: Optional[datetime] = None
        self._token_key: Optional[tuple[str, str]] = None

    @property
    def _cache_key(self) -> tuple[str, str]:
        return (self.settings.ebay_app_id, (self.settings.ebay_environment or "").lower())

    def _is_token_valid(self) -> bool:
        """Check if current token is still valid."""
        if not self._access_token or not self._token_expiry:
            return False
        if self._token_key != self._cache_key:
            return False
        margin = timedelta(seconds=self.settings.token_refresh_margin_seconds)
        return datetime.utcnow() < (self._token_expiry - margin)

    async def get_client_credentials_token(self) -> str:
        """Get a valid access token, requesting a new one if necessary."""
        if self.settings.token_cache_enabled and self._is_token_valid():
            return self._access_token

        logger.info("Getting eBay client credentials token...")
        token_data = await _exchange(
            self.settings.ebay_app_id,
            self.settings.ebay_cert_id,
            self.settings.ebay_environment,
            transport=self.transport,
            timeout=self.settings.http_timeout_seconds,
        )

        expires_in = token_data["expires_in"]
        if self.settings.token_cache_enabled:
            self._access_token = token_data["access_token"]
            self._token_expiry = datetime.utcnow() + timedelta(seconds=expires_in)
            self._token_key = self._cache_key

        logger.info(f"Client token obtained, expires in {expires_in}s")
        return token_data["access_token"]


# Global auth instance
ebay_auth = EbayAuth()
