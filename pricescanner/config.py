"""Application configuration settings."""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # eBay API Credentials (client credentials grant)
    ebay_app_id: str = ""
    ebay_cert_id: str = ""
    ebay_dev_id: str = ""

    # "production" or "sandbox"
    ebay_environment: str = "production"

    # Marketplace used when the request omits or garbles the code
    default_marketplace: str = "GB"

    # Browse search page size (upstream max is 200)
    search_limit: int = 50

    # Mock data
    mock_mode: bool = False
    mock_fallback: bool = True

    http_timeout_seconds: float = 30.0

    # Token cache; refresh this many seconds before expiry
    token_cache_enabled: bool = True
    token_refresh_margin_seconds: int = 300

    # Price history keeps the most recent N distinct days
    history_max_days: int = 30

    # Environment
    environment: str = "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def ebay_api_base_url(self) -> str:
        return api_base_url(self.ebay_environment)

    @property
    def has_credentials(self) -> bool:
        return bool(self.ebay_app_id.strip() and self.ebay_cert_id.strip())


def api_base_url(environment: str) -> str:
    """Base URL of the eBay REST APIs for an environment selector."""
    if (environment or "").strip().lower() == "sandbox":
        return "https://api.sandbox.ebay.com"
    return "https://api.ebay.com"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
