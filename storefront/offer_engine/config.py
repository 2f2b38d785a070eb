"""
Offer Engine Configuration

Configuration dataclass with environment variable loading.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

DEFAULT_API_URL = "https://laeij.teamqeematech.site/api"
DEFAULT_CURRENCY = "AED"


@dataclass
class OfferEngineConfig:
    """Configuration for the offer engine."""

    # Storefront API
    api_base_url: str = DEFAULT_API_URL
    offers_path: str = "/offers"
    accept_language: str = "ar"
    request_timeout_seconds: float = 30.0

    # Refresh settings
    refresh_interval_seconds: float = 300.0  # 5 minutes

    # Display
    currency: str = DEFAULT_CURRENCY
    featured_limit: int = 6

    @classmethod
    def from_env(cls) -> "OfferEngineConfig":
        """Create config from environment variables."""
        return cls(
            api_base_url=os.getenv("STOREFRONT_API_URL", DEFAULT_API_URL),
            offers_path=os.getenv("OFFERS_PATH", "/offers"),
            accept_language=os.getenv("STOREFRONT_LANGUAGE", "ar"),
            request_timeout_seconds=float(os.getenv("OFFERS_REQUEST_TIMEOUT", "30")),
            refresh_interval_seconds=float(os.getenv("OFFERS_REFRESH_SECONDS", "300")),
            currency=os.getenv("OFFERS_CURRENCY", DEFAULT_CURRENCY),
            featured_limit=int(os.getenv("FEATURED_OFFERS_LIMIT", "6")),
        )

    @property
    def offers_url(self) -> str:
        """Full URL of the offers endpoint."""
        return f"{self.api_base_url.rstrip('/')}/{self.offers_path.lstrip('/')}"

    def validate(self) -> bool:
        """Validate that intervals and timeouts are usable."""
        if self.refresh_interval_seconds <= 0:
            raise ValueError(
                f"Refresh interval must be positive, got {self.refresh_interval_seconds}. "
                f"Set OFFERS_REFRESH_SECONDS."
            )
        if self.request_timeout_seconds <= 0:
            raise ValueError(
                f"Request timeout must be positive, got {self.request_timeout_seconds}. "
                f"Set OFFERS_REQUEST_TIMEOUT."
            )
        return True
