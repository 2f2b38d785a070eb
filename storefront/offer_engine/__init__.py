"""
Offer Engine Module - promotional offer evaluation and discount computation.

Pulls offers from the storefront API on a timer, keeps the active ones in an
immutable snapshot, and answers "which offer applies to this product and
what does it cost now" for product listings and detail pages.
"""

from .config import OfferEngineConfig
from .exceptions import OfferEngineError, OfferFetchError, MalformedOfferError
from .models import DiscountType, OfferScope, OfferRecord, parse_offer, parse_offers
from .activation import is_valid_now, parse_timestamp
from .index import ProductOfferIndex
from .calculator import (
    PriceQuote,
    best_offer,
    discounted_price,
    format_discount_label,
    quote_price,
)
from .api_client import StorefrontApiClient
from .catalog import OfferCatalog, OfferSnapshot, RefreshResult

# Singleton instances
_config: OfferEngineConfig = None
_catalog: OfferCatalog = None


def get_config() -> OfferEngineConfig:
    """Get or create the offer engine config."""
    global _config
    if _config is None:
        _config = OfferEngineConfig.from_env()
    return _config


def get_catalog() -> OfferCatalog:
    """Get or create the shared offer catalog."""
    global _catalog
    if _catalog is None:
        _catalog = OfferCatalog(get_config())
    return _catalog


def reset_catalog() -> None:
    """Drop the shared catalog (call after stopping it)."""
    global _catalog
    _catalog = None


__all__ = [
    'OfferEngineConfig',
    'OfferEngineError',
    'OfferFetchError',
    'MalformedOfferError',
    'DiscountType',
    'OfferScope',
    'OfferRecord',
    'parse_offer',
    'parse_offers',
    'is_valid_now',
    'parse_timestamp',
    'ProductOfferIndex',
    'PriceQuote',
    'best_offer',
    'discounted_price',
    'format_discount_label',
    'quote_price',
    'StorefrontApiClient',
    'OfferCatalog',
    'OfferSnapshot',
    'RefreshResult',
    'get_config',
    'get_catalog',
    'reset_catalog',
]
