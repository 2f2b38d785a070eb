"""
Discount Calculator

Pure functions for choosing an offer and turning it into a price and a
badge label. Nothing here raises on bad input: the caller falls back to the
original price when it gets None.
"""

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Optional, Tuple

from .config import DEFAULT_CURRENCY
from .models import DiscountType, OfferId, OfferRecord


@dataclass
class PriceQuote:
    """What a product card needs to render its price."""

    original_price: Optional[float]
    discounted_price: Optional[float]
    label: str
    offer_id: OfferId = None

    @property
    def show_strike_through(self) -> bool:
        """Only strike the original price when the offer actually lowers it."""
        return (
            self.discounted_price is not None
            and self.original_price is not None
            and self.discounted_price < self.original_price
        )

    def to_dict(self) -> dict:
        return {
            "original_price": self.original_price,
            "discounted_price": self.discounted_price,
            "label": self.label,
            "offer_id": self.offer_id,
            "show_strike_through": self.show_strike_through,
        }


def rank_offers(offers: Iterable[OfferRecord]) -> Tuple[OfferRecord, ...]:
    """
    Order offers by raw discount_value, highest first.

    Percentage and fixed values are compared as plain numbers. Ties keep
    their input order.
    """
    return tuple(sorted(offers, key=lambda offer: offer.discount_value, reverse=True))


def best_offer(offers: Iterable[OfferRecord]) -> Optional[OfferRecord]:
    """Highest raw discount_value offer, or None for an empty input."""
    ranked = rank_offers(offers)
    return ranked[0] if ranked else None


def _coerce_price(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float, Decimal)):
            price = float(value)
        elif isinstance(value, str):
            price = float(value.strip())
        else:
            return None
    except (ValueError, OverflowError):
        return None

    if math.isnan(price) or math.isinf(price) or price <= 0:
        return None
    return price


def discounted_price(original_price: Any, offer: Optional[OfferRecord]) -> Optional[float]:
    """
    Apply an offer to a price.

    Returns None when there is no offer, the price is not a positive number,
    or the discount type is not one we know how to apply. Records built
    outside parse_offer are clamped the same way, so the result is always
    between 0 and the original price.
    """
    if offer is None:
        return None
    price = _coerce_price(original_price)
    if price is None:
        return None

    value = max(0.0, offer.discount_value)
    if offer.discount_type is DiscountType.PERCENTAGE:
        return price - (price * min(value, 100.0) / 100)
    elif offer.discount_type is DiscountType.FIXED:
        return max(0.0, price - value)

    return None


def _format_value(value: float) -> str:
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return str(value)


def format_discount_label(
    offer: Optional[OfferRecord], currency: str = DEFAULT_CURRENCY
) -> str:
    """Badge text: "25%" for percentage offers, "30 AED" for fixed ones."""
    if offer is None:
        return ""

    if offer.discount_type is DiscountType.PERCENTAGE:
        return f"{_format_value(offer.discount_value)}%"
    elif offer.discount_type is DiscountType.FIXED:
        return f"{_format_value(offer.discount_value)} {currency}"

    return ""


def quote_price(
    original_price: Any,
    offer: Optional[OfferRecord],
    currency: str = DEFAULT_CURRENCY,
) -> PriceQuote:
    """Bundle the discounted price and label for one product."""
    discounted = discounted_price(original_price, offer)
    return PriceQuote(
        original_price=_coerce_price(original_price),
        discounted_price=discounted,
        label=format_discount_label(offer, currency) if discounted is not None else "",
        offer_id=offer.id if offer is not None and discounted is not None else None,
    )
