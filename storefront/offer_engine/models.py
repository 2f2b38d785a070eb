"""
Offer Models

Canonical offer record plus the ingestion step that normalizes raw records
from the storefront API. Source systems disagree on field names (snake_case
vs camelCase, several places for the target product id), so everything is
resolved here and the rest of the engine only sees OfferRecord.
"""

import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from .activation import parse_timestamp
from .exceptions import MalformedOfferError

logger = logging.getLogger(__name__)

OfferId = Union[int, str, None]

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


class OfferScope(str, Enum):
    """Whether an offer targets one product or the whole store."""

    PRODUCT = "product"
    GLOBAL = "global"


class DiscountType(str, Enum):
    """How discount_value is applied to a price."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"


_SCOPE_ALIASES = {
    "product": OfferScope.PRODUCT,
    "global": OfferScope.GLOBAL,
    "all": OfferScope.GLOBAL,
    "general": OfferScope.GLOBAL,
    "store": OfferScope.GLOBAL,
}

_DISCOUNT_TYPE_ALIASES = {
    "percentage": DiscountType.PERCENTAGE,
    "percent": DiscountType.PERCENTAGE,
    "fixed": DiscountType.FIXED,
    "amount": DiscountType.FIXED,
}


@dataclass(frozen=True)
class OfferRecord:
    """One promotional campaign, normalized."""

    id: OfferId
    scope: OfferScope
    discount_type: DiscountType
    discount_value: float
    is_active: bool
    target_product_id: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    # Display fields, passed through untouched
    title: Any = None
    description: Any = None
    image: Any = None
    link: Any = None

    def to_dict(self) -> dict:
        """Serialize for JSON responses."""
        return {
            "id": self.id,
            "scope": self.scope.value,
            "target_product_id": self.target_product_id,
            "discount_type": self.discount_type.value,
            "discount_value": self.discount_value,
            "is_active": self.is_active,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "title": self.title,
            "description": self.description,
            "image": self.image,
            "link": self.link,
        }


# ============================================
# Coercion helpers
# ============================================

def coerce_bool(value: Any) -> bool:
    """Truthy only for True, 1, "1" and "true"."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true")
    return False


def coerce_number(value: Any) -> float:
    """Leading-number parse; anything unusable reads as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        if isinstance(value, (int, float, Decimal)):
            number = float(value)
        elif isinstance(value, str):
            match = _FLOAT_PREFIX.match(value)
            if not match:
                return 0.0
            number = float(match.group(1))
        else:
            return 0.0
    except OverflowError:
        # ints too large for a float
        return 0.0

    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def coerce_product_id(value: Any) -> Optional[int]:
    """Leading-integer parse of a product id. Non-positive ids are unresolvable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        product_id = value
    elif isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        product_id = int(value)
    elif isinstance(value, str):
        match = _INT_PREFIX.match(value)
        if not match:
            return None
        product_id = int(match.group(1))
    else:
        return None
    return product_id if product_id > 0 else None


def _coerce_offer_id(value: Any) -> OfferId:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.lstrip("-").isdigit():
        return int(text)
    return text or None


def _first(raw: Mapping, *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def resolve_target_product_id(raw: Mapping) -> Optional[int]:
    """Find the targeted product id in any of the known record shapes."""
    condition = raw.get("condition")
    if not isinstance(condition, Mapping):
        condition = {}
    product = condition.get("product")
    if not isinstance(product, Mapping):
        product = {}

    candidates = (
        condition.get("product_id"),
        raw.get("product_id"),
        product.get("id"),
        raw.get("target_product_id"),
        raw.get("targetProductId"),
    )
    for candidate in candidates:
        # 0, "" and None fall through to the next key
        if not candidate:
            continue
        return coerce_product_id(candidate)
    return None


# ============================================
# Ingestion
# ============================================

def _parse_scope(value: Any, offer_id: OfferId) -> OfferScope:
    scope = _SCOPE_ALIASES.get(str(value).strip().lower()) if value is not None else None
    if scope is None:
        raise MalformedOfferError(f"Unrecognized offer scope: {value!r}", offer_id)
    return scope


def _parse_discount_type(value: Any, offer_id: OfferId) -> DiscountType:
    discount_type = (
        _DISCOUNT_TYPE_ALIASES.get(str(value).strip().lower()) if value is not None else None
    )
    if discount_type is None:
        raise MalformedOfferError(f"Unrecognized discount type: {value!r}", offer_id)
    return discount_type


def _clamp_discount(value: float, discount_type: DiscountType, offer_id: OfferId) -> float:
    if value < 0:
        logger.warning(f"Offer {offer_id}: negative discount {value} clamped to 0")
        return 0.0
    if discount_type is DiscountType.PERCENTAGE and value > 100:
        logger.warning(f"Offer {offer_id}: percentage {value} clamped to 100")
        return 100.0
    return value


def _parse_bound(raw: Mapping, offer_id: OfferId, *keys: str) -> Optional[datetime]:
    value = _first(raw, *keys)
    parsed = parse_timestamp(value)
    if parsed is None and value not in (None, ""):
        logger.warning(f"Invalid {keys[0]} for offer {offer_id}: {value!r}")
    return parsed


def parse_offer(raw: Mapping) -> OfferRecord:
    """
    Normalize one raw offer record.

    Raises:
        MalformedOfferError: if the record is not an object or its scope or
            discount type is not recognized
    """
    if not isinstance(raw, Mapping):
        raise MalformedOfferError(f"Offer record is not an object: {type(raw).__name__}")

    offer_id = _coerce_offer_id(raw.get("id"))
    scope = _parse_scope(_first(raw, "scope", "type"), offer_id)
    discount_type = _parse_discount_type(
        _first(raw, "discount_type", "discountType"), offer_id
    )
    discount_value = _clamp_discount(
        coerce_number(_first(raw, "discount_value", "discountValue")),
        discount_type,
        offer_id,
    )

    start_date = _parse_bound(raw, offer_id, "start_date", "startDate")
    end_date = _parse_bound(raw, offer_id, "end_date", "endDate")
    if start_date and end_date and end_date < start_date:
        # Kept as-is; the window comparisons make it never valid
        logger.warning(f"Offer {offer_id} ends before it starts: {start_date} > {end_date}")

    return OfferRecord(
        id=offer_id,
        scope=scope,
        discount_type=discount_type,
        discount_value=discount_value,
        is_active=coerce_bool(_first(raw, "is_active", "isActive")),
        target_product_id=(
            resolve_target_product_id(raw) if scope is OfferScope.PRODUCT else None
        ),
        start_date=start_date,
        end_date=end_date,
        title=raw.get("title"),
        description=raw.get("description"),
        image=raw.get("image"),
        link=raw.get("link"),
    )


def parse_offers(items: Iterable[Any]) -> Tuple[List[OfferRecord], int]:
    """
    Normalize a batch of raw records, skipping malformed ones.

    Returns:
        Tuple of (offers, skipped_count)
    """
    offers: List[OfferRecord] = []
    skipped = 0
    for item in items:
        try:
            offers.append(parse_offer(item))
        except MalformedOfferError as e:
            skipped += 1
            logger.warning(f"Skipping offer {e.offer_id}: {e}")
        except Exception as e:
            skipped += 1
            logger.error(f"Skipping offer that failed to parse: {e}")
    return offers, skipped
