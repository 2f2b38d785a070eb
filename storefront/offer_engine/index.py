"""
Product Offer Index

Maps a product id to the product-scoped offers that target it, best first.
Built once per catalog refresh and never mutated afterwards.
"""

from collections import defaultdict
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .calculator import rank_offers
from .models import OfferRecord, OfferScope, coerce_product_id


class ProductOfferIndex:
    """Read-only product id -> ranked offers mapping."""

    def __init__(self, entries: Optional[Mapping[int, Tuple[OfferRecord, ...]]] = None):
        self._entries = MappingProxyType(dict(entries or {}))

    @classmethod
    def build(cls, active_offers: Iterable[OfferRecord]) -> "ProductOfferIndex":
        """
        Index active offers by target product.

        Global offers are not indexed, and neither are product offers whose
        target id could not be resolved. Each product's offers are ranked by
        raw discount_value, highest first.
        """
        grouped: Dict[int, List[OfferRecord]] = defaultdict(list)
        for offer in active_offers:
            if offer.scope is not OfferScope.PRODUCT:
                continue
            if offer.target_product_id is None:
                continue
            grouped[offer.target_product_id].append(offer)

        return cls({pid: rank_offers(offers) for pid, offers in grouped.items()})

    def offers_for(self, product_id: Any) -> Tuple[OfferRecord, ...]:
        """All indexed offers for a product, best first."""
        key = coerce_product_id(product_id)
        if key is None:
            return ()
        return self._entries.get(key, ())

    def best_offer_for(self, product_id: Any) -> Optional[OfferRecord]:
        """Highest ranked offer for a product, or None."""
        offers = self.offers_for(product_id)
        return offers[0] if offers else None

    def has_offer(self, product_id: Any) -> bool:
        return bool(self.offers_for(product_id))

    def product_ids(self) -> List[int]:
        return list(self._entries.keys())

    def as_mapping(self) -> Mapping[int, Tuple[OfferRecord, ...]]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, product_id: Any) -> bool:
        return self.has_offer(product_id)

    def __repr__(self) -> str:
        return f"<ProductOfferIndex products={len(self._entries)}>"
