"""
Offer Engine API Routes

Read-only endpoints for product listings and detail pages, plus a manual
refresh trigger.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from . import get_catalog
from .calculator import format_discount_label
from .catalog import OfferCatalog
from .models import coerce_product_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["offers"])


# ============================================
# Offer Endpoints
# ============================================

@router.get("/offers")
async def list_active_offers(catalog: OfferCatalog = Depends(get_catalog)):
    """Offers that are valid right now."""
    offers = catalog.get_active_offers()
    return {
        "success": True,
        "count": len(offers),
        "data": [offer.to_dict() for offer in offers],
    }


@router.get("/offers/featured")
async def list_featured_offers(
    limit: Optional[int] = None, catalog: OfferCatalog = Depends(get_catalog)
):
    """Newest active offers for the home page section."""
    if limit is not None and limit <= 0:
        raise HTTPException(400, "Limit must be positive")

    offers = catalog.featured_offers(limit=limit)
    return {
        "success": True,
        "count": len(offers),
        "data": [offer.to_dict() for offer in offers],
    }


@router.get("/offers/status")
async def get_offers_status(catalog: OfferCatalog = Depends(get_catalog)):
    """Catalog load state, counts and last error."""
    return catalog.get_status()


@router.post("/offers/refresh")
async def refresh_offers(catalog: OfferCatalog = Depends(get_catalog)):
    """Fetch offers now instead of waiting for the next tick."""
    result = await catalog.refresh()
    if not result.refreshed:
        logger.warning(f"Manual offer refresh did not complete: {result.reason}")

    return {
        "success": result.refreshed,
        "reason": result.reason,
        "total_offers": len(catalog.snapshot.offers),
        "skipped_offers": result.skipped_count,
    }


# ============================================
# Product Endpoints
# ============================================

@router.get("/products/{product_id}/offer")
async def get_product_offer(
    product_id: str,
    price: Optional[str] = None,
    currency: Optional[str] = None,
    catalog: OfferCatalog = Depends(get_catalog),
):
    """Best current offer for a product, with its price when one is given."""
    resolved_id = coerce_product_id(product_id)
    if resolved_id is None:
        raise HTTPException(400, f"Invalid product id: {product_id}")

    currency = currency or catalog.config.currency
    offer = catalog.best_offer_for(resolved_id)

    response = {
        "product_id": resolved_id,
        "has_offer": offer is not None,
        "offer": offer.to_dict() if offer else None,
        "label": format_discount_label(offer, currency),
    }
    if price is not None:
        response["quote"] = catalog.quote(resolved_id, price, currency).to_dict()
    return response
