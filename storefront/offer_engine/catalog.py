"""
Offer Catalog

Owns the offers fetched from the storefront API. Each refresh builds a new
immutable OfferSnapshot and swaps it in with a single assignment, so readers
always see one complete fetch. A failed refresh keeps the previous snapshot.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from .activation import is_valid_now, utc_now
from .api_client import StorefrontApiClient
from .calculator import PriceQuote, quote_price
from .config import OfferEngineConfig
from .exceptions import OfferFetchError
from .index import ProductOfferIndex
from .models import OfferRecord, parse_offers

logger = logging.getLogger(__name__)

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class OfferSnapshot:
    """One complete fetch: every parsed offer plus the index of active ones."""

    offers: Tuple[OfferRecord, ...] = ()
    index: ProductOfferIndex = field(default_factory=ProductOfferIndex)
    fetched_at: Optional[datetime] = None
    skipped_count: int = 0


@dataclass
class RefreshResult:
    """Result of a refresh attempt."""

    refreshed: bool
    reason: str
    offers: Tuple[OfferRecord, ...] = ()
    skipped_count: int = 0
    error: Optional[OfferFetchError] = None

    @property
    def ok(self) -> bool:
        return self.refreshed


def _featured_sort_key(offer: OfferRecord):
    numeric_id = offer.id if isinstance(offer.id, int) else 0
    return (offer.start_date is not None, offer.start_date or _EARLIEST, numeric_id)


class OfferCatalog:
    """
    Periodically refreshed, in-memory offer catalog.

    Usage:
        async with OfferCatalog(config) as catalog:
            offer = catalog.best_offer_for(product_id)
            price = discounted_price(product_price, offer)
    """

    def __init__(
        self,
        config: OfferEngineConfig,
        client: Optional[Any] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            config: Offer engine configuration
            client: Anything with an async get_offers() returning raw records;
                a StorefrontApiClient is created when omitted
            clock: Source of "now" for refresh-time indexing
        """
        self.config = config
        self.client = client or StorefrontApiClient(config)
        self._owns_client = client is None
        self._clock = clock

        self._snapshot = OfferSnapshot()
        self._loaded = False
        self._loaded_event: Optional[asyncio.Event] = None
        self._refreshing = False
        self._refresh_task: Optional[asyncio.Task] = None
        self._last_error: Optional[str] = None
        self._last_attempt_at: Optional[datetime] = None

    # ============================================
    # Refresh
    # ============================================

    async def refresh(self) -> RefreshResult:
        """Fetch offers and swap in a new snapshot. Never raises fetch errors."""
        if self._refreshing:
            logger.debug("Offer refresh already in flight, skipping")
            return RefreshResult(refreshed=False, reason="in_flight")

        self._refreshing = True
        self._last_attempt_at = self._clock()
        try:
            snapshot = await self._fetch_snapshot()
        except OfferFetchError as e:
            self._last_error = str(e)
            logger.error(
                f"Failed to refresh offers, keeping {len(self._snapshot.offers)} cached: {e}"
            )
            return RefreshResult(refreshed=False, reason=f"error: {e}", error=e)
        finally:
            self._refreshing = False
            self._mark_loaded()

        self._snapshot = snapshot
        self._last_error = None
        logger.info(
            f"Refreshed offers: {len(snapshot.offers)} total, "
            f"{len(snapshot.index)} products with offers, {snapshot.skipped_count} skipped"
        )
        return RefreshResult(
            refreshed=True,
            reason="success",
            offers=snapshot.offers,
            skipped_count=snapshot.skipped_count,
        )

    async def _fetch_snapshot(self) -> OfferSnapshot:
        try:
            raw_items = await self.client.get_offers()
        except OfferFetchError:
            raise
        except Exception as e:
            raise OfferFetchError(f"Unexpected error fetching offers: {e}") from e

        offers, skipped = parse_offers(raw_items)
        now = self._clock()
        active = [offer for offer in offers if is_valid_now(offer, now)]
        return OfferSnapshot(
            offers=tuple(offers),
            index=ProductOfferIndex.build(active),
            fetched_at=now,
            skipped_count=skipped,
        )

    def _mark_loaded(self) -> None:
        self._loaded = True
        if self._loaded_event is not None:
            self._loaded_event.set()

    async def start(self) -> None:
        """Start the background refresh loop. The first refresh runs immediately."""
        if self.is_running:
            return
        self.config.validate()
        self._loaded_event = asyncio.Event()
        if self._loaded:
            self._loaded_event.set()
        self._refresh_task = asyncio.create_task(self._refresh_loop())
        logger.info(
            f"Offer catalog started (refresh every {self.config.refresh_interval_seconds}s)"
        )

    async def stop(self) -> None:
        """Cancel the refresh loop and release the HTTP client."""
        task = self._refresh_task
        self._refresh_task = None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if self._owns_client:
            await self.client.aclose()
        logger.info("Offer catalog stopped")

    async def wait_loaded(self, timeout: Optional[float] = None) -> bool:
        """Wait for the first refresh attempt to finish. Returns the loaded flag."""
        if self._loaded:
            return True
        if self._loaded_event is None:
            return False
        try:
            await asyncio.wait_for(self._loaded_event.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def _refresh_loop(self) -> None:
        while True:
            try:
                await self.refresh()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._last_error = str(e)
                logger.error(f"Error in offer refresh loop: {e}")
            await asyncio.sleep(self.config.refresh_interval_seconds)

    async def __aenter__(self) -> "OfferCatalog":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    # ============================================
    # Reads (never await, always one snapshot)
    # ============================================

    @property
    def snapshot(self) -> OfferSnapshot:
        return self._snapshot

    @property
    def index(self) -> ProductOfferIndex:
        return self._snapshot.index

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def is_running(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    def get_active_offers(self, now: Optional[datetime] = None) -> List[OfferRecord]:
        """Offers valid at `now`, recomputed from the current snapshot."""
        snapshot = self._snapshot
        now = now or self._clock()
        return [offer for offer in snapshot.offers if is_valid_now(offer, now)]

    def best_offer_for(
        self, product_id: Any, now: Optional[datetime] = None
    ) -> Optional[OfferRecord]:
        """
        Best indexed offer for a product.

        The index is built at refresh time, so candidates are re-checked
        against `now` to drop offers that expired since.
        """
        snapshot = self._snapshot
        now = now or self._clock()
        for offer in snapshot.index.offers_for(product_id):
            if is_valid_now(offer, now):
                return offer
        return None

    def has_offer(self, product_id: Any, now: Optional[datetime] = None) -> bool:
        return self.best_offer_for(product_id, now) is not None

    def featured_offers(
        self, limit: Optional[int] = None, now: Optional[datetime] = None
    ) -> List[OfferRecord]:
        """Active offers of any scope, newest start date first."""
        limit = self.config.featured_limit if limit is None else limit
        active = sorted(self.get_active_offers(now), key=_featured_sort_key, reverse=True)
        return active[:limit]

    def quote(
        self,
        product_id: Any,
        price: Any,
        currency: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PriceQuote:
        """Price and badge for one product under its best current offer."""
        offer = self.best_offer_for(product_id, now)
        return quote_price(price, offer, currency or self.config.currency)

    def get_status(self) -> Dict[str, Any]:
        """Current catalog status."""
        snapshot = self._snapshot
        return {
            "is_loaded": self._loaded,
            "is_running": self.is_running,
            "total_offers": len(snapshot.offers),
            "active_offers": len(self.get_active_offers()),
            "products_with_offers": len(snapshot.index),
            "skipped_offers": snapshot.skipped_count,
            "last_refreshed_at": snapshot.fetched_at.isoformat()
            if snapshot.fetched_at
            else None,
            "last_attempt_at": self._last_attempt_at.isoformat()
            if self._last_attempt_at
            else None,
            "last_error": self._last_error,
            "refresh_interval_seconds": self.config.refresh_interval_seconds,
        }
