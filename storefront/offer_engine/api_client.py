"""
Storefront API Client - offers endpoint

Async HTTP access to the remote storefront API. Only the public offers
endpoint is consumed here; it needs no authentication, just the language
header the storefront sends with every public request.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import OfferEngineConfig
from .exceptions import OfferFetchError

logger = logging.getLogger(__name__)


def extract_offer_items(payload: Any) -> List[Any]:
    """
    Unwrap the offers list from a response body.

    The API has been seen returning a bare list, {"data": [...]} and
    {"offers": [...]}.

    Raises:
        OfferFetchError: if none of those shapes match
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("data", "offers"):
            if isinstance(payload.get(key), list):
                return payload[key]
    raise OfferFetchError(f"Unrecognized offers payload: {type(payload).__name__}")


class StorefrontApiClient:
    """
    Fetches raw offer records from the storefront API.

    Usage:
        client = StorefrontApiClient(config)
        raw_offers = await client.get_offers()
        await client.aclose()
    """

    def __init__(
        self,
        config: OfferEngineConfig,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            config: Offer engine config (base URL, language, timeout)
            client: Optional preconfigured httpx client (tests inject a
                MockTransport here); created on demand otherwise
        """
        self.config = config
        self._client = client
        self._owns_client = client is None

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Accept-Language": self.config.accept_language,
        }

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.request_timeout_seconds)
        return self._client

    async def get_offers(self) -> List[Any]:
        """
        GET /offers and return the raw records.

        Raises:
            OfferFetchError: on transport errors, non-2xx responses, non-JSON
                bodies, or an unrecognized payload shape
        """
        url = self.config.offers_url
        try:
            response = await self._get_client().get(url, headers=self._get_headers())
        except httpx.HTTPError as e:
            raise OfferFetchError(f"Request to {url} failed: {e}") from e

        if response.status_code < 200 or response.status_code >= 300:
            raise OfferFetchError(
                f"Offers request failed: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise OfferFetchError(
                f"Offers response is not JSON: {e}", status_code=response.status_code
            ) from e

        items = extract_offer_items(payload)
        logger.debug(f"Fetched {len(items)} raw offers from {url}")
        return items

    async def aclose(self) -> None:
        """Close the underlying client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
