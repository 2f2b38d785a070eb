"""
Offer Engine Errors

Nothing raised here is fatal to the host application: fetch errors keep the
last snapshot alive and malformed records are skipped one at a time.
"""

from typing import Optional


class OfferEngineError(Exception):
    """Base class for offer engine errors."""


class OfferFetchError(OfferEngineError):
    """The offers endpoint failed or returned an unusable payload."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedOfferError(OfferEngineError):
    """A single offer record could not be normalized."""

    def __init__(self, message: str, offer_id=None):
        super().__init__(message)
        self.offer_id = offer_id
