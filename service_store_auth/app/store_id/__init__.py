"""
User store ids.

A user store id (UserCollectionsId or UserPurchaseId) is minted by the
client with a key-creation access token and handed to the service, which
uses it to act on behalf of that user. Its claims say when it expires and
where to refresh it.
"""

from .claims import (
    COLLECTIONS_AUDIENCE,
    PURCHASE_AUDIENCE,
    StoreIdClaims,
    StoreIdType,
    classify_audience,
    decode_store_id_claims,
)
from .user_store_id import RefreshResult, ScopedIdentityCredential, StoreIdSnapshot

__all__ = [
    "COLLECTIONS_AUDIENCE",
    "PURCHASE_AUDIENCE",
    "StoreIdClaims",
    "StoreIdType",
    "classify_audience",
    "decode_store_id_claims",
    "RefreshResult",
    "ScopedIdentityCredential",
    "StoreIdSnapshot",
]
