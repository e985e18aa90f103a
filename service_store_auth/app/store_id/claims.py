"""
Claims carried inside a user store id.

A user store id is a JWT minted client-side. Its own payload says which
audience it was issued for, when it expires and where it can be refreshed.
The signature is not verified here; the Store services do that when the
key is presented to them.
"""

from datetime import datetime, timezone
from enum import Enum

from jose import jwt
from jose.exceptions import JWTError
from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from shared.errors import MalformedCredentialError


COLLECTIONS_AUDIENCE = "https://collections.mp.microsoft.com/v6.0/keys"
PURCHASE_AUDIENCE = "https://purchase.mp.microsoft.com/v6.0/keys"

REFRESH_URI_CLAIM = "http://schemas.microsoft.com/marketplace/2015/08/claims/key/refreshUri"


class StoreIdType(str, Enum):
    """Which kind of user store id a key is."""

    COLLECTIONS_IDENTITY = "collections_identity"
    PURCHASE_IDENTITY = "purchase_identity"
    UNKNOWN = "unknown"


_TYPES_BY_AUDIENCE = {
    COLLECTIONS_AUDIENCE: StoreIdType.COLLECTIONS_IDENTITY,
    PURCHASE_AUDIENCE: StoreIdType.PURCHASE_IDENTITY,
}


def classify_audience(audience: str) -> StoreIdType:
    """Map an audience onto its store id type; anything unrecognised is UNKNOWN."""
    return _TYPES_BY_AUDIENCE.get(audience, StoreIdType.UNKNOWN)


class StoreIdClaims(BaseModel):
    """The subset of store id claims used to track and refresh the key.

    Both the short names and the claim names found on the wire are accepted.
    """

    audience: str = Field(validation_alias=AliasChoices("audience", "aud"))
    expires_on: datetime = Field(validation_alias=AliasChoices("expiresOn", "expires_on", "exp"))
    refresh_uri: str = Field(validation_alias=AliasChoices("refreshUri", "refresh_uri", REFRESH_URI_CLAIM))

    @field_validator("expires_on")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def decode_store_id_claims(store_id_key: str) -> StoreIdClaims:
    """Decode the payload segment of ``store_id_key`` into StoreIdClaims.

    Raises:
        MalformedCredentialError: If the key is not a JWS or its payload is
            not a claims object carrying audience, expiry and refresh URI
    """
    if not store_id_key:
        raise MalformedCredentialError("Store id key is empty")

    try:
        payload = jwt.get_unverified_claims(store_id_key)
    except JWTError as e:
        raise MalformedCredentialError(
            f"Store id key is not a well-formed token: {e}",
            details={"reason": str(e)}
        ) from e

    try:
        return StoreIdClaims.model_validate(payload)
    except ValidationError as e:
        raise MalformedCredentialError(
            "Store id claims are incomplete or invalid",
            details={"errors": [error["msg"] for error in e.errors()]}
        ) from e
