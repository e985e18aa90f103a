"""
User store id (UserCollectionsId / UserPurchaseId) with in-place refresh.
"""

from datetime import datetime, timezone
from typing import Optional, Union

import httpx
from opentelemetry import trace
from pydantic import BaseModel, ConfigDict, Field

from shared.errors import (
    ErrorResponse,
    MalformedCredentialError,
    RemoteExchangeError,
    StoreServicesException,
    error_response_from,
)
from shared.logging import get_logger
from shared.metrics import MetricsCollector, get_metrics_collector
from ..tokens.provider import AccessToken
from ..transport import HttpTransport
from .claims import StoreIdType, classify_audience, decode_store_id_claims

tracer = trace.get_tracer(__name__)


class StoreIdSnapshot(BaseModel):
    """Key plus everything derived from its claims, replaced as one unit."""

    model_config = ConfigDict(frozen=True)

    key: str
    key_type: StoreIdType
    expires: datetime
    refresh_uri: str

    @classmethod
    def from_key(cls, key: str) -> "StoreIdSnapshot":
        claims = decode_store_id_claims(key)
        return cls(
            key=key,
            key_type=classify_audience(claims.audience),
            expires=claims.expires_on,
            refresh_uri=claims.refresh_uri,
        )


class StoreIdRefreshRequest(BaseModel):
    """Body posted to the refresh URI of a store id."""

    model_config = ConfigDict(populate_by_name=True)

    service_token: str = Field(alias="serviceToken")
    user_store_id: str = Field(alias="userStoreId")


class StoreIdRefreshResponse(BaseModel):
    key: str


class RefreshResult(BaseModel):
    """Outcome of a refresh, for callers that do not want exceptions."""

    success: bool
    key_type: StoreIdType
    expires: datetime
    error: Optional[ErrorResponse] = None


class ScopedIdentityCredential:
    """A user store id whose metadata always matches its current key.

    ``key_type``, ``expires`` and ``refresh_uri`` are read from the key's
    claims and never set on their own. A successful ``refresh`` swaps in a
    new snapshot in one assignment, so readers see either the old four
    fields or the new four fields. A failed refresh leaves the old snapshot
    in place.

    Concurrent refreshes on one instance are not serialized; each sends its
    own request and the last one to finish wins.
    """

    def __init__(
        self,
        store_id_key: str,
        transport: Optional[HttpTransport] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self._snapshot = StoreIdSnapshot.from_key(store_id_key)
        self.transport = transport or HttpTransport()
        self.metrics = metrics or get_metrics_collector()
        self.logger = get_logger("store_auth.store_id")

    @property
    def snapshot(self) -> StoreIdSnapshot:
        return self._snapshot

    @property
    def key(self) -> str:
        return self._snapshot.key

    @property
    def key_type(self) -> StoreIdType:
        return self._snapshot.key_type

    @property
    def expires(self) -> datetime:
        return self._snapshot.expires

    @property
    def refresh_uri(self) -> str:
        return self._snapshot.refresh_uri

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self._snapshot.expires

    def __repr__(self) -> str:
        snapshot = self._snapshot
        return (
            f"ScopedIdentityCredential(key_type={snapshot.key_type.value}, "
            f"expires={snapshot.expires.isoformat()}, refresh_uri={snapshot.refresh_uri})"
        )

    async def refresh(self, service_access_token: Union[str, AccessToken]) -> bool:
        """Exchange the current key for a new one via its refresh URI.

        Args:
            service_access_token: A valid token for the service audience,
                either raw or as an AccessToken. Its expiry is not checked.

        Returns:
            True once the new key has been decoded and swapped in

        Raises:
            RemoteExchangeError: If the refresh endpoint rejects the request
                or answers with an unreadable body
            MalformedCredentialError: If the returned key cannot be decoded
            httpx.TransportError: If the request itself fails
        """
        if isinstance(service_access_token, AccessToken):
            service_access_token = service_access_token.token

        attempted = self._snapshot
        request = StoreIdRefreshRequest(service_token=service_access_token, user_store_id=attempted.key)
        key_type = attempted.key_type.value

        with tracer.start_as_current_span("store_auth.refresh") as span:
            span.set_attribute("store_auth.key_type", key_type)
            span.set_attribute("store_auth.refresh_uri", attempted.refresh_uri)

            self.logger.info(
                "Refreshing store id",
                key_type=key_type,
                refresh_uri=attempted.refresh_uri,
                expires=attempted.expires.isoformat()
            )

            try:
                with self.metrics.time_operation("store_id_refresh_duration_seconds", key_type=key_type):
                    async with self.transport.client() as client:
                        response = await client.post(
                            attempted.refresh_uri,
                            json=request.model_dump(by_alias=True)
                        )
            except httpx.TransportError:
                self.metrics.increment_counter("store_id_refresh_total", key_type=key_type, status="transport_error")
                raise

            span.set_attribute("http.status_code", response.status_code)

            if not response.is_success:
                self.metrics.increment_counter("store_id_refresh_total", key_type=key_type, status="rejected")
                raise RemoteExchangeError(
                    target=attempted.refresh_uri,
                    message=f"Unable to refresh store id at {attempted.refresh_uri} : {response.reason_phrase}",
                    status_code=response.status_code,
                    reason=response.reason_phrase,
                )

            try:
                body = StoreIdRefreshResponse.model_validate(response.json())
            except ValueError as e:
                self.metrics.increment_counter("store_id_refresh_total", key_type=key_type, status="invalid_response")
                raise RemoteExchangeError(
                    target=attempted.refresh_uri,
                    message=f"Invalid refresh response from {attempted.refresh_uri}",
                    status_code=response.status_code,
                    reason=str(e),
                ) from e

            try:
                refreshed = StoreIdSnapshot.from_key(body.key)
            except MalformedCredentialError:
                self.metrics.increment_counter("store_id_refresh_total", key_type=key_type, status="invalid_response")
                raise

            self._snapshot = refreshed

            self.metrics.increment_counter("store_id_refresh_total", key_type=key_type, status="success")
            self.logger.info(
                "Store id refreshed",
                key_type=refreshed.key_type.value,
                expires=refreshed.expires.isoformat()
            )

            return True

    async def try_refresh(self, service_access_token: Union[str, AccessToken]) -> RefreshResult:
        """Like ``refresh`` but reports failures in the result instead of raising."""
        try:
            await self.refresh(service_access_token)
        except (StoreServicesException, httpx.TransportError) as e:
            snapshot = self._snapshot
            return RefreshResult(
                success=False,
                key_type=snapshot.key_type,
                expires=snapshot.expires,
                error=error_response_from(e),
            )

        snapshot = self._snapshot
        return RefreshResult(success=True, key_type=snapshot.key_type, expires=snapshot.expires)
