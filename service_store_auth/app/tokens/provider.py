"""
Client-credentials token provider for the Store services.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx
from opentelemetry import trace
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from shared.config import StoreAuthConfig, TOKEN_ENDPOINT_TEMPLATE
from shared.errors import (
    ConfigurationError,
    ErrorResponse,
    RemoteExchangeError,
    StoreServicesException,
    error_response_from,
)
from shared.logging import get_logger
from shared.metrics import MetricsCollector, get_metrics_collector
from ..transport import HttpTransport
from . import audiences

tracer = trace.get_tracer(__name__)


class AccessToken(BaseModel):
    """Bearer token issued for a single audience.

    Attributes:
        token: The opaque bearer token
        token_type: Token type (usually "Bearer")
        audience: Audience the token was issued for
        expires_in: Lifetime in seconds reported by the token endpoint
        expires_at: Absolute expiry time (UTC)
        not_before: Start of validity (UTC), when reported
    """

    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "Bearer"
    audience: str
    expires_in: int = 0
    expires_at: datetime
    not_before: Optional[datetime] = None

    @field_validator("expires_at", "not_before")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @property
    def authorization_header(self) -> str:
        return f"{self.token_type} {self.token}"

    def is_expired(self, buffer_seconds: int = 0, now: Optional[datetime] = None) -> bool:
        """Check if token is expired or will expire within buffer period."""
        now = now or datetime.now(timezone.utc)
        return self.expires_at <= now + timedelta(seconds=buffer_seconds)


class TokenEndpointResponse(BaseModel):
    """Body returned by the AAD v1 token endpoint."""

    access_token: str = Field(validation_alias=AliasChoices("access_token", "accessToken"))
    token_type: str = Field(default="Bearer", validation_alias=AliasChoices("token_type", "tokenType"))
    expires_in: int = Field(default=0, validation_alias=AliasChoices("expires_in", "expiresIn"))
    expires_on: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("expires_on", "expiresOn"))
    not_before: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("not_before", "notBefore"))
    resource: Optional[str] = None

    def to_access_token(self, requested_audience: str, issued_at: datetime) -> AccessToken:
        expires_at = self.expires_on or issued_at + timedelta(seconds=self.expires_in)
        return AccessToken(
            token=self.access_token,
            token_type=self.token_type,
            audience=self.resource or requested_audience,
            expires_in=self.expires_in,
            expires_at=expires_at,
            not_before=self.not_before,
        )


class IssueResult(BaseModel):
    """Outcome of a token request, for callers that do not want exceptions."""

    success: bool
    audience: str
    credential: Optional[AccessToken] = None
    error: Optional[ErrorResponse] = None


class ServiceCredentialIssuer:
    """Issues audience-scoped access tokens with the client-credentials grant.

    Example:
        issuer = ServiceCredentialIssuer(
            tenant_id="contoso.onmicrosoft.com",
            client_id="store-service",
            client_secret="secret",  # pragma: allowlist secret
        )
        service_token = await issuer.issue_service()
    """

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        transport: Optional[HttpTransport] = None,
        token_endpoint_template: str = TOKEN_ENDPOINT_TEMPLATE,
        metrics: Optional[MetricsCollector] = None,
    ):
        if not tenant_id:
            raise ConfigurationError("tenant_id")
        if not client_id:
            raise ConfigurationError("client_id")
        if not client_secret:
            raise ConfigurationError("client_secret")

        self._tenant_id = tenant_id
        self._client_id = client_id
        self._client_secret = client_secret
        self._token_endpoint_template = token_endpoint_template
        self.transport = transport or HttpTransport()
        self.metrics = metrics or get_metrics_collector()
        self.logger = get_logger("store_auth.tokens")

    @classmethod
    def from_config(
        cls,
        config: StoreAuthConfig,
        transport: Optional[HttpTransport] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> "ServiceCredentialIssuer":
        """Build an issuer from settings."""
        return cls(
            config.tenant_id,
            config.client_id,
            config.client_secret,
            transport=transport or HttpTransport(timeout=config.http_timeout),
            token_endpoint_template=config.token_endpoint_template,
            metrics=metrics,
        )

    @property
    def tenant_id(self) -> str:
        return self._tenant_id

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def token_endpoint(self) -> str:
        return self._token_endpoint_template.format(tenant_id=self._tenant_id)

    async def issue_service(self) -> AccessToken:
        return await self.issue(audiences.SERVICE)

    async def issue_collections(self) -> AccessToken:
        return await self.issue(audiences.COLLECTIONS)

    async def issue_purchase(self) -> AccessToken:
        return await self.issue(audiences.PURCHASE)

    async def issue(self, audience: str) -> AccessToken:
        """Request a new access token for ``audience``.

        Sends exactly one request; nothing is cached or retried.

        Raises:
            ConfigurationError: If audience is empty (no request is sent)
            RemoteExchangeError: If the token endpoint rejects the request or
                answers with an unreadable body
            httpx.TransportError: If the request itself fails
        """
        if not audience:
            raise ConfigurationError("audience")

        form = {
            "grant_type": "client_credentials",
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "resource": audience,
        }

        with tracer.start_as_current_span("store_auth.issue") as span:
            span.set_attribute("store_auth.audience", audience)
            span.set_attribute("store_auth.client_id", self._client_id)

            self.logger.info(
                "Requesting access token",
                audience=audience,
                client_id=self._client_id,
                tenant_id=self._tenant_id
            )

            issued_at = datetime.now(timezone.utc)
            try:
                with self.metrics.time_operation("token_request_duration_seconds", audience=audience):
                    async with self.transport.client() as client:
                        response = await client.post(self.token_endpoint, data=form)
            except httpx.TransportError:
                self.metrics.increment_counter("token_requests_total", audience=audience, status="transport_error")
                raise

            span.set_attribute("http.status_code", response.status_code)

            if not response.is_success:
                self.metrics.increment_counter("token_requests_total", audience=audience, status="rejected")
                raise RemoteExchangeError(
                    target=audience,
                    message=f"Unable to acquire access token for {audience} : {response.reason_phrase}",
                    status_code=response.status_code,
                    reason=response.reason_phrase,
                )

            try:
                token = TokenEndpointResponse.model_validate(response.json()).to_access_token(audience, issued_at)
            except ValueError as e:
                self.metrics.increment_counter("token_requests_total", audience=audience, status="invalid_response")
                raise RemoteExchangeError(
                    target=audience,
                    message=f"Invalid token response for {audience}",
                    status_code=response.status_code,
                    reason=str(e),
                ) from e

            self.metrics.increment_counter("token_requests_total", audience=audience, status="success")
            self.logger.info(
                "Access token acquired",
                audience=token.audience,
                expires_at=token.expires_at.isoformat()
            )

            return token

    async def try_issue(self, audience: str) -> IssueResult:
        """Like ``issue`` but reports failures in the result instead of raising."""
        try:
            credential = await self.issue(audience)
        except (StoreServicesException, httpx.TransportError) as e:
            return IssueResult(success=False, audience=audience, error=error_response_from(e))

        return IssueResult(success=True, audience=audience, credential=credential)
