"""
Shared error handling for the Store Services credential layer.
"""

from typing import Dict, Any, Optional

import httpx
from opentelemetry import trace
from pydantic import BaseModel


# Network failures (connect, DNS, timeout) surface as httpx errors unchanged.
TransportError = httpx.TransportError


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class StoreServicesException(Exception):
    """Base exception for credential acquisition and refresh."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"

        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class ConfigurationError(StoreServicesException, ValueError):
    """A required construction or call input is missing or empty."""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(
            "CONFIGURATION_ERROR",
            message or f"{field} required",
            {"field": field}
        )


class MalformedCredentialError(StoreServicesException):
    """A signed credential could not be split or its claims decoded."""

    def __init__(self, message: str = "Malformed credential", details: Optional[Dict[str, Any]] = None):
        super().__init__("MALFORMED_CREDENTIAL", message, details)


class RemoteExchangeError(StoreServicesException):
    """A token or refresh endpoint answered with a non-success result."""

    def __init__(
        self,
        target: str,
        message: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        self.target = target
        self.status_code = status_code
        self.reason = reason
        super().__init__(
            "REMOTE_EXCHANGE_ERROR",
            message,
            {"target": target, "status_code": status_code, "reason": reason}
        )


def error_response_from(exc: Exception) -> ErrorResponse:
    """Map a credential or transport failure onto an ErrorResponse."""
    if isinstance(exc, StoreServicesException):
        return exc.to_response()
    return StoreServicesException(
        "TRANSPORT_ERROR",
        str(exc) or exc.__class__.__name__,
        {"error_type": exc.__class__.__name__}
    ).to_response()
