"""
Service access token acquisition.

Performs the OAuth2 client-credentials grant against the AAD token endpoint
of the configured tenant. Every call is one request: caching the result per
audience is left to the caller.
"""

from . import audiences
from .provider import AccessToken, IssueResult, ServiceCredentialIssuer

__all__ = ["audiences", "AccessToken", "IssueResult", "ServiceCredentialIssuer"]
