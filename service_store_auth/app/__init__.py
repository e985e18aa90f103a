"""
Credential lifecycle for calls against the Store services.

- tokens: client-credentials access tokens per audience
- store_id: user store ids decoded from their own claims, refreshed in place
- transport: injectable HTTP client shared by both
"""

from .store_id import ScopedIdentityCredential, StoreIdType
from .tokens import AccessToken, ServiceCredentialIssuer
from .transport import HttpTransport

__all__ = [
    "AccessToken",
    "HttpTransport",
    "ScopedIdentityCredential",
    "ServiceCredentialIssuer",
    "StoreIdType",
]
