"""
Audience values for service access tokens.

The audience decides what the issued token is used for:

- SERVICE: bearer token in the Authorization header of service-to-service
  calls to the Store services.
- PURCHASE: handed to the client so it can mint a user purchase id.
- COLLECTIONS: handed to the client so it can mint a user collections id.
"""

SERVICE = "https://onestore.microsoft.com"
PURCHASE = "https://onestore.microsoft.com/b2b/keys/create/purchase"
COLLECTIONS = "https://onestore.microsoft.com/b2b/keys/create/collections"

# Short names accepted by the CLI
BY_NAME = {
    "service": SERVICE,
    "purchase": PURCHASE,
    "collections": COLLECTIONS,
}
