"""
HTTP transport shared by the token provider and store id refresh.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx


DEFAULT_TIMEOUT = 10.0


class HttpTransport:
    """Hands out an ``httpx.AsyncClient`` for a single outbound call.

    When the embedding application supplies a client (typically one pooled
    client per process) it is reused and never closed here. Otherwise a plain
    client is opened for the call and closed afterwards.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = DEFAULT_TIMEOUT):
        self._client = client
        self.timeout = timeout

    @property
    def is_shared(self) -> bool:
        return self._client is not None

    @asynccontextmanager
    async def client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                yield client
