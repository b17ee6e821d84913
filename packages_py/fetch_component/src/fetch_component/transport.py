"""
Transport boundary for fetch_component.

A transport performs one physical HTTP exchange. It receives the attempt's
cancellation token and should stop promptly once the token fires; the
executor also cancels the transport task itself, so honouring the token is
cooperative rather than required.
"""
import logging
from typing import Optional, Protocol, runtime_checkable

import httpx

from .cancellation import CancellationToken
from .config import is_ssl_verify_disabled_by_env

logger = logging.getLogger(__name__)


@runtime_checkable
class Transport(Protocol):
    """Injectable fetch-like callable."""

    async def __call__(
        self, request: httpx.Request, token: CancellationToken
    ) -> httpx.Response:
        ...


class HttpxTransport:
    """
    Default transport backed by httpx.AsyncClient.

    Responses come back fully read, so the component does not need to
    buffer them.

    Example:
        transport = HttpxTransport(httpx.AsyncClient(proxy="http://proxy:8080"))
        component = create_fetch_component(transport=transport)
    """

    buffers_responses = True

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        verify: Optional[bool] = None,
    ) -> None:
        """
        Create a new HttpxTransport.

        Args:
            client: Client to send requests with. Created when omitted.
            verify: TLS verification for a created client. Defaults to
                on unless disabled through the environment.
        """
        if client is not None:
            self._client = client
            self._owns_client = False
        else:
            if verify is None:
                verify = not is_ssl_verify_disabled_by_env()
            # Deadlines are enforced per attempt by the executor
            self._client = httpx.AsyncClient(timeout=None, verify=verify)
            self._owns_client = True

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def __call__(
        self, request: httpx.Request, token: CancellationToken
    ) -> httpx.Response:
        logger.debug(f"HttpxTransport.__call__: {request.method} {request.url}")
        return await self._client.send(request)

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()


def transport_buffers_responses(transport: object) -> bool:
    """Check once whether a transport returns responses with the body read."""
    return getattr(type(transport), "buffers_responses", False) is True
