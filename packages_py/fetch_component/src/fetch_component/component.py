"""
Fetch component: resilient wrapper around a single HTTP call.
"""
import logging
from typing import Any, Callable, Iterable, Mapping, Optional, Union

import httpx

from .cancellation import CancellationToken
from .config import (
    DEFAULT_COMPONENT_OPTIONS,
    build_target,
    is_success_status,
    resolve_options,
    resolve_prevent_throwing,
    resolve_retry_policy,
)
from .errors import FetchError
from .executor import FetchExecutor
from .transport import HttpxTransport, Transport, transport_buffers_responses
from .types import (
    FetchComponentOptions,
    FetchEventListener,
    HeaderTypes,
    RequestOptions,
)

logger = logging.getLogger(__name__)


class FetchComponent:
    """
    Fetch component.

    Wraps a transport with bounded retries, per-attempt timeouts, caller
    cancellation and default header/option merging.

    Example:
        async with create_fetch_component(
            FetchComponentOptions(default_headers={"User-Agent": "svc/1.0"})
        ) as component:
            response = await component.fetch(
                "https://api.example.com/items",
                attempts=3,
                retry_delay=0.5,
                timeout=10.0,
            )
            items = response.json()
    """

    def __init__(
        self,
        options: Optional[FetchComponentOptions] = None,
        *,
        transport: Optional[Transport] = None,
        listeners: Optional[Iterable[FetchEventListener]] = None,
    ) -> None:
        """
        Create a new FetchComponent.

        Args:
            options: Component-level defaults
            transport: Transport to send requests with. An HttpxTransport
                owned by the component is created when omitted.
            listeners: Event listeners registered on the executor
        """
        self._options = options or DEFAULT_COMPONENT_OPTIONS
        self._owns_transport = transport is None
        self._transport: Transport = transport if transport is not None else HttpxTransport()
        self._buffer_responses = not transport_buffers_responses(self._transport)
        self._executor = FetchExecutor(self._transport)
        for listener in listeners or ():
            self._executor.on(listener)

    async def fetch(
        self,
        url: Union[str, httpx.URL],
        *,
        method: Optional[str] = None,
        headers: Optional[HeaderTypes] = None,
        body: Optional[Union[str, bytes]] = None,
        json: Optional[Any] = None,
        params: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
        attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        cancellation_token: Optional[CancellationToken] = None,
        prevent_throwing: Optional[bool] = None,
    ) -> httpx.Response:
        """
        Perform one logical call.

        Args:
            url: Target URL
            method: HTTP method. Default: GET
            headers: Headers overriding same-named default headers
            body: Raw request body
            json: JSON request body
            params: Query parameters
            timeout: Deadline per attempt (seconds)
            attempts: Attempt budget; forced to 1 for non-idempotent methods
            retry_delay: Pause between attempts (seconds)
            cancellation_token: Token aborting the whole call
            prevent_throwing: Return a non-2xx final response instead of raising

        Returns:
            The final response

        Raises:
            FetchError: If the final response is not 2xx and throwing is not prevented
            FetchAbortedError: If the cancellation token fires
            ValueError: If attempts, retry_delay or timeout is out of range
        """
        call_options = RequestOptions(
            method=method,
            headers=headers,
            body=body,
            json=json,
            params=params,
            timeout=timeout,
            attempts=attempts,
            retry_delay=retry_delay,
            cancellation_token=cancellation_token,
            prevent_throwing=prevent_throwing,
        )
        options = resolve_options(self._options, call_options)
        policy = resolve_retry_policy(options)
        target = build_target(str(url), options)

        logger.debug(
            f"FetchComponent.fetch: {target.method} {target.url} attempts={policy.attempts} "
            f"retry_delay={policy.retry_delay} timeout={policy.timeout}"
        )

        outcome = await self._executor.execute(target, policy, options.cancellation_token)
        response = outcome.response

        if is_success_status(response.status_code):
            return await self._materialize(response)

        if resolve_prevent_throwing(self._options, options):
            logger.debug(
                f"FetchComponent.fetch: returning {response.status_code} from {target.url} "
                f"without raising"
            )
            return await self._materialize(response)

        await response.aread()
        raise FetchError(target.url, response.status_code, response.text, response)

    async def _materialize(self, response: httpx.Response) -> httpx.Response:
        """Read the body of a streamed response so content, text and json() work."""
        if self._buffer_responses:
            await response.aread()
        return response

    def on(self, listener: FetchEventListener) -> Callable[[], None]:
        """Add an event listener. Returns a function removing it."""
        return self._executor.on(listener)

    def off(self, listener: FetchEventListener) -> None:
        """Remove an event listener."""
        self._executor.off(listener)

    @property
    def options(self) -> FetchComponentOptions:
        """Get the component defaults."""
        return self._options

    @property
    def transport(self) -> Transport:
        return self._transport

    async def aclose(self) -> None:
        """Close the transport if the component created it."""
        if self._owns_transport:
            await self._transport.aclose()

    async def __aenter__(self) -> "FetchComponent":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


def create_fetch_component(
    options: Optional[FetchComponentOptions] = None,
    *,
    transport: Optional[Transport] = None,
    listeners: Optional[Iterable[FetchEventListener]] = None,
) -> FetchComponent:
    """
    Create a fetch component.

    Args:
        options: Component-level defaults (default headers, default fetcher
            options, prevent_throwing)
        transport: Transport to send requests with
        listeners: Event listeners

    Returns:
        New FetchComponent

    Example:
        component = create_fetch_component(
            FetchComponentOptions(default_headers={"X-Custom": "Test"})
        )
        response = await component.fetch("https://example.com", attempts=3)
    """
    return FetchComponent(options, transport=transport, listeners=listeners)
