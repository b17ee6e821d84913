"""
Attempt loop driving one logical call through its physical attempts
"""
import asyncio
import logging
import time
from typing import Callable, List, Optional

import httpx

from .cancellation import CancellationToken
from .config import is_success_status, should_stop
from .errors import FetchAbortedError
from .transport import Transport
from .types import (
    AttemptOutcome,
    FetchEvent,
    FetchEventListener,
    OutcomeKind,
    RequestTarget,
    RetryPolicy,
    TIMEOUT_RESPONSE_BODY,
    TIMEOUT_STATUS_CODE,
)

logger = logging.getLogger(__name__)


def create_timeout_response(request: httpx.Request) -> httpx.Response:
    """Synthesize the 408 response standing in for a timed out attempt."""
    return httpx.Response(TIMEOUT_STATUS_CODE, text=TIMEOUT_RESPONSE_BODY, request=request)


class FetchExecutor:
    """
    Fetch Executor

    Runs the attempt loop of a logical call:
    - Sequential attempts, never more than the policy allows
    - Per-attempt deadline raced against the transport
    - Caller cancellation aborting the in-flight attempt
    - Event emission for observability
    """

    def __init__(self, transport: Transport, executor_id: Optional[str] = None):
        """
        Create a new FetchExecutor.

        Args:
            transport: Transport performing the physical requests
            executor_id: Optional unique identifier
        """
        self._transport = transport
        self._id = executor_id or f"fetch-{int(time.time() * 1000)}"
        self._listeners: List[FetchEventListener] = []

    def _emit(self, event: FetchEvent) -> None:
        """Emit an event to all listeners."""
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as error:
                logger.debug(f"FetchExecutor._emit: listener failed on {event.type}: {error!r}")

    async def execute(
        self,
        target: RequestTarget,
        policy: RetryPolicy,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> AttemptOutcome:
        """
        Execute a logical call.

        Args:
            target: Resolved request
            policy: Attempt budget, delay and per-attempt deadline
            cancellation_token: Caller token aborting the whole call

        Returns:
            Outcome of the last attempt

        Raises:
            FetchAbortedError: If the caller token fires
            Exception: Whatever the transport raises; transport errors
                are not retried
        """
        start_time = time.monotonic()
        attempt = 0

        while True:
            if cancellation_token is not None and cancellation_token.cancelled:
                self._abort(target, attempt, cancellation_token)

            attempt += 1
            outcome = await self._run_attempt(target, policy, attempt, cancellation_token)

            if should_stop(outcome.status_code, attempt, policy.attempts):
                break

            self._emit(FetchEvent(
                type="retry:wait",
                attempt=attempt,
                url=target.url,
                data={"delay_seconds": policy.retry_delay, "status": outcome.status_code},
            ))
            logger.debug(
                f"FetchExecutor.execute: {target.method} {target.url} got {outcome.status_code} "
                f"on attempt {attempt}/{policy.attempts}, retrying in {policy.retry_delay}s"
            )
            await self._wait(policy.retry_delay, target, attempt, cancellation_token)

        logger.debug(
            f"FetchExecutor.execute: {target.method} {target.url} settled with {outcome.status_code} "
            f"after {attempt} attempt(s) in {time.monotonic() - start_time:.3f}s"
        )
        return outcome

    async def _run_attempt(
        self,
        target: RequestTarget,
        policy: RetryPolicy,
        attempt: int,
        cancellation_token: Optional[CancellationToken],
    ) -> AttemptOutcome:
        """Run one physical attempt and classify how it settled."""
        token = CancellationToken(parent=cancellation_token)
        timer = token.cancel_after(policy.timeout) if policy.timeout is not None else None
        request = target.build_request()
        attempt_start = time.monotonic()

        self._emit(FetchEvent(type="attempt:start", attempt=attempt, url=target.url))

        try:
            response = await self._race(request, token)
        except Exception as error:
            self._emit(FetchEvent(
                type="attempt:fail",
                attempt=attempt,
                url=target.url,
                data={
                    "outcome": AttemptOutcome(OutcomeKind.TRANSPORT_ERROR, attempt, error=error),
                    "error": str(error),
                    "will_retry": False,
                },
            ))
            logger.warning(
                f"FetchExecutor._run_attempt: transport error on {target.method} {target.url} "
                f"(attempt {attempt}): {error!r}"
            )
            raise
        finally:
            if timer is not None:
                timer.cancel()
            token.dispose()

        duration = time.monotonic() - attempt_start

        if response is None:
            if cancellation_token is not None and cancellation_token.cancelled:
                self._abort(target, attempt, cancellation_token)

            outcome = AttemptOutcome(
                OutcomeKind.TIMED_OUT, attempt, response=create_timeout_response(request)
            )
            self._emit(FetchEvent(
                type="attempt:timeout",
                attempt=attempt,
                url=target.url,
                data={
                    "outcome": outcome,
                    "timeout_seconds": policy.timeout,
                    "will_retry": not should_stop(outcome.status_code, attempt, policy.attempts),
                },
            ))
            logger.debug(
                f"FetchExecutor._run_attempt: attempt {attempt} on {target.url} "
                f"timed out after {policy.timeout}s"
            )
            return outcome

        if is_success_status(response.status_code):
            outcome = AttemptOutcome(OutcomeKind.SUCCESS, attempt, response=response)
            self._emit(FetchEvent(
                type="attempt:success",
                attempt=attempt,
                url=target.url,
                data={"outcome": outcome, "duration_seconds": duration},
            ))
            return outcome

        outcome = AttemptOutcome(OutcomeKind.FAILURE, attempt, response=response)
        self._emit(FetchEvent(
            type="attempt:fail",
            attempt=attempt,
            url=target.url,
            data={
                "outcome": outcome,
                "status": response.status_code,
                "duration_seconds": duration,
                "will_retry": not should_stop(response.status_code, attempt, policy.attempts),
            },
        ))
        return outcome

    async def _race(
        self, request: httpx.Request, token: CancellationToken
    ) -> Optional[httpx.Response]:
        """
        Race the transport against the attempt token.

        Returns:
            The transport response, or None when the token fired first
        """
        transport_task = asyncio.ensure_future(self._transport(request, token))
        cancel_task = asyncio.ensure_future(token.wait())

        try:
            await asyncio.wait(
                {transport_task, cancel_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            pending = [task for task in (transport_task, cancel_task) if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        if token.cancelled and not _completed_normally(transport_task):
            if transport_task.done() and not transport_task.cancelled():
                logger.debug(
                    f"FetchExecutor._race: transport failed after cancellation: "
                    f"{transport_task.exception()!r}"
                )
            return None

        return transport_task.result()

    async def _wait(
        self,
        delay: float,
        target: RequestTarget,
        attempt: int,
        cancellation_token: Optional[CancellationToken],
    ) -> None:
        """Pause between attempts; the caller token cuts the pause short."""
        if cancellation_token is None:
            await asyncio.sleep(delay)
            return

        try:
            await asyncio.wait_for(cancellation_token.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        self._abort(target, attempt, cancellation_token)

    def _abort(
        self,
        target: RequestTarget,
        attempt: int,
        cancellation_token: CancellationToken,
    ) -> None:
        self._emit(FetchEvent(
            type="retry:abort",
            attempt=attempt,
            url=target.url,
            data={"reason": cancellation_token.reason},
        ))
        logger.warning(
            f"FetchExecutor._abort: {target.method} {target.url} aborted by caller "
            f"after {attempt} attempt(s)"
        )
        raise FetchAbortedError(target.url, attempts=attempt, reason=cancellation_token.reason)

    def on(self, listener: FetchEventListener) -> Callable[[], None]:
        """
        Add an event listener.

        Args:
            listener: Event listener function

        Returns:
            Function to remove the listener
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def off(self, listener: FetchEventListener) -> None:
        """Remove an event listener."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def id(self) -> str:
        """Get the executor ID."""
        return self._id

    @property
    def transport(self) -> Transport:
        return self._transport


def _completed_normally(task: "asyncio.Future") -> bool:
    return task.done() and not task.cancelled() and task.exception() is None
