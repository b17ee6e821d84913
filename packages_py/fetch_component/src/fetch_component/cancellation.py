"""
Cancellation tokens for aborting in-flight requests.

A token is a one-shot flag backed by an asyncio.Event. Tokens can be
linked: a child token is cancelled whenever its parent is, which lets a
per-attempt token observe both its own deadline and the caller's token.
"""
import asyncio
import logging
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

TIMEOUT_REASON = "timeout"


class CancellationToken:
    """
    One-shot cancellation signal.

    Example:
        token = CancellationToken()
        task = asyncio.create_task(component.fetch(url, cancellation_token=token))
        token.cancel("user navigated away")
        await task  # raises FetchAbortedError
    """

    def __init__(self, parent: Optional["CancellationToken"] = None) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[str] = None
        self._callbacks: List[Callable[[Optional[str]], None]] = []
        self._parent = parent
        self._unlink: Optional[Callable[[], None]] = None

        if parent is not None:
            if parent.cancelled:
                self.cancel(parent.reason)
            else:
                self._unlink = parent.add_callback(self.cancel)

    @property
    def cancelled(self) -> bool:
        """Whether cancel() has been called."""
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        """Reason passed to cancel(), if any."""
        return self._reason

    @property
    def parent(self) -> Optional["CancellationToken"]:
        return self._parent

    def cancel(self, reason: Optional[str] = None) -> None:
        """Cancel the token. Later calls are ignored."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback(reason)
            except Exception as error:
                logger.warning(f"CancellationToken.cancel: callback failed: {error!r}")

    async def wait(self) -> Optional[str]:
        """Wait until the token is cancelled and return the reason."""
        await self._event.wait()
        return self._reason

    def add_callback(self, callback: Callable[[Optional[str]], None]) -> Callable[[], None]:
        """
        Register a callback run once on cancellation.

        Runs immediately if the token is already cancelled.

        Returns:
            Function to remove the callback
        """
        if self.cancelled:
            callback(self._reason)
            return lambda: None

        self._callbacks.append(callback)
        return lambda: self._callbacks.remove(callback) if callback in self._callbacks else None

    def linked(self) -> "CancellationToken":
        """Create a child token cancelled together with this one."""
        return CancellationToken(parent=self)

    def cancel_after(self, seconds: float, reason: str = TIMEOUT_REASON) -> asyncio.TimerHandle:
        """
        Arm a deadline that cancels the token after `seconds`.

        Must be called from a running event loop. The caller owns the
        returned handle and must cancel it once the guarded work settles.
        """
        loop = asyncio.get_running_loop()
        return loop.call_later(seconds, self.cancel, reason)

    def dispose(self) -> None:
        """Detach from the parent token."""
        if self._unlink is not None:
            self._unlink()
            self._unlink = None
