"""
Exceptions raised by fetch_component
"""
from typing import Optional

import httpx


class FetchComponentError(Exception):
    """Base class for errors raised by the fetch component."""

    code = "FETCH_COMPONENT_ERROR"


class FetchError(FetchComponentError):
    """Error thrown when the final response of a logical call is not 2xx."""

    code = "FETCH_FAILED"

    def __init__(
        self,
        url: str,
        status: int,
        body: str,
        response: Optional[httpx.Response] = None,
    ) -> None:
        super().__init__(f"Failed to fetch {url}. Got status {status}. Response was '{body}'")
        self.url = url
        self.status = status
        self.body = body
        self.response = response


class FetchAbortedError(FetchComponentError):
    """Error thrown when the caller cancels a logical call."""

    code = "FETCH_ABORTED"

    def __init__(self, url: str, attempts: int = 0, reason: Optional[str] = None) -> None:
        message = f"Request to {url} was aborted after {attempts} attempt(s)"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.url = url
        self.attempts = attempts
        self.reason = reason
