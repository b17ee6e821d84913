"""
Type definitions for fetch_component
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Literal, Mapping, Optional, Union, TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from .cancellation import CancellationToken


# HTTP methods that are safe to retry without duplicating side effects
IDEMPOTENT_METHODS = frozenset(["GET", "HEAD", "OPTIONS", "PUT", "DELETE"])

# Client errors where another attempt cannot change the outcome
NON_RETRYABLE_STATUS_CODES = frozenset([400, 401, 403, 404])

# Status of the response synthesized when an attempt deadline elapses
TIMEOUT_STATUS_CODE = 408
TIMEOUT_RESPONSE_BODY = "timeout"


HeaderTypes = Union[httpx.Headers, Mapping[str, str]]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry policy for one logical call"""

    attempts: int = 1
    """Maximum number of transport invocations. Default: 1"""

    retry_delay: float = 0.0
    """Pause between attempts (seconds). Default: 0"""

    timeout: Optional[float] = None
    """Deadline per attempt (seconds). Default: no deadline"""

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {self.attempts}")
        if self.retry_delay < 0:
            raise ValueError(f"retry_delay must be >= 0, got {self.retry_delay}")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")


@dataclass
class RequestOptions:
    """
    Per-call fetch options.

    Every field left as None is unset and falls back to the component
    defaults during merging.
    """

    method: Optional[str] = None
    headers: Optional[HeaderTypes] = None
    body: Optional[Union[str, bytes]] = None
    json: Optional[Any] = None
    params: Optional[Mapping[str, Any]] = None
    timeout: Optional[float] = None
    attempts: Optional[int] = None
    retry_delay: Optional[float] = None
    cancellation_token: Optional["CancellationToken"] = None
    prevent_throwing: Optional[bool] = None


@dataclass(frozen=True)
class FetchComponentOptions:
    """Component-level defaults, read-only after construction"""

    default_headers: Mapping[str, str] = field(default_factory=dict)
    """Headers injected on every call performed by the component"""

    default_fetcher_options: RequestOptions = field(default_factory=RequestOptions)
    """Options applied to every call unless overridden at the call site"""

    prevent_throwing: bool = False
    """Return non-2xx terminal responses instead of raising FetchError"""


@dataclass(frozen=True)
class RequestTarget:
    """Resolved request for one logical call"""

    url: str
    method: str = "GET"
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    content: Optional[Union[str, bytes]] = None
    json: Optional[Any] = None
    params: Optional[Mapping[str, Any]] = None

    def build_request(self) -> httpx.Request:
        """Build a fresh httpx.Request for one attempt."""
        return httpx.Request(
            self.method,
            self.url,
            headers=self.headers,
            content=self.content,
            json=self.json,
            params=self.params,
        )


class OutcomeKind(str, Enum):
    """How a single attempt settled"""
    SUCCESS = "success"
    FAILURE = "failure"
    TIMED_OUT = "timed_out"
    TRANSPORT_ERROR = "transport_error"


@dataclass
class AttemptOutcome:
    """Outcome of one physical attempt"""

    kind: OutcomeKind
    attempt: int
    response: Optional[httpx.Response] = None
    error: Optional[BaseException] = None

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code if self.response is not None else None


# Event types
EventType = Literal[
    "attempt:start",
    "attempt:success",
    "attempt:fail",
    "attempt:timeout",
    "retry:wait",
    "retry:abort",
]


@dataclass
class FetchEvent:
    """Event emitted by the fetch executor"""

    type: EventType
    """Event type"""

    attempt: int
    """Current attempt number (1-indexed)"""

    url: str
    """Target URL of the logical call"""

    data: Dict[str, Any] = field(default_factory=dict)
    """Event-specific data"""


# Event listener type
FetchEventListener = Callable[[FetchEvent], None]
