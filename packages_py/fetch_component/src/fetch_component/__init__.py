"""
Resilient fetch component with bounded retries, per-attempt timeouts and
caller cancellation.
"""
from .types import (
    RetryPolicy,
    RequestOptions,
    RequestTarget,
    FetchComponentOptions,
    AttemptOutcome,
    OutcomeKind,
    FetchEvent,
    FetchEventListener,
    IDEMPOTENT_METHODS,
    NON_RETRYABLE_STATUS_CODES,
    TIMEOUT_STATUS_CODE,
)
from .errors import (
    FetchComponentError,
    FetchError,
    FetchAbortedError,
)
from .cancellation import CancellationToken
from .config import (
    DEFAULT_REQUEST_OPTIONS,
    DEFAULT_COMPONENT_OPTIONS,
    is_idempotent_method,
    is_non_retryable_status,
    is_success_status,
    should_stop,
    merge_headers,
    merge_request_options,
    resolve_options,
    resolve_retry_policy,
)
from .transport import Transport, HttpxTransport
from .executor import FetchExecutor, create_timeout_response
from .component import FetchComponent, create_fetch_component


__all__ = [
    # Types
    "RetryPolicy",
    "RequestOptions",
    "RequestTarget",
    "FetchComponentOptions",
    "AttemptOutcome",
    "OutcomeKind",
    "FetchEvent",
    "FetchEventListener",
    "IDEMPOTENT_METHODS",
    "NON_RETRYABLE_STATUS_CODES",
    "TIMEOUT_STATUS_CODE",
    # Errors
    "FetchComponentError",
    "FetchError",
    "FetchAbortedError",
    # Cancellation
    "CancellationToken",
    # Config
    "DEFAULT_REQUEST_OPTIONS",
    "DEFAULT_COMPONENT_OPTIONS",
    "is_idempotent_method",
    "is_non_retryable_status",
    "is_success_status",
    "should_stop",
    "merge_headers",
    "merge_request_options",
    "resolve_options",
    "resolve_retry_policy",
    # Transport
    "Transport",
    "HttpxTransport",
    # Executor
    "FetchExecutor",
    "create_timeout_response",
    # Component
    "FetchComponent",
    "create_fetch_component",
]


__version__ = "1.0.0"
