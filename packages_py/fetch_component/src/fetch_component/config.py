"""
Configuration utilities for fetch_component
"""
import os
from typing import Optional

import httpx

from .types import (
    FetchComponentOptions,
    HeaderTypes,
    RequestOptions,
    RequestTarget,
    RetryPolicy,
    IDEMPOTENT_METHODS,
    NON_RETRYABLE_STATUS_CODES,
)


DEFAULT_METHOD = "GET"

# Default per-call options
DEFAULT_REQUEST_OPTIONS = RequestOptions(
    method=DEFAULT_METHOD,
    attempts=1,
    retry_delay=0.0,
    timeout=None,
    prevent_throwing=False,
)

DEFAULT_COMPONENT_OPTIONS = FetchComponentOptions()


def is_ssl_verify_disabled_by_env() -> bool:
    """
    Check if SSL verification is disabled via environment variables.

    Returns True if any of these are set:
    - NODE_TLS_REJECT_UNAUTHORIZED=0
    - SSL_CERT_VERIFY=0
    """
    node_tls = os.environ.get("NODE_TLS_REJECT_UNAUTHORIZED", "")
    ssl_cert_verify = os.environ.get("SSL_CERT_VERIFY", "")
    return node_tls == "0" or ssl_cert_verify == "0"


def is_idempotent_method(method: str) -> bool:
    """
    Check if an HTTP method is safe to retry.

    Args:
        method: The HTTP method

    Returns:
        Whether the method may be attempted more than once
    """
    return method.upper() in IDEMPOTENT_METHODS


def is_non_retryable_status(status: int) -> bool:
    """
    Check if an HTTP status code ends the attempt loop immediately.

    Args:
        status: The HTTP status code

    Returns:
        Whether retrying the status is pointless
    """
    return status in NON_RETRYABLE_STATUS_CODES


def is_success_status(status: int) -> bool:
    """Check if an HTTP status code is 2xx."""
    return 200 <= status < 300


def should_stop(status: int, attempt: int, attempts: int) -> bool:
    """
    Decide whether the attempt loop stops after a settled attempt.

    Args:
        status: Status of the settled attempt (408 for a timed out attempt)
        attempt: Number of attempts made so far (1-indexed)
        attempts: Attempt budget of the logical call

    Returns:
        True on success, on a non-retryable status or when the budget is spent
    """
    return (
        is_success_status(status)
        or is_non_retryable_status(status)
        or attempt >= attempts
    )


def merge_headers(
    defaults: Optional[HeaderTypes] = None,
    overrides: Optional[HeaderTypes] = None,
) -> httpx.Headers:
    """
    Merge call-site headers over default headers.

    Matching is case-insensitive. The inputs are never mutated; a new
    httpx.Headers is returned on every call.
    """
    merged = httpx.Headers(defaults or {})
    if overrides:
        merged.update(httpx.Headers(overrides))
    return merged


def merge_request_options(
    defaults: Optional[RequestOptions] = None,
    overrides: Optional[RequestOptions] = None,
) -> RequestOptions:
    """
    Merge call-site options over default options.

    Call-site values win for every field that is set. Headers are merged
    key-wise instead of being replaced.

    Args:
        defaults: Component-level default options
        overrides: Call-site options

    Returns:
        New options object; neither input is modified
    """
    base = defaults or RequestOptions()
    top = overrides or RequestOptions()

    def pick(name: str):
        value = getattr(top, name)
        return value if value is not None else getattr(base, name)

    return RequestOptions(
        method=pick("method"),
        headers=merge_headers(base.headers, top.headers),
        body=pick("body"),
        json=pick("json"),
        params=pick("params"),
        timeout=pick("timeout"),
        attempts=pick("attempts"),
        retry_delay=pick("retry_delay"),
        cancellation_token=pick("cancellation_token"),
        prevent_throwing=pick("prevent_throwing"),
    )


def resolve_options(
    component_options: FetchComponentOptions,
    call_options: Optional[RequestOptions] = None,
) -> RequestOptions:
    """
    Fold call-site options over the component defaults.

    Default headers are applied first, then the default fetcher options,
    then the call-site options.
    """
    defaults = merge_request_options(
        RequestOptions(headers=component_options.default_headers),
        component_options.default_fetcher_options,
    )
    return merge_request_options(defaults, call_options)


def resolve_method(options: RequestOptions) -> str:
    return (options.method or DEFAULT_METHOD).upper()


def resolve_retry_policy(options: RequestOptions) -> RetryPolicy:
    """
    Build the retry policy for one logical call.

    Non-idempotent methods are never retried: their attempt budget is
    forced to 1 whatever was requested.

    Raises:
        ValueError: If attempts, retry_delay or timeout is out of range
    """
    attempts = options.attempts if options.attempts is not None else DEFAULT_REQUEST_OPTIONS.attempts
    retry_delay = (
        options.retry_delay if options.retry_delay is not None else DEFAULT_REQUEST_OPTIONS.retry_delay
    )

    policy = RetryPolicy(attempts=attempts, retry_delay=retry_delay, timeout=options.timeout)

    if not is_idempotent_method(resolve_method(options)) and policy.attempts > 1:
        return RetryPolicy(attempts=1, retry_delay=policy.retry_delay, timeout=policy.timeout)
    return policy


def resolve_prevent_throwing(
    component_options: FetchComponentOptions,
    options: RequestOptions,
) -> bool:
    if options.prevent_throwing is not None:
        return options.prevent_throwing
    return component_options.prevent_throwing


def build_target(url: str, options: RequestOptions) -> RequestTarget:
    """Create the immutable request target of a logical call."""
    return RequestTarget(
        url=str(url),
        method=resolve_method(options),
        headers=httpx.Headers(options.headers or {}),
        content=options.body,
        json=options.json,
        params=options.params,
    )
