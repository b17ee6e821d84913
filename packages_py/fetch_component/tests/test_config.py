"""
Tests for fetch_component configuration utilities.

Test coverage includes:
- Statement coverage: All executable statements
- Decision/Branch coverage: All boolean decisions (if/else)
- Boundary value testing: Attempt budgets and status code edges
- Equivalence partitioning: Idempotent vs non-idempotent methods
"""

import pytest
import httpx

from fetch_component.config import (
    DEFAULT_REQUEST_OPTIONS,
    build_target,
    is_idempotent_method,
    is_non_retryable_status,
    is_ssl_verify_disabled_by_env,
    is_success_status,
    merge_headers,
    merge_request_options,
    resolve_options,
    resolve_prevent_throwing,
    resolve_retry_policy,
    should_stop,
)
from fetch_component.types import (
    FetchComponentOptions,
    RequestOptions,
    RetryPolicy,
    IDEMPOTENT_METHODS,
    NON_RETRYABLE_STATUS_CODES,
)


class TestDefaults:
    """Tests for default options and constant sets."""

    def test_has_expected_default_values(self):
        """Should default to a single GET attempt without delay or deadline."""
        assert DEFAULT_REQUEST_OPTIONS.method == "GET"
        assert DEFAULT_REQUEST_OPTIONS.attempts == 1
        assert DEFAULT_REQUEST_OPTIONS.retry_delay == 0.0
        assert DEFAULT_REQUEST_OPTIONS.timeout is None
        assert DEFAULT_REQUEST_OPTIONS.prevent_throwing is False

    def test_idempotent_methods(self):
        """Should list exactly the idempotent methods."""
        assert IDEMPOTENT_METHODS == {"GET", "HEAD", "OPTIONS", "PUT", "DELETE"}

    def test_non_retryable_status_codes(self):
        """Should list exactly the non-retryable client errors."""
        assert NON_RETRYABLE_STATUS_CODES == {400, 401, 403, 404}


class TestRetryPolicy:
    """Tests for RetryPolicy validation."""

    def test_defaults(self):
        """Should default to one attempt, no delay, no timeout."""
        policy = RetryPolicy()
        assert policy.attempts == 1
        assert policy.retry_delay == 0.0
        assert policy.timeout is None

    @pytest.mark.parametrize("attempts", [0, -1])
    def test_rejects_attempts_below_one(self, attempts):
        """Should reject attempt budgets below 1."""
        with pytest.raises(ValueError, match="attempts"):
            RetryPolicy(attempts=attempts)

    def test_rejects_negative_delay(self):
        """Should reject negative retry delays."""
        with pytest.raises(ValueError, match="retry_delay"):
            RetryPolicy(retry_delay=-0.1)

    @pytest.mark.parametrize("timeout", [0, -5])
    def test_rejects_non_positive_timeout(self, timeout):
        """Should reject non-positive timeouts."""
        with pytest.raises(ValueError, match="timeout"):
            RetryPolicy(timeout=timeout)

    def test_is_immutable(self):
        """Should not allow mutation after construction."""
        policy = RetryPolicy(attempts=2)
        with pytest.raises(AttributeError):
            policy.attempts = 5


class TestIsIdempotentMethod:
    """Tests for is_idempotent_method function."""

    @pytest.mark.parametrize("method", ["GET", "HEAD", "OPTIONS", "PUT", "DELETE"])
    def test_returns_true_for_idempotent_methods(self, method):
        """Should return True for idempotent methods."""
        assert is_idempotent_method(method) is True

    @pytest.mark.parametrize("method", ["POST", "PATCH", "CONNECT"])
    def test_returns_false_for_non_idempotent_methods(self, method):
        """Should return False for non-idempotent methods."""
        assert is_idempotent_method(method) is False

    def test_is_case_insensitive(self):
        """Should normalize method case."""
        assert is_idempotent_method("get") is True
        assert is_idempotent_method("post") is False


class TestStatusPredicates:
    """Tests for status code predicates."""

    @pytest.mark.parametrize("status", [400, 401, 403, 404])
    def test_non_retryable_statuses(self, status):
        """Should flag the non-retryable client errors."""
        assert is_non_retryable_status(status) is True

    @pytest.mark.parametrize("status", [402, 405, 408, 429, 500, 503])
    def test_retryable_statuses(self, status):
        """Should not flag other failures."""
        assert is_non_retryable_status(status) is False

    @pytest.mark.parametrize("status,expected", [
        (199, False),
        (200, True),
        (204, True),
        (299, True),
        (300, False),
        (503, False),
    ])
    def test_success_boundaries(self, status, expected):
        """Should treat exactly 2xx as success."""
        assert is_success_status(status) is expected


class TestShouldStop:
    """Tests for should_stop decision."""

    def test_stops_on_success(self):
        """Should stop on success even with budget left."""
        assert should_stop(200, attempt=1, attempts=3) is True

    def test_stops_on_non_retryable_status(self):
        """Should stop on a non-retryable status even with budget left."""
        assert should_stop(404, attempt=1, attempts=3) is True

    def test_continues_on_retryable_status_with_budget(self):
        """Should continue on a retryable status with budget left."""
        assert should_stop(503, attempt=1, attempts=3) is False

    def test_continues_on_timeout_with_budget(self):
        """Should treat 408 as retryable."""
        assert should_stop(408, attempt=2, attempts=3) is False

    def test_stops_when_budget_spent(self):
        """Should stop once the budget is spent."""
        assert should_stop(503, attempt=3, attempts=3) is True


class TestMergeHeaders:
    """Tests for merge_headers function."""

    def test_call_site_overrides_defaults(self):
        """Should let call-site headers win on conflict."""
        merged = merge_headers({"X-Custom": "default"}, {"X-Custom": "call"})
        assert merged["X-Custom"] == "call"
        assert len(merged.get_list("X-Custom")) == 1

    def test_matches_names_case_insensitively(self):
        """Should override regardless of header name case."""
        merged = merge_headers({"X-Custom": "default"}, {"x-custom": "call"})
        assert merged.get_list("X-Custom") == ["call"]

    def test_preserves_other_defaults(self):
        """Should keep defaults that are not overridden."""
        merged = merge_headers({"A": "1", "B": "2"}, {"B": "3"})
        assert merged["A"] == "1"
        assert merged["B"] == "3"

    def test_handles_missing_inputs(self):
        """Should return empty headers when both inputs are missing."""
        assert len(merge_headers()) == 0

    def test_does_not_mutate_inputs(self):
        """Should not mutate either input."""
        defaults = {"A": "1"}
        overrides = {"B": "2"}
        merge_headers(defaults, overrides)
        assert defaults == {"A": "1"}
        assert overrides == {"B": "2"}


class TestMergeRequestOptions:
    """Tests for merge_request_options function."""

    def test_call_site_values_win(self):
        """Should prefer call-site values that are set."""
        merged = merge_request_options(
            RequestOptions(method="GET", attempts=3, timeout=5.0),
            RequestOptions(method="PUT", attempts=2),
        )
        assert merged.method == "PUT"
        assert merged.attempts == 2
        assert merged.timeout == 5.0

    def test_unset_call_site_values_fall_back(self):
        """Should fall back to defaults for unset fields."""
        merged = merge_request_options(RequestOptions(retry_delay=1.5), RequestOptions())
        assert merged.retry_delay == 1.5

    def test_false_prevent_throwing_overrides_true_default(self):
        """Should keep an explicit False from the call site."""
        merged = merge_request_options(
            RequestOptions(prevent_throwing=True), RequestOptions(prevent_throwing=False)
        )
        assert merged.prevent_throwing is False

    def test_returns_new_object(self):
        """Should not return or mutate the inputs."""
        defaults = RequestOptions(headers={"A": "1"})
        overrides = RequestOptions(headers={"B": "2"})
        merged = merge_request_options(defaults, overrides)
        assert merged is not defaults
        assert merged is not overrides
        assert defaults.headers == {"A": "1"}
        assert overrides.headers == {"B": "2"}


class TestResolveOptions:
    """Tests for resolve_options function."""

    def test_layers_headers_then_fetcher_options_then_call(self):
        """Should apply default headers, then fetcher options, then the call."""
        component = FetchComponentOptions(
            default_headers={"A": "default", "B": "default"},
            default_fetcher_options=RequestOptions(headers={"B": "fetcher"}, attempts=2),
        )
        resolved = resolve_options(component, RequestOptions(headers={"C": "call"}))
        assert resolved.headers["A"] == "default"
        assert resolved.headers["B"] == "fetcher"
        assert resolved.headers["C"] == "call"
        assert resolved.attempts == 2

    def test_leaves_component_defaults_untouched(self):
        """Should not leak call-site headers into the defaults."""
        component = FetchComponentOptions(default_headers={"A": "1"})
        resolve_options(component, RequestOptions(headers={"A": "2", "B": "3"}))
        resolve_options(component, RequestOptions(headers={"C": "4"}))
        assert dict(component.default_headers) == {"A": "1"}
        assert component.default_fetcher_options.headers is None


class TestResolveRetryPolicy:
    """Tests for resolve_retry_policy function."""

    def test_uses_defaults_when_unset(self):
        """Should produce the default policy."""
        assert resolve_retry_policy(RequestOptions()) == RetryPolicy()

    def test_keeps_attempts_for_idempotent_methods(self):
        """Should keep the attempt budget for idempotent methods."""
        policy = resolve_retry_policy(RequestOptions(method="PUT", attempts=4, retry_delay=0.1))
        assert policy.attempts == 4
        assert policy.retry_delay == 0.1

    @pytest.mark.parametrize("method", ["POST", "patch"])
    def test_forces_single_attempt_for_non_idempotent_methods(self, method):
        """Should clamp the attempt budget to 1 for non-idempotent methods."""
        policy = resolve_retry_policy(RequestOptions(method=method, attempts=5, timeout=2.0))
        assert policy.attempts == 1
        assert policy.timeout == 2.0

    def test_rejects_invalid_attempts(self):
        """Should raise before any request is made."""
        with pytest.raises(ValueError):
            resolve_retry_policy(RequestOptions(attempts=0))


class TestResolvePreventThrowing:
    """Tests for resolve_prevent_throwing function."""

    def test_call_site_wins(self):
        """Should prefer the resolved call options."""
        component = FetchComponentOptions(prevent_throwing=True)
        assert resolve_prevent_throwing(component, RequestOptions(prevent_throwing=False)) is False

    def test_falls_back_to_component_flag(self):
        """Should use the component flag when unset."""
        component = FetchComponentOptions(prevent_throwing=True)
        assert resolve_prevent_throwing(component, RequestOptions()) is True


class TestBuildTarget:
    """Tests for build_target function."""

    def test_builds_target_from_options(self):
        """Should carry method, headers and body into the target."""
        target = build_target(
            "https://example.com/items",
            RequestOptions(method="put", headers={"X-Custom": "Test"}, body="payload"),
        )
        assert target.url == "https://example.com/items"
        assert target.method == "PUT"
        assert target.headers["X-Custom"] == "Test"

        request = target.build_request()
        assert request.method == "PUT"
        assert request.content == b"payload"
        assert request.headers["X-Custom"] == "Test"

    def test_defaults_to_get(self):
        """Should default the method to GET."""
        assert build_target("https://example.com", RequestOptions()).method == "GET"

    def test_builds_fresh_request_each_time(self):
        """Should build a new request per attempt."""
        target = build_target("https://example.com/search", RequestOptions(params={"q": "1"}))
        first = target.build_request()
        second = target.build_request()
        assert first is not second
        assert first.url.params["q"] == "1"
        assert second.url.params["q"] == "1"


class TestIsSslVerifyDisabledByEnv:
    """Tests for is_ssl_verify_disabled_by_env function."""

    def test_false_by_default(self, monkeypatch):
        """Should keep verification on without overrides."""
        monkeypatch.delenv("SSL_CERT_VERIFY", raising=False)
        monkeypatch.delenv("NODE_TLS_REJECT_UNAUTHORIZED", raising=False)
        assert is_ssl_verify_disabled_by_env() is False

    @pytest.mark.parametrize("name", ["SSL_CERT_VERIFY", "NODE_TLS_REJECT_UNAUTHORIZED"])
    def test_true_when_disabled(self, monkeypatch, name):
        """Should detect either override."""
        monkeypatch.delenv("SSL_CERT_VERIFY", raising=False)
        monkeypatch.delenv("NODE_TLS_REJECT_UNAUTHORIZED", raising=False)
        monkeypatch.setenv(name, "0")
        assert is_ssl_verify_disabled_by_env() is True
