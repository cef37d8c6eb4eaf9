"""Tests for the retry decision table and the Tenacity loop around it.

Tests cover:
- Attempt budget exhaustion
- Non-retryable failure kinds
- Timeout falling through to the idempotency check
- Tenacity loop attempt counts and re-raising
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st
from tenacity import wait_none, wait_random_exponential

from fluenthttp.errors import (
    ConnectionRefusedFailure,
    FailureKind,
    GenericIOFailure,
    StatusCodeError,
    TimeoutFailure,
)
from fluenthttp.network.retry import create_request_retry_policy, should_retry

NEVER_RETRIED = [FailureKind.UNKNOWN_HOST, FailureKind.CONNECTION_REFUSED, FailureKind.TLS]


class TestShouldRetry:
    """Decision table, first match wins."""

    def test_timeout_retried_for_idempotent_request(self):
        assert should_retry(FailureKind.TIMEOUT, 1, True, 3) is True

    def test_timeout_not_retried_for_request_with_body(self):
        assert should_retry(FailureKind.TIMEOUT, 1, False, 3) is False

    def test_generic_io_follows_idempotency(self):
        assert should_retry(FailureKind.GENERIC_IO, 2, True, 3) is True
        assert should_retry(FailureKind.GENERIC_IO, 2, False, 3) is False

    @pytest.mark.parametrize("kind", NEVER_RETRIED)
    def test_terminal_kinds_never_retried(self, kind):
        assert should_retry(kind, 1, True, 10) is False

    def test_budget_reached_stops(self):
        assert should_retry(FailureKind.TIMEOUT, 3, True, 3) is False

    def test_zero_retries_stops_immediately(self):
        assert should_retry(FailureKind.GENERIC_IO, 1, True, 0) is False

    @given(
        kind=st.sampled_from(list(FailureKind)),
        attempt=st.integers(min_value=1, max_value=50),
        idempotent=st.booleans(),
        max_retries=st.integers(min_value=-5, max_value=50),
    )
    def test_never_retries_beyond_budget(self, kind, attempt, idempotent, max_retries):
        if attempt >= max(0, max_retries):
            assert should_retry(kind, attempt, idempotent, max_retries) is False

    @given(
        kind=st.sampled_from(list(FailureKind)),
        attempt=st.integers(min_value=1, max_value=50),
        max_retries=st.integers(min_value=-5, max_value=50),
    )
    def test_non_idempotent_never_retried(self, kind, attempt, max_retries):
        assert should_retry(kind, attempt, False, max_retries) is False

    @given(
        kind=st.sampled_from(NEVER_RETRIED),
        attempt=st.integers(min_value=1, max_value=50),
        idempotent=st.booleans(),
        max_retries=st.integers(min_value=-5, max_value=50),
    )
    def test_terminal_kinds_property(self, kind, attempt, idempotent, max_retries):
        assert should_retry(kind, attempt, idempotent, max_retries) is False


def _run(policy, failure_factory, calls):
    for attempt in policy:
        with attempt:
            calls.append(attempt.retry_state.attempt_number)
            raise failure_factory()


class TestRetryLoop:
    """Tenacity loop built by create_request_retry_policy."""

    def test_idempotent_timeout_uses_full_budget(self):
        policy = create_request_retry_policy(max_retries=3, is_idempotent=True)
        calls = []
        with pytest.raises(TimeoutFailure):
            _run(policy, lambda: TimeoutFailure("read timed out"), calls)
        assert calls == [1, 2, 3]

    def test_post_attempted_once(self):
        policy = create_request_retry_policy(max_retries=3, is_idempotent=False)
        calls = []
        with pytest.raises(TimeoutFailure):
            _run(policy, lambda: TimeoutFailure("read timed out"), calls)
        assert calls == [1]

    def test_connection_refused_attempted_once(self):
        policy = create_request_retry_policy(max_retries=5, is_idempotent=True)
        calls = []
        with pytest.raises(ConnectionRefusedFailure):
            _run(policy, lambda: ConnectionRefusedFailure("refused"), calls)
        assert calls == [1]

    def test_status_errors_are_not_retried(self):
        policy = create_request_retry_policy(max_retries=5, is_idempotent=True)
        calls = []
        with pytest.raises(StatusCodeError):
            _run(policy, lambda: StatusCodeError("HTTP/1.1 500 Internal Server Error", 500), calls)
        assert calls == [1]

    def test_zero_retries_still_attempts_once(self):
        policy = create_request_retry_policy(max_retries=0, is_idempotent=True)
        calls = []
        with pytest.raises(GenericIOFailure):
            _run(policy, lambda: GenericIOFailure("reset"), calls)
        assert calls == [1]

    def test_backoff_uses_exponential_jitter(self):
        policy = create_request_retry_policy(max_retries=3, is_idempotent=True, backoff_sec=0.1)
        assert isinstance(policy.wait, wait_random_exponential)

    def test_backoff_sleeps_between_attempts(self):
        policy = create_request_retry_policy(max_retries=3, is_idempotent=True, backoff_sec=0.1)
        sleeps = []
        policy.sleep = sleeps.append
        calls = []
        with pytest.raises(TimeoutFailure):
            _run(policy, lambda: TimeoutFailure("read timed out"), calls)
        assert calls == [1, 2, 3]
        assert len(sleeps) == 2
        assert all(0 <= delay <= 3.2 for delay in sleeps)

    def test_no_backoff_by_default(self):
        policy = create_request_retry_policy(max_retries=3, is_idempotent=True)
        assert isinstance(policy.wait, wait_none)

    def test_success_returns_after_first_attempt(self):
        policy = create_request_retry_policy(max_retries=3, is_idempotent=True)
        seen = []
        for attempt in policy:
            with attempt:
                seen.append(attempt.retry_state.attempt_number)
        assert seen == [1]
