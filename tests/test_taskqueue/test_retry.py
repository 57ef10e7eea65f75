"""Tests for failure classification and backoff delays."""

from __future__ import annotations

import pytest

from lumi.taskqueue.errors import (
    NoArtifactsError,
    ProviderError,
    TaskCancelledError,
    TaskTimeoutError,
)
from lumi.taskqueue.retry import (
    FailureClass,
    RetryPolicy,
    classify,
    is_rate_limited,
    is_retryable,
)


class TestIsRetryable:
    @pytest.mark.parametrize("code", [400, 401, 403, 404])
    def test_client_errors_are_fatal(self, code):
        assert is_retryable(ProviderError("test", code)) is False

    @pytest.mark.parametrize("code", [429, 500, 502, 503, None])
    def test_other_statuses_are_retryable(self, code):
        assert is_retryable(ProviderError("test", code)) is True

    def test_cancellation_is_fatal(self):
        assert is_retryable(TaskCancelledError()) is False

    @pytest.mark.parametrize(
        "message",
        ["Invalid API key supplied", "Insufficient balance", "Cancelled by user"],
    )
    def test_fatal_messages(self, message):
        assert is_retryable(RuntimeError(message)) is False

    def test_plain_errors_are_retryable(self):
        assert is_retryable(ConnectionError("connection reset")) is True
        assert is_retryable(TaskTimeoutError(120)) is True
        assert is_retryable(NoArtifactsError()) is True


class TestIsRateLimited:
    def test_status_429(self):
        assert is_rate_limited(ProviderError("test", 429)) is True

    @pytest.mark.parametrize(
        "message",
        ["Rate limit exceeded", "429 Too Many Requests", "request throttled"],
    )
    def test_rate_limit_messages(self, message):
        assert is_rate_limited(RuntimeError(message)) is True

    def test_server_error_is_not_rate_limited(self):
        assert is_rate_limited(ProviderError("test", 503, "upstream unavailable")) is False

    def test_classify(self):
        assert classify(ProviderError("test", 401)) is FailureClass.FATAL
        assert classify(ProviderError("test", 429)) is FailureClass.RATE_LIMITED
        assert classify(ProviderError("test", 500)) is FailureClass.TRANSIENT


class TestRetryPolicy:
    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_retries == 3
        assert policy.base_delay == 2.0
        assert policy.rate_limit_delay == 30.0

    def test_ordinary_backoff_doubles(self):
        policy = RetryPolicy()
        error = ProviderError("test", 500)
        assert [policy.delay(error, n) for n in range(3)] == [2.0, 4.0, 8.0]

    def test_rate_limit_backoff_uses_larger_base(self):
        policy = RetryPolicy()
        error = ProviderError("test", 429)
        assert [policy.delay(error, n) for n in range(3)] == [30.0, 60.0, 120.0]
        for attempt in range(3):
            assert policy.delay(error, attempt) > policy.delay(
                ProviderError("test", 500), attempt
            )

    def test_should_retry_respects_budget(self):
        policy = RetryPolicy(max_retries=2)
        error = ProviderError("test", 500)
        assert policy.should_retry(error, 0) is True
        assert policy.should_retry(error, 1) is True
        assert policy.should_retry(error, 2) is False

    def test_should_not_retry_fatal_errors(self):
        policy = RetryPolicy()
        assert policy.should_retry(ProviderError("test", 403), 0) is False
