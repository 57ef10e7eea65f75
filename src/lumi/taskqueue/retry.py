"""Failure classification and exponential backoff for queued generation tasks.

Three classes of failure reach the queue:

- fatal: bad request, bad credentials, missing resource, explicit
  cancellation, insufficient balance. Retrying cannot help.
- rate_limited: the provider is throttling us. Retried, but from a much
  larger backoff base so the limit has time to clear.
- transient: everything else (network errors, timeouts, 5xx, unknown).
  Retried with the ordinary base.

Retryability and rate limiting are evaluated independently: a 429 is both
retryable and rate limited.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from lumi.taskqueue.errors import TaskCancelledError

NON_RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({400, 401, 403, 404})
RATE_LIMIT_STATUS_CODE = 429

_FATAL_PATTERNS: tuple[str, ...] = (
    "task cancelled",
    "cancelled by user",
    "authentication failed",
    "invalid api key",
    "insufficient balance",
    "permission denied",
)
_RATE_LIMIT_PATTERNS: tuple[str, ...] = (
    "rate limit",
    "too many requests",
    "throttl",
    "resourcesnotready",
    "concurrency limit",
)


class FailureClass(StrEnum):
    """How a failed attempt should be treated."""

    FATAL = "fatal"
    RATE_LIMITED = "rate_limited"
    TRANSIENT = "transient"


def _status_code(error: BaseException) -> int | None:
    code = getattr(error, "status_code", None)
    return code if isinstance(code, int) else None


def _first_match(error: BaseException, patterns: tuple[str, ...]) -> str | None:
    haystack = str(error).lower()
    for pattern in patterns:
        if pattern in haystack:
            return pattern
    return None


def is_retryable(error: BaseException) -> bool:
    """Return False for errors a retry cannot fix, True otherwise."""
    if isinstance(error, TaskCancelledError):
        return False
    if _status_code(error) in NON_RETRYABLE_STATUS_CODES:
        return False
    return _first_match(error, _FATAL_PATTERNS) is None


def is_rate_limited(error: BaseException) -> bool:
    """Return True when the provider signalled throughput limiting."""
    if _status_code(error) == RATE_LIMIT_STATUS_CODE:
        return True
    return _first_match(error, _RATE_LIMIT_PATTERNS) is not None


def classify(error: BaseException) -> FailureClass:
    if not is_retryable(error):
        return FailureClass.FATAL
    if is_rate_limited(error):
        return FailureClass.RATE_LIMITED
    return FailureClass.TRANSIENT


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Retry budget and the two exponential backoff bases (seconds)."""

    max_retries: int = 3
    base_delay: float = 2.0
    rate_limit_delay: float = 30.0

    def delay(self, error: BaseException, attempt: int) -> float:
        """Backoff before retry number ``attempt + 1`` (``attempt`` starts at 0)."""
        base = self.rate_limit_delay if is_rate_limited(error) else self.base_delay
        return base * 2**attempt

    def should_retry(self, error: BaseException, retry_count: int) -> bool:
        return retry_count < self.max_retries and is_retryable(error)
