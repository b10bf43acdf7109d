"""Retry and fail-fast wrapper shared by the game transport and the account store.

Each client owns its ``RetryPolicy`` and, optionally, a ``CircuitBreaker``;
nothing is kept at module level, so two sessions never trip each other.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

from idlemmo.errors import CircuitOpenError


RETRYABLE_STATUS_CODES = frozenset({408, 425, 429, 500, 502, 503, 504})

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    retries: int = 0
    backoff_seconds: float = 0.2

    @property
    def attempts(self) -> int:
        return max(0, int(self.retries)) + 1

    def delay(self, attempt_index: int) -> float:
        return max(0.0, self.backoff_seconds) * (2 ** attempt_index)


@dataclass
class CircuitBreaker:
    """Fail fast after ``failure_threshold`` transient failures in a row.

    Once open, every send raises ``CircuitOpenError`` until ``reset_seconds``
    have passed; the next send after that starts from a clean count.
    """

    failure_threshold: int = 3
    reset_seconds: float = 120.0
    clock: Callable[[], float] = time.monotonic
    failures: int = 0
    open_until: float = 0.0

    def check(self, target: str) -> None:
        now = self.clock()
        if self.open_until > now:
            raise CircuitOpenError(
                f"Requests to {target} suspended for {self.open_until - now:.0f}s after repeated failures"
            )
        if self.open_until:
            self.failures = 0
            self.open_until = 0.0

    def record_success(self) -> None:
        self.failures = 0

    def record_failure(self, target: str) -> None:
        # a threshold of zero disables the breaker
        if self.failure_threshold <= 0:
            return
        self.failures += 1
        if self.failures >= self.failure_threshold:
            self.open_until = self.clock() + max(0.0, self.reset_seconds)
            logger.warning("HTTP circuit opened", extra={"target": target, "failures": self.failures})


def is_transient(exc: httpx.HTTPError) -> bool:
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    return False


def send_with_retry(
    client: httpx.Client,
    method: str,
    url: str,
    *,
    policy: RetryPolicy = RetryPolicy(),
    breaker: Optional[CircuitBreaker] = None,
    **request_kwargs: Any,
) -> httpx.Response:
    """Send one request, retrying transient failures with exponential backoff.

    Any non-success status raises ``httpx.HTTPStatusError``; permanent
    failures and the last transient one are re-raised unchanged.
    """
    target = str(client.base_url) or url
    for attempt_index in range(policy.attempts):
        if breaker is not None:
            breaker.check(target)
        try:
            response = client.request(method, url, **request_kwargs)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            if not is_transient(exc):
                raise
            if breaker is not None:
                breaker.record_failure(target)
            if attempt_index == policy.attempts - 1:
                raise
            delay = policy.delay(attempt_index)
            logger.debug("Retrying request", extra={"method": method, "attempt": attempt_index + 1, "delay": delay})
            if delay > 0:
                time.sleep(delay)
            continue

        if breaker is not None:
            breaker.record_success()
        return response

    raise RuntimeError("unreachable")
