"""Quota-aware wrapper around upstream API calls.

GitHub reports an exhausted request quota together with the time at which
it resets. Calls that fail this way are retried after sleeping until the
reset; any other failure is raised as ``APIError`` with the original
exception chained as its cause.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, TypeVar

from github import GithubException, RateLimitExceededException

from ..log import DiagnosticLog

T = TypeVar("T")

QUOTA_STATUSES = (403, 429)


class ErrorKind(str, Enum):
    """How a failed API call should be handled."""

    QUOTA_EXCEEDED = "quota_exceeded"
    OTHER = "other"


@dataclass
class APIFailure:
    """Tagged view of an exception raised by an API call."""
    kind: ErrorKind
    cause: Exception
    reset_at: float | None = None  # Unix timestamp, set for QUOTA_EXCEEDED


class APIError(Exception):
    """A non-retryable upstream API failure."""


def _header(headers: dict | None, name: str) -> str | None:
    for key, value in (headers or {}).items():
        if key.lower() == name:
            return value
    return None


def _reset_time(exc: GithubException, now: float) -> float | None:
    reset = _header(exc.headers, "x-ratelimit-reset")
    if reset is not None:
        try:
            return float(reset)
        except ValueError:
            pass
    retry_after = _header(exc.headers, "retry-after")
    if retry_after is not None:
        try:
            return now + float(retry_after)
        except ValueError:
            pass
    return None


def classify_error(exc: Exception, now: float) -> APIFailure:
    """Map an exception onto QUOTA_EXCEEDED (with its reset time) or OTHER."""
    if isinstance(exc, GithubException):
        quota = isinstance(exc, RateLimitExceededException) or (
            exc.status in QUOTA_STATUSES
            and _header(exc.headers, "x-ratelimit-remaining") == "0"
        )
        if quota:
            reset_at = _reset_time(exc, now)
            if reset_at is not None:
                return APIFailure(ErrorKind.QUOTA_EXCEEDED, exc, reset_at)
    return APIFailure(ErrorKind.OTHER, exc)


class RateLimitedClient:
    """Runs API operations, waiting out quota exhaustion between attempts."""

    def __init__(
        self,
        log: DiagnosticLog,
        margin: float = 1.0,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.log = log
        self.margin = margin
        self.clock = clock
        self.sleep = sleep

    def call(self, operation: Callable[[], T], description: str) -> T:
        """Invoke ``operation`` until it succeeds or fails for a non-quota reason.

        There is no attempt cap: every retry waits past a concrete reset time
        reported by the API.
        """
        while True:
            try:
                return operation()
            except Exception as exc:
                failure = classify_error(exc, self.clock())
                if failure.kind is not ErrorKind.QUOTA_EXCEEDED:
                    raise APIError(f"{description}: {exc}") from exc
                self._wait_for_reset(failure.reset_at)

    def _wait_for_reset(self, reset_at: float) -> None:
        delta = reset_at - self.clock()
        if delta > 0:
            delay = delta + self.margin
            self.log.debug(f"rate limit hit; sleeping for {delay:.0f}s before retrying")
            self.sleep(delay)
        else:
            self.log.debug("rate limit hit; reset time already passed, retrying")
