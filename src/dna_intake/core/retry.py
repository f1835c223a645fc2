"""Retry policy for batch submission, expressed as a tenacity configuration."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt

from dna_intake.core.exceptions import SubmissionError

Sleep = Callable[[float], Awaitable[None]]


def is_timeout_error(exc: BaseException) -> bool:
    if isinstance(exc, SubmissionError):
        return exc.retryable
    return "timeout" in str(exc).lower()


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently one batch is resubmitted.

    Attributes:
        max_attempts: Total calls including the first one.
        backoff: Seconds to wait after the given failed attempt (1-based).
        is_retryable: Decides whether a failure is worth another attempt.
    """

    max_attempts: int
    backoff: Callable[[int], float]
    is_retryable: Callable[[BaseException], bool] = is_timeout_error

    @classmethod
    def linear(cls, max_retries: int = 2, step_seconds: float = 2.0) -> "RetryPolicy":
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        return cls(
            max_attempts=max_retries + 1,
            backoff=lambda attempt: attempt * step_seconds,
        )

    def _wait(self, retry_state: RetryCallState) -> float:
        return self.backoff(retry_state.attempt_number)

    def retrying(
        self,
        sleep: Sleep = asyncio.sleep,
        before_sleep: Callable[[RetryCallState], None] | None = None,
    ) -> AsyncRetrying:
        options = {}
        if before_sleep is not None:
            options["before_sleep"] = before_sleep
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            retry=retry_if_exception(self.is_retryable),
            sleep=sleep,
            reraise=True,
            **options,
        )
