"""Bounded retry for calls against rate-limited platform APIs."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from catalogsync.errors import RateLimitExceeded, UpstreamError, ValidationRejected

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS = 429
UNPROCESSABLE = 422
MAX_ATTEMPTS = 3
RETRY_DELAY = 3.0
RETRY_EXCEPTIONS = (httpx.TransportError,)


class Outcome(Enum):
    SUCCESS = "success"
    REJECTED = "rejected"
    EXHAUSTED = "exhausted"


@dataclass(slots=True)
class ExecutionResult:
    outcome: Outcome
    response: httpx.Response
    attempts: int

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS

    @property
    def rejected(self) -> bool:
        return self.outcome is Outcome.REJECTED

    @property
    def exhausted(self) -> bool:
        return self.outcome is Outcome.EXHAUSTED

    def json(self) -> Any:
        return self.response.json()

    def require(self) -> httpx.Response:
        """Return the response, raising for a rejected or abandoned call."""
        request = self.response.request
        if self.rejected:
            raise ValidationRejected(
                f"{request.method} {request.url} rejected: {self.response.text}",
                body=self.response.text,
            )
        if self.exhausted:
            raise RateLimitExceeded(
                f"{request.method} {request.url} still rate limited after {self.attempts} attempts"
            )
        return self.response


class RateLimitedExecutor:
    """Send requests through a session, retrying "too many requests" a fixed number of times.

    Validation rejections come back as ``Outcome.REJECTED`` without a retry and
    any other error status raises ``UpstreamError``.
    """

    def __init__(
        self,
        session: httpx.Client,
        *,
        max_attempts: int = MAX_ATTEMPTS,
        delay: float = RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session
        self.max_attempts = max_attempts
        self.delay = delay
        self._sleep = sleep

    def execute(self, method: str, url: str, **kwargs: Any) -> ExecutionResult:
        response: httpx.Response | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                response = self.session.request(method, url, **kwargs)
            except RETRY_EXCEPTIONS as exc:
                if attempt == self.max_attempts:
                    raise
                logger.warning("%s %s failed (%s), retrying", method, url, exc)
                self._sleep(self.delay)
                continue

            status = response.status_code
            if status == TOO_MANY_REQUESTS:
                logger.warning(
                    "Rate limited on %s %s (attempt %s/%s)", method, url, attempt, self.max_attempts
                )
                if attempt < self.max_attempts:
                    self._sleep(self.delay)
                continue
            if status == UNPROCESSABLE:
                logger.error("%s %s rejected: %s", method, url, response.text)
                return ExecutionResult(Outcome.REJECTED, response, attempt)
            if response.is_error:
                logger.error("%s %s failed with %s: %s", method, url, status, response.text)
                raise UpstreamError.from_response(response)
            return ExecutionResult(Outcome.SUCCESS, response, attempt)

        assert response is not None
        logger.warning("Giving up on %s %s after %s rate-limited attempts", method, url, self.max_attempts)
        return ExecutionResult(Outcome.EXHAUSTED, response, self.max_attempts)
