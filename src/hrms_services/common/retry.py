from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from ..core.constants import DEFAULT_RETRY_ATTEMPTS, DEFAULT_RETRY_BACKOFF, DEFAULT_RETRY_DELAY_SECONDS
from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = DEFAULT_RETRY_ATTEMPTS
    delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS
    backoff: float = DEFAULT_RETRY_BACKOFF

    def delay_for(self, attempt: int) -> float:
        """Sleep before the attempt following `attempt` (1-based)."""
        return self.delay_seconds * (self.backoff ** (attempt - 1))


def with_retry(
    operation: Callable[[], T],
    label: str,
    policy: RetryPolicy | None = None,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run `operation`, repeating it while it fails with a retryable error.

    Terminal errors (validation, not found, constraint violations and any
    non-domain exception) surface after the first attempt. The error that
    finally escapes carries `label` in its `operation` attribute.
    """

    policy = policy or RetryPolicy()
    attempts = max(int(policy.max_attempts), 1)
    attempt = 1
    while True:
        try:
            return operation()
        except DomainError as exc:
            if exc.operation is None:
                exc.operation = label
            if not exc.retryable:
                raise
            if attempt >= attempts:
                logger.error("%s failed after %d attempts: %s", label, attempt, exc)
                raise
            delay = policy.delay_for(attempt)
            logger.warning("%s failed (attempt %d/%d), retrying in %.2fs: %s", label, attempt, attempts, delay, exc)
            if delay > 0:
                sleep(delay)
            attempt += 1
