"""Retry logic for transient storage failures.

Retries only StorageUnavailableError (timeouts, unreachable backends).
Validation and state errors are never retried; they describe the request,
not the infrastructure.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from catalog.errors import StorageUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def call_with_retry(
    operation: Callable[[], T],
    *,
    description: str,
    max_retries: int = 1,
    backoff_seconds: float = 0.0,
) -> T:
    """Run ``operation``, retrying transient storage failures.

    Args:
        operation: Zero-argument callable performing one storage round trip.
        description: Short label used in log lines, e.g. ``"put datasets/..."``.
        max_retries: Additional attempts after the first failure.
            Total attempts = 1 + max_retries.
        backoff_seconds: Sleep between attempts.

    Returns:
        Whatever ``operation`` returns.

    Raises:
        StorageUnavailableError: If every attempt failed transiently.
    """
    total_attempts = 1 + max(0, max_retries)

    for attempt in range(1, total_attempts + 1):
        try:
            return operation()
        except StorageUnavailableError as exc:
            if attempt == total_attempts:
                logger.error(
                    "Storage operation %s failed after %d attempt(s): %s",
                    description,
                    total_attempts,
                    exc,
                )
                raise
            logger.warning(
                "Attempt %d/%d of storage operation %s failed: %s",
                attempt,
                total_attempts,
                description,
                exc,
            )
            if backoff_seconds > 0:
                time.sleep(backoff_seconds)

    raise AssertionError("unreachable")
