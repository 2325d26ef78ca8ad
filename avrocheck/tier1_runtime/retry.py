"""
avrocheck.tier1_runtime.retry
──────────────────────────────
Retry/backoff policy for registry fetches, with jitter. Backed by Tenacity.
Only errors flagged ``retryable`` (the FetchError family) are retried; a
malformed schema will keep failing until the registry changes, so it is not.

Usage:
    async for attempt in fetch_retrying(config):
        with attempt:
            raw = await client.fetch(schema_id)
"""
from __future__ import annotations

from collections.abc import Callable
from typing import Any

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from avrocheck.tier0_core.config import ValidatorConfig
from avrocheck.tier0_core.errors import AvrocheckError
from avrocheck.tier0_core.logging import get_logger

logger = get_logger(__name__)


def _is_retryable(exc: BaseException) -> bool:
    """Return True if the exception should be retried."""
    return isinstance(exc, AvrocheckError) and exc.retryable


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.warning(
        "registry.fetch.retry",
        attempt=state.attempt_number,
        error=type(exc).__name__ if exc else None,
        wait_s=round(state.next_action.sleep, 3) if state.next_action else None,
    )


def fetch_retrying(
    config: ValidatorConfig,
    *,
    jitter: float | None = None,
    sleep: Callable[[float], Any] | None = None,
) -> AsyncRetrying:
    """
    Build an AsyncRetrying for one shared registry fetch.

    Args:
        config:  fetch_attempts, retry_min_wait and retry_max_wait are used.
        jitter:  Maximum random seconds added to each wait
                 (default: retry_min_wait).
        sleep:   Override the async sleep (tests).
    """
    jitter = config.retry_min_wait if jitter is None else jitter
    kwargs: dict[str, Any] = {}
    if sleep is not None:
        kwargs["sleep"] = sleep
    return AsyncRetrying(
        stop=stop_after_attempt(config.fetch_attempts),
        wait=wait_exponential(min=config.retry_min_wait, max=config.retry_max_wait)
        + wait_random(0, jitter),
        retry=retry_if_exception(_is_retryable),
        before_sleep=_log_retry,
        reraise=True,
        **kwargs,
    )


__all__ = ["fetch_retrying"]
