"""
Retry Logic with Exponential Backoff

Builds the tenacity policy applied to every Azure Resource Manager call.
Only transient failures are retried: connection problems, server-side (5xx)
errors, request timeouts (408) and throttling (429). Cancellation is never
retried.
"""
from collections.abc import Awaitable, Callable
from typing import Any, Optional

import httpx
import structlog
from azure.core.exceptions import (
    HttpResponseError,
    ServiceRequestError,
    ServiceResponseError,
)
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from armclient.shared.core.config import Settings, get_settings
from armclient.shared.core.ops_metrics import DEPENDENCY_RETRIES

logger = structlog.get_logger()

RETRYABLE_STATUS_CODES = frozenset({408, 429})


def _is_retryable_status(status_code: Optional[int]) -> bool:
    if status_code is None:
        return False
    return status_code >= 500 or status_code in RETRYABLE_STATUS_CODES


def is_transient_error(exc: BaseException) -> bool:
    """Return True when *exc* is worth another attempt."""
    if isinstance(exc, (ServiceRequestError, ServiceResponseError)):
        return True
    if isinstance(exc, HttpResponseError):
        return _is_retryable_status(exc.status_code)
    if isinstance(exc, httpx.HTTPStatusError):
        return _is_retryable_status(exc.response.status_code)
    if isinstance(exc, httpx.TransportError):
        return True
    return False


def _log_before_sleep(
    dependency_name: str, command_name: str, max_attempts: int
) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        DEPENDENCY_RETRIES.labels(dependency=dependency_name, command=command_name).inc()
        logger.warning(
            "arm_call_failed_will_retry",
            dependency=dependency_name,
            command=command_name,
            attempt=retry_state.attempt_number,
            max_attempts=max_attempts,
            delay_seconds=round(delay, 3),
            error=str(error),
            error_type=type(error).__name__,
        )

    return before_sleep


def build_retry_policy(
    dependency_name: str,
    command_name: str,
    settings: Optional[Settings] = None,
    sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
) -> AsyncRetrying:
    """
    Create the retry policy for one dependency call.

    The default schedule waits 2s, 4s and 8s between the four attempts.
    """
    settings = settings or get_settings()
    max_attempts = settings.ARM_RETRY_COUNT + 1
    kwargs: dict[str, Any] = {}
    if sleep is not None:
        kwargs["sleep"] = sleep

    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=settings.ARM_RETRY_BACKOFF_MULTIPLIER,
            max=settings.ARM_RETRY_MAX_BACKOFF_SECONDS,
        ),
        retry=retry_if_exception(is_transient_error),
        before_sleep=_log_before_sleep(dependency_name, command_name, max_attempts),
        reraise=True,
        **kwargs,
    )
