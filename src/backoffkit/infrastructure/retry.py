"""Retry decorators using tenacity with decorrelated jitter delays.

This module lets code that already relies on tenacity use the same delay
schedule and cancellation behaviour as backoffkit.application.runner.
"""

from __future__ import annotations

import functools
import logging
import time
from typing import Any, Callable, Dict, Optional

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
)
from tenacity.wait import wait_base

from backoffkit.application.runner import CancelSignal
from backoffkit.domain.config.backoff import BackoffConfig
from backoffkit.domain.policy.decorr_jitter import DecorrJitter

logger = logging.getLogger(__name__)


class RetryCancelled(Exception):
    """Raised by the sleep function when the cancellation signal fires."""

    pass


class wait_decorrelated_jitter(wait_base):
    """Tenacity wait strategy backed by a DecorrJitter policy.

    The policy starts over whenever tenacity starts a new call (attempt 1), so
    one instance can serve sequential calls but not concurrent ones.
    """

    def __init__(self, config: Optional[BackoffConfig] = None) -> None:
        self.retryer = DecorrJitter(config=config or BackoffConfig())

    def __call__(self, retry_state: RetryCallState) -> float:
        attempt = retry_state.attempt_number
        if attempt <= self.retryer.attempt:
            self.retryer.reset()
        while self.retryer.attempt < attempt:
            self.retryer.next()
        return self.retryer.delay()


def _make_sleep(cancel: Optional[CancelSignal]) -> Callable[[float], None]:
    def _sleep(seconds: float) -> None:
        if cancel is None:
            time.sleep(seconds)
            return
        if cancel.wait(seconds):
            raise RetryCancelled()

    return _sleep


def create_retry_decorator(
    config: BackoffConfig,
    retry_condition: Optional[Callable[[BaseException], bool]] = None,
    cancel: Optional[CancelSignal] = None,
    before_sleep: Optional[Callable[[RetryCallState], None]] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> Callable[[Callable], Callable]:
    """Create a retry decorator with tenacity.

    Args:
        config: Backoff configuration
        retry_condition: Function that returns True if exception should be retried (all if None)
        cancel: Cancellation signal checked while sleeping between attempts
        before_sleep: Optional callback before sleep (defaults to logging)
        sleep: Sleep function override, ignores cancel when given

    Returns:
        Retry decorator. The decorated function re-raises the exception of its
        last attempt when retries are exhausted or cancelled.
    """
    retry_predicate = (
        retry_if_exception(retry_condition)
        if retry_condition is not None
        else retry_if_exception_type(Exception)
    )
    sleep_func = sleep if sleep is not None else _make_sleep(cancel)

    def _before_sleep_log(retry_state: RetryCallState) -> None:
        if retry_state.outcome is None:
            return
        exception = retry_state.outcome.exception()
        attempt = retry_state.attempt_number
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f"Attempt {attempt}/{config.max_attempts} failed: {exception}. "
            f"Retrying in {delay:.3f}s"
        )

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapped(*args: Any, **kwargs: Any) -> Any:
            last: Dict[str, BaseException] = {}

            def _record(retry_state: RetryCallState) -> None:
                if retry_state.outcome is not None:
                    last["error"] = retry_state.outcome.exception()
                (before_sleep or _before_sleep_log)(retry_state)

            retrying = Retrying(
                stop=stop_after_attempt(config.max_attempts),
                wait=wait_decorrelated_jitter(config),
                retry=retry_predicate,
                reraise=True,
                before_sleep=_record,
                sleep=sleep_func,
            )
            try:
                return retrying(func, *args, **kwargs)
            except RetryCancelled:
                logger.info(f"Retries of {func.__name__} cancelled")
                raise last["error"] from None

        return wrapped

    return decorator
