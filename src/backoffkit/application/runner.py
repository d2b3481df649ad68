"""Retry loop driven by a retry policy.

run() calls the work function until it succeeds, the retryer runs out of
attempts or the cancellation signal fires while waiting between attempts.
Exhaustion and cancellation look the same to the caller: the error from the
last attempt is returned. Check the signal after run() returns to tell them
apart.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Protocol, TypeVar

from backoffkit.domain.policy.base import Retryer

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancelSignal(Protocol):
    """Cancellation signal, threading.Event satisfies it."""

    def is_set(self) -> bool: ...

    def wait(self, timeout: Optional[float] = None) -> bool: ...


def _wait(cancel: Optional[CancelSignal], seconds: float) -> bool:
    """Sleep for seconds unless cancel fires first.

    Returns:
        True if the wait was cancelled
    """
    if cancel is None:
        time.sleep(seconds)
        return False
    return cancel.wait(seconds)


def run(
    cancel: Optional[CancelSignal],
    retryer: Retryer,
    work: Callable[[int], Any],
) -> Optional[Exception]:
    """Call work and retry it with backoff while it raises.

    Args:
        cancel: Cancellation signal checked while waiting between attempts (None to never cancel)
        retryer: Retry policy, consumed by this call
        work: Function of the 1-based attempt number; raising an exception means failure

    Returns:
        None if an attempt succeeded, otherwise the exception from the last attempt
    """
    err: Optional[Exception] = None
    attempt = 1
    while retryer.next():
        try:
            work(attempt)
        except Exception as e:
            err = e
        else:
            return None

        d = retryer.delay()
        if d > 0:
            logger.warning(f"Attempt {attempt} failed: {err}. Retrying in {d:.3f}s")
            if _wait(cancel, d):
                logger.info(f"Retry cancelled after attempt {attempt}")
                return err
        else:
            logger.debug(f"Attempt {attempt} failed: {err}")
        attempt += 1

    logger.debug(f"Giving up after {attempt - 1} attempts")
    return err


def call(
    cancel: Optional[CancelSignal],
    retryer: Retryer,
    work: Callable[[int], T],
) -> T:
    """Same as run() but returns what work returned and raises the last error.

    Raises:
        Exception: The exception from the last attempt if no attempt succeeded
    """
    result: Any = None

    def _capture(attempt: int) -> None:
        nonlocal result
        result = work(attempt)

    err = run(cancel, retryer, _capture)
    if err is not None:
        raise err
    return result


async def run_async(
    cancel: Optional[asyncio.Event],
    retryer: Retryer,
    work: Callable[[int], Awaitable[Any]],
) -> Optional[Exception]:
    """Asyncio version of run(); work is a coroutine function.

    Waiting between attempts doesn't block the event loop.
    """
    err: Optional[Exception] = None
    attempt = 1
    while retryer.next():
        try:
            await work(attempt)
        except Exception as e:
            err = e
        else:
            return None

        d = retryer.delay()
        if d > 0:
            logger.warning(f"Attempt {attempt} failed: {err}. Retrying in {d:.3f}s")
            if cancel is None:
                await asyncio.sleep(d)
            else:
                try:
                    await asyncio.wait_for(cancel.wait(), timeout=d)
                except asyncio.TimeoutError:
                    pass
                else:
                    logger.info(f"Retry cancelled after attempt {attempt}")
                    return err
        attempt += 1

    return err
