"""Backoff configuration model and option functions.

Options are applied in order to a pending settings dict and then validated into
an immutable BackoffConfig. Invalid values never raise: they are replaced by the
module defaults so that policy construction is always total.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from random import Random
from typing import Any, Callable, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

# MAX_RETRIES is a default number of retries after the first attempt.
MAX_RETRIES = 10
# MULTIPLIER is a default base delay (seconds) that starts the wait interval growth.
MULTIPLIER = 0.025
# MAX_WAIT is a default upper limit (seconds) of a single delay.
MAX_WAIT = 20.0

Duration = Union[int, float, timedelta]
Option = Callable[[Dict[str, Any]], None]


def _to_seconds(value: Any) -> Optional[float]:
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def normalize_max_retries(value: Any) -> int:
    """Return value as a retry count, or MAX_RETRIES if it's not >= 0."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        logger.debug(f"Invalid max_retries {value!r}, using default {MAX_RETRIES}")
        return MAX_RETRIES
    return value


def normalize_multiplier(value: Any) -> float:
    """Return value in seconds, or MULTIPLIER if it's not > 0."""
    seconds = _to_seconds(value)
    if seconds is None or seconds <= 0:
        logger.debug(f"Invalid multiplier {value!r}, using default {MULTIPLIER}s")
        return MULTIPLIER
    return seconds


def normalize_max_wait(value: Any) -> float:
    """Return value in seconds, or MAX_WAIT if it's not > 0."""
    seconds = _to_seconds(value)
    if seconds is None or seconds <= 0:
        logger.debug(f"Invalid max_wait {value!r}, using default {MAX_WAIT}s")
        return MAX_WAIT
    return seconds


class BackoffConfig(BaseModel):
    """Configuration of a retryer.

    Attributes:
        max_retries: How many times the work should be retried after the first attempt
        multiplier: Base delay in seconds, e.g. 5.0
        max_wait: Max waiting time between attempts in seconds, e.g. 300.0
        random: Pseudo-random number generator; a process-seeded one is used if None
    """

    max_retries: int = MAX_RETRIES
    multiplier: float = MULTIPLIER
    max_wait: float = MAX_WAIT
    random: Optional[Random] = Field(default=None, exclude=True, repr=False)

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )

    @field_validator("max_retries", mode="before")
    @classmethod
    def _validate_max_retries(cls, v: Any) -> int:
        return normalize_max_retries(v)

    @field_validator("multiplier", mode="before")
    @classmethod
    def _validate_multiplier(cls, v: Any) -> float:
        return normalize_multiplier(v)

    @field_validator("max_wait", mode="before")
    @classmethod
    def _validate_max_wait(cls, v: Any) -> float:
        return normalize_max_wait(v)

    @property
    def max_attempts(self) -> int:
        """Total number of attempts: the first one plus the retries."""
        return self.max_retries + 1


def with_rand(r: Random) -> Option:
    """Set a pseudo-random number generator.

    It's primarily used to make delays reproducible in tests.
    """

    def apply(settings: Dict[str, Any]) -> None:
        settings["random"] = r

    return apply


def with_max_retries(n: int) -> Option:
    """Set an upper limit on retries.

    It should be >= 0 or else the default value MAX_RETRIES is used.
    """

    def apply(settings: Dict[str, Any]) -> None:
        settings["max_retries"] = normalize_max_retries(n)

    return apply


def with_multiplier(d: Duration) -> Option:
    """Set the base delay that the wait interval grows from.

    It should be > 0 or else the default value MULTIPLIER is used.
    """

    def apply(settings: Dict[str, Any]) -> None:
        settings["multiplier"] = normalize_multiplier(d)

    return apply


def with_max_wait(d: Duration) -> Option:
    """Set an upper limit of waiting time between attempts.

    It should be > 0 or else the default value MAX_WAIT is used.
    """

    def apply(settings: Dict[str, Any]) -> None:
        settings["max_wait"] = normalize_max_wait(d)

    return apply


def new_config(*options: Option) -> BackoffConfig:
    """Build a BackoffConfig from options applied in order.

    Later options for the same field override earlier ones.
    """
    settings: Dict[str, Any] = {}
    for option in options:
        option(settings)
    return BackoffConfig(**settings)
