"""Backoff settings loaded from configuration files."""

from random import Random
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from backoffkit.domain.config.backoff import (
    MAX_RETRIES,
    MAX_WAIT,
    MULTIPLIER,
    Option,
    with_max_retries,
    with_max_wait,
    with_multiplier,
    with_rand,
)


class BackoffSettings(BaseModel):
    """User-facing backoff settings.

    Types are validated strictly, ranges are not: out-of-range numbers are
    replaced with defaults when the settings are turned into options.

    Attributes:
        policy: Name of the retry policy
        max_retries: Retries after the first attempt
        multiplier: Base delay in seconds
        max_wait: Upper limit of a single delay in seconds
        seed: Seed of the pseudo-random number generator (None for process-seeded)
    """

    policy: Literal["decorr_jitter", "exponential", "constant"] = "decorr_jitter"
    max_retries: int = Field(MAX_RETRIES)
    multiplier: float = Field(MULTIPLIER)
    max_wait: float = Field(MAX_WAIT)
    seed: Optional[int] = None

    def to_options(self) -> List[Option]:
        """Convert settings to option functions."""
        options = [
            with_max_retries(self.max_retries),
            with_multiplier(self.multiplier),
            with_max_wait(self.max_wait),
        ]
        if self.seed is not None:
            options.append(with_rand(Random(self.seed)))
        return options
