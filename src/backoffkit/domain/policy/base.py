"""Base retry policy interface"""

from abc import ABC, abstractmethod
from typing import Optional

from backoffkit.domain.config.backoff import BackoffConfig, Option, new_config


class Retryer(ABC):
    """Abstract base class for retry policies.

    The retry loop calls next() before every attempt and delay() after every
    failed one. A retryer is stateful and must not be shared by concurrent loops.
    """

    @abstractmethod
    def next(self) -> bool:
        """Advance to the next attempt

        Returns:
            True if the attempt should be made
        """
        pass

    @abstractmethod
    def delay(self) -> float:
        """Wait duration in seconds before the next attempt

        Returns:
            Delay in seconds, zero when no further attempt will follow
        """
        pass

    @abstractmethod
    def reset(self) -> None:
        """Return the retryer to its initial state"""
        pass


class BudgetRetryer(Retryer):
    """Retryer that allows max_retries + 1 attempts.

    Subclasses only compute delays for non-terminal attempts.
    """

    def __init__(self, *options: Option, config: Optional[BackoffConfig] = None):
        """Initialize retryer

        Args:
            *options: Option functions applied in order
            config: Ready-made configuration (options are ignored if given)
        """
        self.config = config if config is not None else new_config(*options)
        self._attempt = 0

    @classmethod
    def from_config(cls, config: BackoffConfig) -> "BudgetRetryer":
        return cls(config=config)

    @property
    def attempt(self) -> int:
        """Number of next() calls since creation or the last reset()."""
        return self._attempt

    def next(self) -> bool:
        self._attempt += 1
        return self._attempt <= self.config.max_attempts

    def delay(self) -> float:
        # Nothing to wait for after the last permitted attempt.
        if self._attempt >= self.config.max_attempts:
            return 0.0
        return self._compute_delay()

    def reset(self) -> None:
        self._attempt = 0

    @abstractmethod
    def _compute_delay(self) -> float:
        """Delay before a retry that is known to follow."""
        pass
