"""Retry policies without jitter.

Mostly useful in tests and for talking to services that publish a fixed retry
interval.
"""

from backoffkit.domain.policy.base import BudgetRetryer


class ConstantBackoff(BudgetRetryer):
    """Waits multiplier seconds (capped by max_wait) between attempts."""

    def _compute_delay(self) -> float:
        return min(self.config.multiplier, self.config.max_wait)


class ExponentialBackoff(BudgetRetryer):
    """Doubles the wait after every attempt: multiplier * 2 ** (attempt - 1)."""

    def _compute_delay(self) -> float:
        # Cap the exponent so huge budgets don't overflow before min() applies.
        exponent = min(self.attempt - 1, 1023)
        return min(self.config.multiplier * 2.0**exponent, self.config.max_wait)
