"""Decorrelated jitter retry policy.

The first retry waits a random fraction of the multiplier. After that each
delay is drawn uniformly between the multiplier and three times the previous
delay, then capped by max_wait:

    first     = multiplier * uniform(0, 1)
    span      = max(multiplier, previous * 3)
    candidate = multiplier + uniform(0, 1) * (span - multiplier)
    delay     = min(candidate, max_wait)

Clients retrying at the same time drift apart instead of hitting the server in
lockstep, while delays still grow roughly exponentially on average.
"""

from random import Random
from typing import Optional

from backoffkit.domain.config.backoff import BackoffConfig, Option
from backoffkit.domain.policy.base import BudgetRetryer


class DecorrJitter(BudgetRetryer):
    """Retryer with decorrelated jitter delays.

    Six calls of work at most, the first attempt and five retries::

        r = DecorrJitter(with_max_retries(5), with_multiplier(30), with_max_wait(300))
        attempt = 0
        while r.next():
            attempt += 1
            if work(attempt):
                break
            time.sleep(r.delay())
    """

    def __init__(self, *options: Option, config: Optional[BackoffConfig] = None):
        super().__init__(*options, config=config)
        self.random: Random = self.config.random or Random()
        self._previous = 0.0

    @property
    def previous_delay(self) -> float:
        return self._previous

    def reset(self) -> None:
        """Start over; the random source keeps its state."""
        super().reset()
        self._previous = 0.0

    def _compute_delay(self) -> float:
        base = self.config.multiplier
        if self._previous == 0:
            # First retry: somewhere in [0, multiplier).
            candidate = base * self.random.random()
        else:
            span = max(base, self._previous * 3)
            candidate = base + self.random.random() * (span - base)
        self._previous = min(candidate, self.config.max_wait)
        return self._previous
