"""backoffkit - retry with decorrelated jitter backoff"""

from backoffkit.application.runner import call, run, run_async
from backoffkit.domain.config import (
    MAX_RETRIES,
    MAX_WAIT,
    MULTIPLIER,
    BackoffConfig,
    new_config,
    with_max_retries,
    with_max_wait,
    with_multiplier,
    with_rand,
)
from backoffkit.domain.policy import (
    ConstantBackoff,
    DecorrJitter,
    ExponentialBackoff,
    Retryer,
)

__version__ = "0.1.0"

__all__ = [
    "run",
    "call",
    "run_async",
    "Retryer",
    "DecorrJitter",
    "ConstantBackoff",
    "ExponentialBackoff",
    "BackoffConfig",
    "new_config",
    "with_rand",
    "with_max_retries",
    "with_multiplier",
    "with_max_wait",
    "MAX_RETRIES",
    "MULTIPLIER",
    "MAX_WAIT",
]
