"""Factory for creating retry policies"""

import logging
from typing import Optional

from backoffkit.domain.config.backoff import BackoffConfig
from backoffkit.domain.policy.base import BudgetRetryer
from backoffkit.domain.policy.decorr_jitter import DecorrJitter
from backoffkit.domain.policy.simple import ConstantBackoff, ExponentialBackoff

logger = logging.getLogger(__name__)


class RetryerFactory:
    """Factory for creating retryer instances"""

    POLICIES = {
        "decorr_jitter": DecorrJitter,
        "exponential": ExponentialBackoff,
        "constant": ConstantBackoff,
    }

    @classmethod
    def create(cls, policy_type: str, config: Optional[BackoffConfig] = None) -> BudgetRetryer:
        """Create retryer instance

        Args:
            policy_type: Type of policy (decorr_jitter, exponential, constant)
            config: Backoff configuration (defaults if None)

        Returns:
            Retryer instance

        Raises:
            ValueError: If policy type is not supported
        """
        if config is None:
            config = BackoffConfig()

        policy_type_lower = policy_type.lower()

        if policy_type_lower not in cls.POLICIES:
            available = ", ".join(cls.POLICIES.keys())
            raise ValueError(
                f"Unknown retry policy: {policy_type}. "
                f"Available policies: {available}"
            )

        policy_class = cls.POLICIES[policy_type_lower]
        logger.debug(
            f"Creating {policy_type_lower} retryer "
            f"(max_retries={config.max_retries}, multiplier={config.multiplier}s, "
            f"max_wait={config.max_wait}s)"
        )
        return policy_class.from_config(config)
