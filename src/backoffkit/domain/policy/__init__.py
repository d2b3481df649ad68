"""Retry policies"""

from backoffkit.domain.policy.base import BudgetRetryer, Retryer
from backoffkit.domain.policy.decorr_jitter import DecorrJitter
from backoffkit.domain.policy.simple import ConstantBackoff, ExponentialBackoff

__all__ = [
    "Retryer",
    "BudgetRetryer",
    "DecorrJitter",
    "ConstantBackoff",
    "ExponentialBackoff",
]
