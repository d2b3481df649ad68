"""Configuration models with Pydantic validation."""

from backoffkit.domain.config.app import AppConfig
from backoffkit.domain.config.backoff import (
    MAX_RETRIES,
    MAX_WAIT,
    MULTIPLIER,
    BackoffConfig,
    Option,
    new_config,
    with_max_retries,
    with_max_wait,
    with_multiplier,
    with_rand,
)
from backoffkit.domain.config.settings import BackoffSettings

__all__ = [
    "AppConfig",
    "BackoffConfig",
    "BackoffSettings",
    "Option",
    "new_config",
    "with_rand",
    "with_max_retries",
    "with_multiplier",
    "with_max_wait",
    "MAX_RETRIES",
    "MULTIPLIER",
    "MAX_WAIT",
]
