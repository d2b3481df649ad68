"""Configuration manager for loading and validating .backoff.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from backoffkit.domain.config import (
    MAX_RETRIES,
    MAX_WAIT,
    MULTIPLIER,
    AppConfig,
    BackoffSettings,
    new_config,
)
from backoffkit.domain.policy.base import BudgetRetryer
from backoffkit.infrastructure.policy_factory import RetryerFactory

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".backoff.yml"


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Manages configuration from .backoff.yml and environment variables

    Loads configuration with validation using Pydantic models. Configuration priority:
    1. Default values (defined in Pydantic models)
    2. .backoff.yml file (searched from current directory)
    3. Environment variables (BACKOFF_*)
    4. CLI arguments (handled by CLI layer)
    """

    DEFAULT_CONFIG = {
        "backoff": {
            "policy": "decorr_jitter",
            "max_retries": MAX_RETRIES,
            "multiplier": MULTIPLIER,
            "max_wait": MAX_WAIT,
            "seed": None,
        },
    }

    # Environment variable -> key in the backoff section
    ENV_OVERRIDES = {
        "BACKOFF_POLICY": "policy",
        "BACKOFF_MAX_RETRIES": "max_retries",
        "BACKOFF_MULTIPLIER": "multiplier",
        "BACKOFF_MAX_WAIT": "max_wait",
        "BACKOFF_SEED": "seed",
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .backoff.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                msg = error["msg"]
                errors.append(f"  - {field}: {msg}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find .backoff.yml file starting from current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and validate with Pydantic

        Returns:
            Validated AppConfig instance

        Raises:
            ValidationError: If configuration is invalid
        """
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
                if not isinstance(file_config, dict):
                    raise ValueError("top-level YAML value must be a mapping")
                config_dict = self._merge_config(config_dict, file_config)
                logger.info(f"Loaded configuration from {self.config_path}")
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {self.config_path}: {e}")
                logger.info("Using default configuration")

        config_dict = self._apply_env_overrides(config_dict)

        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides

        Values are passed as strings, pydantic converts them.

        Args:
            config: Configuration dictionary

        Returns:
            Configuration with env overrides applied
        """
        section = config.get("backoff")
        if not isinstance(section, dict):
            return config
        for env_name, key in self.ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                section[key] = value
        return config

    def get_backoff_settings(self) -> BackoffSettings:
        """Get backoff settings

        Returns:
            Backoff settings model
        """
        return self.config.backoff

    def create_retryer(self) -> BudgetRetryer:
        """Create the configured retry policy

        Returns:
            Retryer built from the backoff settings
        """
        settings = self.config.backoff
        return RetryerFactory.create(settings.policy, new_config(*settings.to_options()))

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)

        Args:
            key: Configuration key (e.g., "backoff.max_retries" or "backoff")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        value = self.config.model_dump()
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value
