"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from backoffkit.domain.config.settings import BackoffSettings


class AppConfig(BaseModel):
    """Main application configuration.

    This is the root configuration model that aggregates all configuration sections.
    Validation is performed at load time to fail fast on configuration errors.

    Attributes:
        backoff: Retry policy configuration
    """

    backoff: BackoffSettings = Field(default_factory=BackoffSettings)

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        json_schema_extra={
            "example": {
                "backoff": {
                    "policy": "decorr_jitter",
                    "max_retries": 5,
                    "multiplier": 30.0,
                    "max_wait": 300.0,
                    "seed": None,
                },
            }
        },
    )
