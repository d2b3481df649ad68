"""Tests for configuration validation with Pydantic."""

from datetime import timedelta
from random import Random

import pytest
import yaml
from pydantic import ValidationError

from backoffkit.domain.config import (
    MAX_RETRIES,
    MAX_WAIT,
    MULTIPLIER,
    AppConfig,
    BackoffConfig,
    BackoffSettings,
    new_config,
    with_max_retries,
    with_max_wait,
    with_multiplier,
    with_rand,
)
from backoffkit.domain.policy import ConstantBackoff, DecorrJitter
from backoffkit.infrastructure.config.config_manager import ConfigManager, ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ConfigManager.ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)


class TestBackoffConfig:
    """Tests for BackoffConfig normalization."""

    def test_defaults(self):
        """Test documented defaults"""
        config = BackoffConfig()
        assert config.max_retries == 10
        assert config.multiplier == 0.025
        assert config.max_wait == 20.0
        assert config.random is None
        assert config.max_attempts == 11

    def test_invalid_values_replaced_with_defaults(self):
        """Test invalid values never raise"""
        config = BackoffConfig(max_retries=-1, multiplier=0, max_wait=-5)
        assert config.max_retries == MAX_RETRIES
        assert config.multiplier == MULTIPLIER
        assert config.max_wait == MAX_WAIT

    def test_none_replaced_with_defaults(self):
        """Test None is treated as unset"""
        config = BackoffConfig(max_retries=None, multiplier=None, max_wait=None)
        assert config == BackoffConfig()

    def test_timedelta_converted_to_seconds(self):
        """Test durations given as timedelta"""
        config = BackoffConfig(multiplier=timedelta(milliseconds=250), max_wait=timedelta(minutes=1))
        assert config.multiplier == 0.25
        assert config.max_wait == 60.0

    def test_zero_retries_allowed(self):
        """Test max_retries=0 is valid"""
        assert BackoffConfig(max_retries=0).max_retries == 0

    def test_immutable(self):
        """Test config can't be changed after construction"""
        config = BackoffConfig()
        with pytest.raises(ValidationError):
            config.max_retries = 3

    def test_unknown_field(self):
        """Test unknown fields are rejected"""
        with pytest.raises(ValidationError):
            BackoffConfig(jitter=0.1)

    def test_random_excluded_from_dump(self):
        """Test the random source isn't serialized"""
        config = BackoffConfig(random=Random(1))
        assert "random" not in config.model_dump()


class TestOptions:
    """Tests for option functions."""

    def test_no_options(self):
        """Test new_config without options gives defaults"""
        assert new_config() == BackoffConfig()

    def test_options_applied(self):
        """Test each option sets its field"""
        random = Random(1)
        config = new_config(
            with_rand(random),
            with_max_retries(5),
            with_multiplier(30),
            with_max_wait(300),
        )
        assert config.random is random
        assert config.max_retries == 5
        assert config.multiplier == 30.0
        assert config.max_wait == 300.0

    def test_later_option_wins(self):
        """Test later options for the same field override earlier ones"""
        config = new_config(with_max_retries(2), with_max_retries(7))
        assert config.max_retries == 7

    def test_invalid_later_option_resets_to_default(self):
        """Test an invalid later option replaces an earlier valid one with the default"""
        config = new_config(with_multiplier(1), with_multiplier(-1))
        assert config.multiplier == MULTIPLIER

    @pytest.mark.parametrize("value", [-1, -100])
    def test_negative_retries(self, value):
        """Test negative retries use the default"""
        assert new_config(with_max_retries(value)).max_retries == MAX_RETRIES

    @pytest.mark.parametrize("value", [0, -1, timedelta(0), timedelta(seconds=-1)])
    def test_non_positive_durations(self, value):
        """Test non-positive durations use the defaults"""
        config = new_config(with_multiplier(value), with_max_wait(value))
        assert config.multiplier == MULTIPLIER
        assert config.max_wait == MAX_WAIT

    def test_no_cross_field_validation(self):
        """Test max_wait may be smaller than multiplier"""
        config = new_config(with_multiplier(2), with_max_wait(1))
        assert config.multiplier == 2.0
        assert config.max_wait == 1.0


class TestBackoffSettings:
    """Tests for BackoffSettings validation."""

    def test_defaults(self):
        """Test default settings"""
        settings = BackoffSettings()
        assert settings.policy == "decorr_jitter"
        assert settings.seed is None

    def test_invalid_policy(self):
        """Test unknown policy name"""
        with pytest.raises(ValidationError, match="policy"):
            BackoffSettings(policy="fibonacci")

    def test_invalid_type(self):
        """Test values of the wrong type"""
        with pytest.raises(ValidationError, match="max_retries"):
            BackoffSettings(max_retries="lots")

    def test_to_options_normalizes(self):
        """Test out-of-range numbers become defaults"""
        settings = BackoffSettings(max_retries=-3, multiplier=0, max_wait=-1)
        assert new_config(*settings.to_options()) == BackoffConfig()

    def test_seed_makes_delays_reproducible(self):
        """Test seeded settings give identical retryers"""
        settings = BackoffSettings(seed=11, max_retries=5)

        def delays():
            r = DecorrJitter(*settings.to_options())
            got = []
            while r.next():
                got.append(r.delay())
            return got

        assert delays() == delays()

    def test_app_config_rejects_unknown_sections(self):
        """Test unknown top-level sections"""
        with pytest.raises(ValidationError):
            AppConfig(retry={"max_attempts": 3})


class TestConfigManager:
    """Tests for ConfigManager loading."""

    def _write(self, tmp_path, data):
        path = tmp_path / ".backoff.yml"
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return path

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        """Test defaults when no config file exists"""
        monkeypatch.chdir(tmp_path)
        manager = ConfigManager()
        assert manager.config_path is None
        assert manager.get_backoff_settings() == BackoffSettings()

    def test_finds_file_in_parent_directory(self, tmp_path, monkeypatch):
        """Test config file lookup walks up from the current directory"""
        path = self._write(tmp_path, {"backoff": {"max_retries": 4}})
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        manager = ConfigManager()
        assert manager.config_path.resolve() == path.resolve()
        assert manager.get("backoff.max_retries") == 4

    def test_load_from_file(self, tmp_path):
        """Test values from file override defaults"""
        path = self._write(
            tmp_path,
            {"backoff": {"policy": "constant", "max_retries": 2, "multiplier": 0.5}},
        )
        manager = ConfigManager(config_path=path)
        settings = manager.get_backoff_settings()
        assert settings.policy == "constant"
        assert settings.max_retries == 2
        assert settings.multiplier == 0.5
        assert settings.max_wait == MAX_WAIT

    def test_string_path(self, tmp_path):
        """Test config path given as string"""
        path = self._write(tmp_path, {"backoff": {"max_retries": 1}})
        assert ConfigManager(config_path=str(path)).get("backoff.max_retries") == 1

    def test_env_overrides(self, tmp_path, monkeypatch):
        """Test environment variables override the file"""
        path = self._write(tmp_path, {"backoff": {"max_retries": 2}})
        monkeypatch.setenv("BACKOFF_MAX_RETRIES", "6")
        monkeypatch.setenv("BACKOFF_MULTIPLIER", "0.25")
        monkeypatch.setenv("BACKOFF_POLICY", "exponential")
        monkeypatch.setenv("BACKOFF_SEED", "42")

        settings = ConfigManager(config_path=path).get_backoff_settings()
        assert settings.max_retries == 6
        assert settings.multiplier == 0.25
        assert settings.policy == "exponential"
        assert settings.seed == 42

    def test_invalid_type_raises(self, tmp_path):
        """Test wrong types in the file are reported"""
        path = self._write(tmp_path, {"backoff": {"max_retries": "lots"}})
        with pytest.raises(ConfigurationError, match="backoff.max_retries"):
            ConfigManager(config_path=path)

    def test_unknown_policy_raises(self, tmp_path):
        """Test unknown policy in the file is reported"""
        path = self._write(tmp_path, {"backoff": {"policy": "fibonacci"}})
        with pytest.raises(ConfigurationError, match="backoff.policy"):
            ConfigManager(config_path=path)

    def test_malformed_yaml_uses_defaults(self, tmp_path):
        """Test unparsable files fall back to defaults"""
        path = tmp_path / ".backoff.yml"
        path.write_text("backoff: [unclosed\n", encoding="utf-8")
        manager = ConfigManager(config_path=path)
        assert manager.get_backoff_settings() == BackoffSettings()

    def test_get_missing_key(self, tmp_path):
        """Test get() default for unknown keys"""
        path = self._write(tmp_path, {})
        manager = ConfigManager(config_path=path)
        assert manager.get("backoff.nope", "fallback") == "fallback"
        assert manager.get("backoff")["policy"] == "decorr_jitter"

    def test_create_retryer(self, tmp_path):
        """Test the configured policy is built with normalized values"""
        path = self._write(
            tmp_path,
            {"backoff": {"policy": "constant", "max_retries": -3, "multiplier": 0.5}},
        )
        retryer = ConfigManager(config_path=path).create_retryer()
        assert isinstance(retryer, ConstantBackoff)
        assert retryer.config.max_retries == MAX_RETRIES
        assert retryer.config.multiplier == 0.5
