"""Tests for configuration system."""

import pytest
from pydantic import ValidationError

from txengine.config import Settings, load_settings
from txengine.models import TransactionPriority


class TestSettings:
    def test_defaults(self):
        settings = Settings(config_file="nonexistent.yaml")
        assert settings.max_concurrent_transactions == 3
        assert settings.history_limit == 100
        assert settings.default_max_retries == 3
        assert settings.default_retry_delays == [5.0, 15.0, 30.0]
        assert settings.default_timeout_seconds == 60.0
        assert settings.default_confirmations == 1
        assert settings.default_priority == TransactionPriority.MEDIUM
        assert settings.log_level == "INFO"
        assert settings.log_json is False

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("MAX_CONCURRENT_TRANSACTIONS", "8")
        monkeypatch.setenv("DEFAULT_RETRY_DELAYS", "[1, 2]")
        settings = Settings(config_file="nonexistent.yaml")
        assert settings.max_concurrent_transactions == 8
        assert settings.default_retry_delays == [1.0, 2.0]

    def test_priority_case_insensitive(self):
        settings = Settings(default_priority="high", config_file="nonexistent.yaml")
        assert settings.default_priority == TransactionPriority.HIGH

    def test_invalid_priority(self):
        with pytest.raises(ValidationError):
            Settings(default_priority="urgent", config_file="nonexistent.yaml")

    def test_max_concurrent_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(max_concurrent_transactions=0, config_file="nonexistent.yaml")

    def test_empty_retry_delays_rejected(self):
        with pytest.raises(ValidationError):
            Settings(default_retry_delays=[], config_file="nonexistent.yaml")

    def test_log_level_validation(self):
        for level in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            s = Settings(log_level=level, config_file="nonexistent.yaml")
            assert s.log_level == level

    def test_log_level_case_insensitive(self):
        s = Settings(log_level="debug", config_file="nonexistent.yaml")
        assert s.log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="VERBOSE", config_file="nonexistent.yaml")

    def test_yaml_override(self, tmp_path):
        config = tmp_path / "engine.yaml"
        config.write_text(
            "max_concurrent_transactions: 10\n"
            "default_confirmations: 4\n"
            "unknown_key: ignored\n"
        )
        settings = Settings(config_file=str(config))
        assert settings.max_concurrent_transactions == 10
        assert settings.default_confirmations == 4
        assert not hasattr(settings, "unknown_key")

    def test_yaml_priority_is_normalized(self, tmp_path):
        config = tmp_path / "engine.yaml"
        config.write_text("default_priority: high\n")
        settings = Settings(config_file=str(config))
        assert settings.default_priority == TransactionPriority.HIGH
        assert settings.execution_options().priority == TransactionPriority.HIGH

    def test_yaml_empty_retry_delays_rejected(self, tmp_path):
        config = tmp_path / "engine.yaml"
        config.write_text("default_retry_delays: []\n")
        with pytest.raises(ValidationError):
            Settings(config_file=str(config))

    def test_yaml_overrides_init_values(self, tmp_path):
        config = tmp_path / "engine.yaml"
        config.write_text("history_limit: 25\n")
        settings = Settings(history_limit=10, config_file=str(config))
        assert settings.history_limit == 25

    def test_yaml_path_from_env(self, tmp_path, monkeypatch):
        config = tmp_path / "engine.yaml"
        config.write_text("max_concurrent_transactions: 6\n")
        monkeypatch.setenv("CONFIG_FILE", str(config))
        settings = Settings()
        assert settings.max_concurrent_transactions == 6

    def test_execution_options(self):
        settings = Settings(
            default_max_retries=1,
            default_retry_delays=[0.5],
            default_timeout_seconds=None,
            default_confirmations=2,
            default_priority="LOW",
            config_file="nonexistent.yaml",
        )
        opts = settings.execution_options()
        assert opts.max_retries == 1
        assert opts.retry_delays == [0.5]
        assert opts.timeout is None
        assert opts.confirmations == 2
        assert opts.priority == TransactionPriority.LOW


class TestLoadSettings:
    def test_load_with_overrides(self):
        settings = load_settings(history_limit=10, config_file="nonexistent.yaml")
        assert settings.history_limit == 10
