"""Configuration system using pydantic-settings with .env and optional YAML override."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from txengine.models import ExecutionOptions, TransactionPriority

DEFAULT_CONFIG_FILE = "config.yaml"


class YamlOverrideSource(PydanticBaseSettingsSource):
    """Reads overrides from the YAML file named by ``config_file``.

    The file path comes from init kwargs or the environment, falling back to
    ``config.yaml``. Keys that are not settings fields are ignored.
    """

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        *path_sources: PydanticBaseSettingsSource,
    ):
        super().__init__(settings_cls)
        self._path_sources = path_sources

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        # Values are loaded as a whole in __call__
        return None, field_name, False

    def _config_path(self) -> Path:
        for source in self._path_sources:
            config_file = source().get("config_file")
            if config_file:
                return Path(config_file)
        return Path(DEFAULT_CONFIG_FILE)

    def __call__(self) -> dict[str, Any]:
        config_path = self._config_path()
        if not config_path.exists():
            return {}
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f)
        if not yaml_config or not isinstance(yaml_config, dict):
            return {}
        fields = self.settings_cls.model_fields
        return {k: v for k, v in yaml_config.items() if k in fields and k != "config_file"}


class Settings(BaseSettings):
    """Engine settings loaded from environment variables and optional YAML config.

    YAML values take precedence over init kwargs and the environment and are
    validated like every other source.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Scheduling
    max_concurrent_transactions: int = Field(default=3, ge=1)
    history_limit: int = Field(default=100, ge=1)

    # Default execution options
    default_max_retries: int = Field(default=3, ge=0)
    default_retry_delays: list[float] = Field(
        default_factory=lambda: [5.0, 15.0, 30.0], min_length=1
    )
    default_timeout_seconds: float | None = Field(default=60.0, gt=0)
    default_confirmations: int = Field(default=1, ge=1)
    default_priority: TransactionPriority = TransactionPriority.MEDIUM

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Config file path
    config_file: str = ""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        yaml_settings = YamlOverrideSource(
            settings_cls, init_settings, env_settings, dotenv_settings
        )
        return (
            yaml_settings,
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    @field_validator("default_priority", mode="before")
    @classmethod
    def validate_priority(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    def execution_options(self) -> ExecutionOptions:
        """Default per-call options derived from these settings."""
        return ExecutionOptions(
            max_retries=self.default_max_retries,
            retry_delays=list(self.default_retry_delays),
            timeout=self.default_timeout_seconds,
            confirmations=self.default_confirmations,
            priority=TransactionPriority(self.default_priority),
        )


def load_settings(**overrides: Any) -> Settings:
    """Create a Settings instance with optional overrides."""
    return Settings(**overrides)
