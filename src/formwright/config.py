"""Configuration file loading and validation."""

import logging
from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from .consts import (
    COMPLEX_FIELD_TYPES,
    DEFAULT_INTERNAL_CONTEXT,
    DEFAULT_LOOKUP_TABLES,
    LOG_FILE_DEFAULT,
    PREFILL_CACHE_TIMEOUT,
    PREFILL_MAX_WORKERS,
    PREFILL_RETRY_ATTEMPTS,
    PREFILL_RETRY_DELAY,
    SETTINGS_DB_PATH,
    TIMEOUT_HTTP_REQUEST,
)
from .enums import FieldType, SettingsBackend
from .errors import ConfigException

logger = logging.getLogger(__name__)

ENV_PREFIX = "FORMWRIGHT_"


class PrefillSettings(BaseModel):
    """Prefill service configuration."""

    timeout: int = Field(default=TIMEOUT_HTTP_REQUEST, ge=1)
    default_cache_timeout: int = Field(default=PREFILL_CACHE_TIMEOUT, ge=0)
    default_retry_attempts: int = Field(default=PREFILL_RETRY_ATTEMPTS, ge=1)
    retry_initial_delay: float = Field(default=PREFILL_RETRY_DELAY, ge=0)
    max_workers: int = Field(default=PREFILL_MAX_WORKERS, ge=1)
    context: Dict[str, Any] = Field(default_factory=lambda: dict(DEFAULT_INTERNAL_CONTEXT))
    lookup_tables: Dict[str, List[Any]] = Field(default_factory=lambda: dict(DEFAULT_LOOKUP_TABLES))


class DiagnosticsSettings(BaseModel):
    """Diagnostics engine configuration."""

    complex_field_types: List[FieldType] = Field(
        default_factory=lambda: [FieldType(t) for t in COMPLEX_FIELD_TYPES]
    )
    warn_unknown_references: bool = True


class SettingsStoreConfig(BaseModel):
    """App settings store configuration."""

    backend: SettingsBackend = SettingsBackend.MEMORY
    db_path: str = Field(default=SETTINGS_DB_PATH)

    @field_validator("db_path")
    @classmethod
    def validate_db_path(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("settings.db_path cannot be empty")
        return v.strip()


class WebConfig(BaseModel):
    """Web service configuration."""

    enabled: bool = False
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000, ge=1, le=65535)
    debug: bool = Field(default=False)


class Config(BaseSettings):
    """Application configuration."""

    log_file: str = Field(default=LOG_FILE_DEFAULT)

    prefill: PrefillSettings = Field(default_factory=PrefillSettings)
    diagnostics: DiagnosticsSettings = Field(default_factory=DiagnosticsSettings)
    settings: SettingsStoreConfig = Field(default_factory=SettingsStoreConfig)
    web: WebConfig = Field(default_factory=WebConfig)

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )

    @classmethod
    def load_from_file(cls, config_path: str) -> "Config":
        """Load configuration from specified path."""
        path = Path(config_path)
        if not path.exists():
            raise ConfigException(f"Configuration file not found: {config_path}")

        class _Config(cls):
            model_config = SettingsConfigDict(
                toml_file=str(path),
                env_prefix=ENV_PREFIX,
                env_nested_delimiter="__",
            )

        try:
            return _Config()
        except ValidationError as e:
            error_lines = ["Configuration validation failed:"]
            for error in e.errors():
                loc = " -> ".join(str(item) for item in error["loc"])
                error_lines.append(f"  - {loc}: {error['msg']}")
            raise ConfigException("\n".join(error_lines)) from e
        except ValueError as e:
            # tomllib.TOMLDecodeError is a ValueError
            raise ConfigException(f"Invalid TOML syntax in {config_path}: {e}") from e

    @classmethod
    def load(cls, config_path: str | None = None) -> "Config":
        """Load from a file when it exists, otherwise defaults plus environment."""
        if config_path and Path(config_path).exists():
            return cls.load_from_file(config_path)

        logger.debug(f"No configuration file at {config_path}, using defaults")
        try:
            return cls()
        except ValidationError as e:
            raise ConfigException(f"Configuration validation failed: {e}") from e
