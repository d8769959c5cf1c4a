import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from streamclient.compression import CompressionType
from streamclient.core.errors import ConfigurationError
from streamclient.core.logging import get_logger
from streamclient.identifiers import IdentifierType
from streamclient.options import RequestOptions
from streamclient.progress import ProgressStage

from .constants import (
    DEFAULT_DOWNLOAD_BUFFER_SIZE,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_UPLOAD_BUFFER_SIZE,
    DEFAULT_USER_AGENT,
    IDENTIFIER_HEADER,
)
from .discovery import find_toml_config_file
from .http import TransportSettings
from .logging import LoggingSettings


__all__ = ["Settings", "RequestDefaults", "ConfigurationError"]

logger = get_logger(__name__)

ENV_PREFIX = "STREAMCLIENT_"


class RequestDefaults(BaseModel):
    """Defaults for the base request options of a client."""

    user_agent: str = Field(default=DEFAULT_USER_AGENT)
    follow_redirects: bool = Field(default=True)
    preserve_method_on_redirect: bool = Field(
        default=False,
        description="Re-send method and body on redirects instead of switching to GET",
    )
    max_redirects: int = Field(default=DEFAULT_MAX_REDIRECTS, ge=0)
    protocol_scheme: str = Field(
        default="",
        description="Scheme forced onto every URL (empty keeps the URL's own, https when missing)",
    )
    compression: CompressionType = Field(default=CompressionType.NONE)
    identifier_type: IdentifierType = Field(default=IdentifierType.UUID)
    identifier_header: str = Field(default=IDENTIFIER_HEADER)
    upload_buffer_size: int = Field(default=DEFAULT_UPLOAD_BUFFER_SIZE, gt=0)
    download_buffer_size: int = Field(default=DEFAULT_DOWNLOAD_BUFFER_SIZE, gt=0)
    upload_progress_stage: ProgressStage = Field(
        default=ProgressStage.BEFORE_COMPRESSION
    )

    @field_validator("compression", mode="before")
    @classmethod
    def validate_compression(cls, v: Any) -> Any:
        if isinstance(v, str) and v.lower() in ("none", "identity"):
            return CompressionType.NONE
        return v

    @field_validator("compression")
    @classmethod
    def reject_custom(cls, v: CompressionType) -> CompressionType:
        if v is CompressionType.CUSTOM:
            raise ValueError(
                "custom compression needs compressor hooks and cannot be configured here"
            )
        return v


class Settings(BaseSettings):
    """
    Configuration settings for streamclient.

    Settings are loaded from environment variables (``STREAMCLIENT_`` prefix,
    ``__`` between nested keys, e.g. ``STREAMCLIENT_HTTP__TIMEOUT_READ=60``)
    and an optional TOML file. Environment variables take precedence over
    TOML values. TOML configuration files are looked up in this order:
    1. $STREAMCLIENT_CONFIG_FILE
    2. .streamclient.toml in current directory
    3. streamclient.toml in git repository root
    4. config.toml in XDG_CONFIG_HOME/streamclient/
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    http: TransportSettings = Field(
        default_factory=TransportSettings,
        description="HTTP transport configuration settings",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    defaults: RequestDefaults = Field(
        default_factory=RequestDefaults,
        description="Default request options",
    )

    def default_options(self) -> RequestOptions:
        """Build base request options from ``defaults``."""
        return RequestOptions(**self.defaults.model_dump())

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file."""
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read TOML config file {toml_path}: {e}"
            ) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {toml_path}: {e}") from e

    @classmethod
    def _drop_env_overridden(cls, config_data: dict[str, Any]) -> dict[str, Any]:
        """Remove TOML values that an environment variable already sets."""
        env_keys = {key.upper() for key in os.environ}
        filtered: dict[str, Any] = {}
        for key, value in config_data.items():
            if isinstance(value, dict):
                nested = {
                    nested_key: nested_value
                    for nested_key, nested_value in value.items()
                    if f"{ENV_PREFIX}{key}__{nested_key}".upper() not in env_keys
                }
                if nested:
                    filtered[key] = nested
            elif f"{ENV_PREFIX}{key}".upper() not in env_keys:
                filtered[key] = value
        return filtered

    @classmethod
    def from_config(
        cls,
        config_path: Path | str | None = None,
        **overrides: Any,
    ) -> "Settings":
        """Create Settings from environment, TOML file and explicit overrides.

        Args:
            config_path: TOML file to load; discovered when omitted
            **overrides: Section dicts applied on top, e.g. ``logging={"level": "DEBUG"}``

        Raises:
            ConfigurationError: if the file cannot be read or a value is invalid.
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        if config_path is None:
            config_path = find_toml_config_file()

        config_data: dict[str, Any] = {}
        if config_path is not None:
            if config_path.suffix.lower() != ".toml":
                raise ConfigurationError(
                    f"Unsupported config file format: {config_path.suffix}. "
                    "Only TOML (.toml) files are supported."
                )
            config_data = cls._drop_env_overridden(cls.load_toml_config(config_path))
            logger.info("config_file_loaded", path=str(config_path))

        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(config_data.get(key), dict):
                config_data[key] = {**config_data[key], **value}
            else:
                config_data[key] = value

        try:
            return cls(**config_data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration: {e}",
                details={"errors": e.errors(include_url=False)},
            ) from e
