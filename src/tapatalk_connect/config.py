"""Configuration management for Tapatalk Connect.

Provides configuration loading from environment variables, .env files,
and optional configuration files with proper precedence handling.
"""

from __future__ import annotations

import contextlib
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "TAPATALK_CONNECT_"


class ConfigError(Exception):
    """Raised when configuration validation fails."""


class LogLevel(str, Enum):
    """Supported log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Environment(str, Enum):
    """Deployment environments."""

    LOCAL = "local"
    DEV = "dev"
    STAGE = "stage"
    PROD = "prod"


class Config(BaseModel):
    """Main configuration model for Tapatalk Connect.

    Configuration can be loaded from:
    - Environment variables with TAPATALK_CONNECT_ prefix
    - Optional .env file in project root
    - Optional configuration file passed via CLI
    """

    # Core settings
    app_name: str = Field(default="Tapatalk Connect", description="Application name")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    environment: Environment = Field(
        default=Environment.LOCAL, description="Deployment environment"
    )

    # Demo web server settings
    host: str = Field(default="127.0.0.1", description="Server bind host")
    port: int = Field(default=8000, ge=1, le=65535, description="Server bind port")

    # Tapatalk application
    client_id: str | None = Field(default=None, description="Tapatalk application id")
    client_secret: SecretStr | None = Field(
        default=None, description="Tapatalk application secret"
    )
    authorization_base_url: str = Field(
        default="https://www.tapatalk.com", description="Base URL of the login page"
    )
    token_url: str | None = Field(
        default=None, description="Endpoint that exchanges a code for a token"
    )
    redirect_url: str | None = Field(
        default=None, description="Callback URL registered for the application"
    )
    scope: str = Field(default="", description="Requested permissions (comma-separated)")

    # Login flow
    csrf_length: int = Field(
        default=32, ge=16, description="Random bytes in the CSRF state"
    )
    http_timeout: float = Field(
        default=30.0, gt=0, description="Timeout for the code exchange request"
    )

    # Session storage and encryption
    session_store_path: str | None = Field(
        default=None, description="Path for persistent session storage"
    )
    session_encryption_key: SecretStr | None = Field(
        default=None, description="Fernet encryption key for session storage"
    )

    model_config = {
        "extra": "ignore",
        "validate_assignment": True,
    }

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        """Normalize log level to uppercase."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("environment", mode="before")
    @classmethod
    def normalize_environment(cls, v: Any) -> Any:
        """Normalize environment to lowercase."""
        if isinstance(v, str):
            return v.lower()
        return v

    @field_validator("client_id", mode="before")
    @classmethod
    def coerce_client_id(cls, v: Any) -> Any:
        """Accept numeric client ids from JSON/YAML files."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @model_validator(mode="after")
    def validate_session_store(self) -> Config:
        """Validate session store configuration."""
        if self.session_store_path and not self.session_encryption_key:
            msg = "session_encryption_key is required when session_store_path is set"
            raise ValueError(msg)
        return self

    @property
    def scopes(self) -> list[str]:
        """Requested permissions as a list."""
        return [s.strip() for s in self.scope.split(",") if s.strip()]


def _get_env_value(key: str, prefix: str = ENV_PREFIX) -> str | None:
    """Get environment variable value with prefix."""
    return os.environ.get(f"{prefix}{key.upper()}")


def _load_env_config() -> dict[str, Any]:
    """Load configuration from environment variables."""
    env_mapping = {
        "app_name": "APP_NAME",
        "log_level": "LOG_LEVEL",
        "environment": "ENVIRONMENT",
        "host": "HOST",
        "port": "PORT",
        "client_id": "CLIENT_ID",
        "client_secret": "CLIENT_SECRET",
        "authorization_base_url": "AUTHORIZATION_BASE_URL",
        "token_url": "TOKEN_URL",
        "redirect_url": "REDIRECT_URL",
        "scope": "SCOPE",
        "csrf_length": "CSRF_LENGTH",
        "http_timeout": "HTTP_TIMEOUT",
        "session_store_path": "SESSION_STORE_PATH",
        "session_encryption_key": "SESSION_ENCRYPTION_KEY",
    }
    int_fields = ("port", "csrf_length")

    config: dict[str, Any] = {}
    for field_name, env_suffix in env_mapping.items():
        value = _get_env_value(env_suffix)
        if value is None:
            continue
        if field_name in int_fields:
            with contextlib.suppress(ValueError):
                value = int(value)  # type: ignore[assignment]
        elif field_name == "http_timeout":
            with contextlib.suppress(ValueError):
                value = float(value)  # type: ignore[assignment]
        config[field_name] = value

    return config


def _load_file_config(path: str | Path) -> dict[str, Any]:
    """Load configuration from a file (JSON or YAML)."""
    import json

    path = Path(path)
    if not path.exists():
        msg = f"Configuration file not found: {path}"
        raise ConfigError(msg)

    suffix = path.suffix.lower()
    content = path.read_text()

    if suffix == ".json":
        return dict(json.loads(content))

    if suffix in (".yaml", ".yml"):
        try:
            import yaml

            return dict(yaml.safe_load(content) or {})
        except ImportError:
            msg = "PyYAML is required to load YAML configuration files"
            raise ConfigError(msg) from None

    msg = f"Unsupported configuration file format: {suffix}"
    raise ConfigError(msg)


def _redact_for_log(key: str, value: Any) -> str:
    """Redact sensitive values for logging."""
    secret_keys = {"client_secret", "session_encryption_key"}
    if key in secret_keys and value:
        return "***"
    return str(value)


def load_config(
    path: str | Path | None = None,
    cli_args: dict[str, Any] | None = None,
) -> Config:
    """Load and validate configuration.

    Precedence (highest to lowest):
    1. CLI arguments
    2. Environment variables
    3. Configuration file
    4. Model defaults

    Args:
        path: Optional path to configuration file
        cli_args: Optional CLI argument overrides

    Returns:
        Validated Config instance

    Raises:
        ConfigError: If configuration is invalid
    """
    load_dotenv()

    config_dict: dict[str, Any] = {}
    if path:
        logger.debug("Loading configuration from file: %s", path)
        config_dict.update(_load_file_config(path))

    for key, value in _load_env_config().items():
        config_dict[key] = value
        logger.debug("Config %s from environment: %s", key, _redact_for_log(key, value))

    if cli_args:
        for key, value in cli_args.items():
            if value is not None:
                config_dict[key] = value
                logger.debug("Config %s from CLI: %s", key, _redact_for_log(key, value))

    try:
        return Config(**config_dict)
    except Exception as e:
        msg = f"Configuration validation failed: {e}"
        raise ConfigError(msg) from e
