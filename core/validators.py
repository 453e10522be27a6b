"""Configuration loading and validation for the event adapter.

Configuration is resolved once at startup: an optional YAML file provides the
base values and environment variables override them. The result is a frozen
``AdapterConfig`` that is passed explicitly to the proxy.
"""

import logging
import os
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

# Environment variable holding a custom host for synthetic requests. The value
# must include the scheme, e.g. http://my-custom.host.com
CUSTOM_HOST_VARIABLE = "PYTHON_API_HOST"
BASE_PATH_VARIABLE = "PYTHON_API_BASE_PATH"
LOG_LEVEL_VARIABLE = "PYTHON_API_LOG_LEVEL"
CONFIG_FILE_VARIABLE = "ADAPTER_CONFIG_FILE"

# Prepended to the path of every inbound request
DEFAULT_SERVER_ADDRESS = "https://aws-serverless-python-api.com"

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


def normalize_base_path(base_path: Optional[str]) -> str:
    """Normalize a base path mapping for stripping.

    Blank values disable stripping. Anything else gets a leading slash and
    loses one trailing slash.

    Args:
        base_path: Base path as configured, e.g. "v1/" or "/v1"

    Returns:
        Normalized base path ("/v1"), or "" when stripping is disabled
    """
    if base_path is None or base_path.strip(" ") == "":
        return ""

    normalized = base_path
    if not normalized.startswith("/"):
        normalized = "/" + normalized
    if normalized.endswith("/"):
        normalized = normalized[:-1]
    return normalized


class AdapterConfig(BaseModel):
    """Process-wide adapter settings, read-only after startup."""

    model_config = ConfigDict(frozen=True)

    base_host: str = Field(
        DEFAULT_SERVER_ADDRESS,
        description="Scheme and host prefixed onto every translated path",
    )
    base_path: str = Field(
        "", description="Path prefix stripped from inbound paths (API Gateway base path mapping)"
    )
    log_level: str = Field("INFO", description="Root log level")
    log_pretty: bool = Field(False, description="Pretty-print JSON logs for local development")

    @field_validator("base_host")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("base_path")
    @classmethod
    def _normalize_base_path(cls, value: str) -> str:
        return normalize_base_path(value)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log level '{value}'. Expected one of: {', '.join(VALID_LOG_LEVELS)}"
            )
        return level


def validate_config_structure(config: Dict[str, Any]) -> None:
    """Validate basic configuration structure.

    Args:
        config: Parsed configuration dictionary

    Raises:
        ConfigurationError: If structure is invalid
    """
    if not isinstance(config, dict):
        raise ConfigurationError("Configuration must be a YAML dictionary")

    for section in ("adapter", "logging"):
        if section in config and not isinstance(config[section], dict):
            raise ConfigurationError(f"'{section}' section must be a dictionary")


def load_and_validate_config(config_path: str = "config.yaml") -> Dict[str, Any]:
    """Load and validate configuration from YAML file.

    Args:
        config_path: Path to config.yaml file

    Returns:
        Validated configuration dictionary

    Raises:
        ConfigurationError: If validation fails
        FileNotFoundError: If config file doesn't exist
    """
    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n"
            "Create config.yaml based on the template in the repository."
        )
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")

    if config is None:
        raise ConfigurationError(f"Configuration file {config_path} is empty")

    validate_config_structure(config)

    logger.info(f"Configuration loaded from {config_path}")

    return config


def get_logging_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Get the logging section of a configuration dictionary.

    Args:
        config: Parsed configuration dictionary

    Returns:
        Logging settings with defaults applied
    """
    logging_config = config.get("logging") or {}
    return {
        "level": logging_config.get("level", "INFO"),
        "pretty": bool(logging_config.get("pretty", False)),
    }


def build_config(config: Dict[str, Any], environ: Optional[Dict[str, str]] = None) -> AdapterConfig:
    """Build an ``AdapterConfig`` from a config dictionary and the environment.

    Environment variables take precedence over file values.

    Args:
        config: Parsed configuration dictionary (may be empty)
        environ: Environment mapping, defaults to ``os.environ``

    Returns:
        Frozen adapter configuration

    Raises:
        ConfigurationError: If any value is invalid
    """
    environ = os.environ if environ is None else environ
    validate_config_structure(config)

    adapter_config = config.get("adapter") or {}
    logging_config = get_logging_config(config)

    values: Dict[str, Any] = {
        "base_host": adapter_config.get("base_host", DEFAULT_SERVER_ADDRESS),
        "base_path": adapter_config.get("base_path") or "",
        "log_level": logging_config["level"],
        "log_pretty": logging_config["pretty"],
    }
    if CUSTOM_HOST_VARIABLE in environ:
        values["base_host"] = environ[CUSTOM_HOST_VARIABLE]
    if BASE_PATH_VARIABLE in environ:
        values["base_path"] = environ[BASE_PATH_VARIABLE]
    if LOG_LEVEL_VARIABLE in environ:
        values["log_level"] = environ[LOG_LEVEL_VARIABLE]

    try:
        return AdapterConfig(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid adapter configuration: {e}") from e


def load_config(environ: Optional[Dict[str, str]] = None) -> AdapterConfig:
    """Resolve the adapter configuration at startup.

    Reads the YAML file named by ``ADAPTER_CONFIG_FILE`` when set, then applies
    environment overrides.

    Args:
        environ: Environment mapping, defaults to ``os.environ``

    Returns:
        Frozen adapter configuration

    Raises:
        ConfigurationError: If the file or any value is invalid
        FileNotFoundError: If ``ADAPTER_CONFIG_FILE`` points to a missing file
    """
    environ = os.environ if environ is None else environ

    config: Dict[str, Any] = {}
    config_path = environ.get(CONFIG_FILE_VARIABLE)
    if config_path:
        config = load_and_validate_config(config_path)

    adapter_config = build_config(config, environ)
    logger.info(
        "Adapter configuration resolved",
        extra={
            "base_host": adapter_config.base_host,
            "base_path": adapter_config.base_path or None,
        },
    )
    return adapter_config
