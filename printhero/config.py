"""
Service configuration.

Resolution order:
1. Defaults below
2. JSON file (explicit path, PRINTHERO_CONFIG, or ~/.printhero/config.json)
3. PRINTHERO_* environment variable overrides

A missing file is not an error; invalid content is.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


ENV_CONFIG_PATH = "PRINTHERO_CONFIG"
ENV_PREFIX = "PRINTHERO_"
DEFAULT_HOME = Path.home() / ".printhero"
DEFAULT_CONFIG_FILE = DEFAULT_HOME / "config.json"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigError(Exception):
    """Configuration file or environment override is invalid."""

    pass


class ServiceConfig(BaseModel):
    """Runtime settings for the PrintHero service."""

    model_config = ConfigDict(extra="forbid")

    db_path: str = Field(
        default=str(DEFAULT_HOME / "printhero.db"),
        description="SQLite configuration store",
    )
    log_dir: Optional[str] = Field(
        default=str(DEFAULT_HOME / "logs"),
        description="Directory for printhero.log (None disables file logging)",
    )
    log_level: str = "INFO"

    settle_delay: float = Field(default=1.0, ge=0, description="Seconds after a live event before processing")
    availability_poll_interval: float = Field(default=0.5, gt=0)
    availability_max_wait: float = Field(default=10.0, ge=0)

    worker_count: int = Field(default=2, ge=1)
    max_queue_size: int = Field(default=64, ge=1)
    printed_subfolder_name: str = "Printed"

    heartbeat_interval: float = Field(default=1800.0, gt=0, description="Seconds between status log lines")
    dry_run: bool = Field(default=False, description="Log instead of printing")

    api_host: str = "127.0.0.1"
    api_port: int = Field(default=8765, ge=1, le=65535)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        return level

    @field_validator("printed_subfolder_name")
    @classmethod
    def validate_subfolder_name(cls, v: str) -> str:
        name = v.strip()
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise ValueError(f"printed_subfolder_name must be a plain folder name: {v!r}")
        return name


def default_config_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    environ = os.environ if environ is None else environ
    override = environ.get(ENV_CONFIG_PATH)
    if override:
        return Path(override).expanduser()
    return DEFAULT_CONFIG_FILE


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Collect PRINTHERO_<FIELD> variables for known config fields.

    Values stay strings; pydantic converts them during validation.
    """
    environ = os.environ if environ is None else environ
    overrides = {}
    for name in ServiceConfig.model_fields:
        value = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value is not None:
            overrides[name] = value
    return overrides


def load_config(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ServiceConfig:
    """
    Load configuration from file and environment.

    Raises:
        ConfigError: If the file is not valid JSON or a value fails validation
    """
    config_path = Path(path).expanduser() if path else default_config_path(environ)

    data: Dict[str, object] = {}
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid config file {config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Cannot read config file {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_path} must contain a JSON object")
        logger.debug(f"Loaded config from {config_path}")
    elif path:
        raise ConfigError(f"Config file not found: {config_path}")

    data.update(env_overrides(environ))

    try:
        return ServiceConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def save_config(config: ServiceConfig, path: Optional[Union[str, Path]] = None) -> Path:
    """
    Write configuration as indented JSON.

    Returns:
        The path written
    """
    config_path = Path(path).expanduser() if path else default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(config.model_dump(mode="json"), f, indent=2)
    return config_path
