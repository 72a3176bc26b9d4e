"""
# Configuration Module

Configuration for the MongoDB client is split in two models, both built on
Pydantic's `BaseSettings`:

- **`ConnectionConfig`**: the six connection parameters that **must** come from
  the environment. There are no defaults; `load_connection_config()` fails fast
  with a `ConfigurationError` naming the first missing variable.
- **`Settings`**: optional tunables (timeouts, intervals, log level) with safe
  defaults, loaded once as the module-level `settings` instance.

## Required Environment Variables

| Variable | Meaning |
|---|---|
| `MONGODB_HOST` | MongoDB host name |
| `MONGODB_PORT` | MongoDB port |
| `MONGODB_USER` | application user |
| `MONGODB_PASSWORD` | application user password |
| `MONGODB_ADMIN_PASSWORD` | password of the `admin` user |
| `MONGODB_DATABASE` | application database |

## Configuration File

A dotenv file is optional. `get_config_path()` looks for, in order:
1. the path in `MONGODB_CLIENT_CONFIG_PATH` (if the file exists)
2. `.env` in the current working directory

The file is loaded with `python-dotenv` without overriding variables that are
already set in the process environment.
"""

import os
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mongodb_client.errors import ConfigurationError

# --- Constants ---
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "MONGODB_CLIENT_CONFIG_PATH"

REQUIRED_VARIABLES = (
    "MONGODB_HOST",
    "MONGODB_PORT",
    "MONGODB_USER",
    "MONGODB_PASSWORD",
    "MONGODB_ADMIN_PASSWORD",
    "MONGODB_DATABASE",
)


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determine the dotenv file to load, if any.

    Returns:
        Optional[str]: Path of the configuration file, or `None` for environment-only mode.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    env_path_file: Path = Path.cwd() / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=False)


class ConnectionConfig(BaseSettings):
    """
    Connection parameters for MongoDB.

    All fields are mandatory and must be non-empty. The model is frozen: it is
    created once at startup and never mutated. Passwords are `SecretStr` so they
    never show up in logs or reprs.
    """

    model_config = SettingsConfigDict(case_sensitive=True, frozen=True, extra="ignore")

    MONGODB_HOST: str
    MONGODB_PORT: str
    MONGODB_USER: str
    MONGODB_PASSWORD: SecretStr
    MONGODB_ADMIN_PASSWORD: SecretStr
    MONGODB_DATABASE: str

    @field_validator(*REQUIRED_VARIABLES, mode="before")
    @classmethod
    def not_empty(cls, v: Any, info: Any) -> Any:
        """Reject empty or whitespace-only values."""
        raw = v.get_secret_value() if isinstance(v, SecretStr) else v
        if raw is None or not str(raw).strip():
            raise ValueError(f"{info.field_name} is not defined")
        return v

    @field_validator("MONGODB_PORT")
    @classmethod
    def validate_port(cls, v: str) -> str:
        port = v.strip()
        if not port.isdigit() or not 1 <= int(port) <= 65535:
            raise ValueError("must be a port number between 1 and 65535")
        return port


def load_connection_config(environ: Optional[Mapping[str, str]] = None) -> ConnectionConfig:
    """
    Read the six required connection variables.

    Variables are checked in a fixed order (host, port, user, password, admin
    password, database) so the error always names the first missing one.

    Args:
        environ: Mapping to read from; defaults to `os.environ`.

    Returns:
        ConnectionConfig: The validated, immutable configuration.

    Raises:
        ConfigurationError: If any variable is missing or empty.
    """
    source = os.environ if environ is None else environ
    values = {}
    for name in REQUIRED_VARIABLES:
        value = source.get(name)
        if value is None or not value.strip():
            raise ConfigurationError(name)
        values[name] = value

    try:
        return ConnectionConfig(**values)
    except ValidationError as exc:
        first = exc.errors()[0]
        variable = str(first["loc"][0]) if first.get("loc") else "configuration"
        raise ConfigurationError(variable, f"{variable} is invalid: {first['msg']}") from exc


class Settings(BaseSettings):
    """
    Optional runtime tunables.

    **Configuration Groups:**
    *   **Logging**: `LOG_LEVEL`.
    *   **Database**: connect and server selection timeouts (milliseconds).
    *   **Health Gate**: probe interval and overall ceiling (seconds).
    *   **Reconciliation**: loop period and optional per-iteration timeout (seconds).
    *   **Sample Data**: database name and per-operation timeout.
    *   **Shutdown**: how long to wait for background tasks.
    """

    model_config = SettingsConfigDict(case_sensitive=True, extra="ignore")

    LOG_LEVEL: str = "INFO"

    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 10000

    HEALTH_CHECK_INTERVAL: float = 15.0
    HEALTH_CHECK_TIMEOUT: float = 60.0

    RECONCILE_INTERVAL: float = 300.0
    RECONCILE_TASK_TIMEOUT: Optional[float] = None

    SAMPLE_DATABASE: str = "sampledb"
    SAMPLE_OPERATION_TIMEOUT: float = 10.0

    SHUTDOWN_TIMEOUT: float = 5.0

    @field_validator(
        "MONGODB_CONNECTION_TIMEOUT",
        "MONGODB_SERVER_SELECTION_TIMEOUT",
        "HEALTH_CHECK_INTERVAL",
        "HEALTH_CHECK_TIMEOUT",
        "RECONCILE_INTERVAL",
        "SAMPLE_OPERATION_TIMEOUT",
        "SHUTDOWN_TIMEOUT",
    )
    @classmethod
    def validate_positive(cls, v: Any, info: Any) -> Any:
        """Intervals and timeouts must be strictly positive."""
        if v <= 0:
            raise ValueError(f"{info.field_name} must be positive")
        return v

    @field_validator("RECONCILE_TASK_TIMEOUT")
    @classmethod
    def validate_task_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("RECONCILE_TASK_TIMEOUT must be positive when set")
        return v

    @property
    def connect_timeout_seconds(self) -> float:
        return self.MONGODB_CONNECTION_TIMEOUT / 1000.0


settings: Settings = Settings()
