"""Configuration loading for the RCON client."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

from rconpanel.client import DEFAULT_PORT, DEFAULT_TIMEOUT

CONFIG_DIR = Path.home() / ".config" / "rconpanel"
CONFIG_FILE = CONFIG_DIR / "config.toml"
HISTORY_FILE = CONFIG_DIR / "history"

PASSWORD_ENV = "RCON_PASSWORD"


@dataclass(frozen=True)
class ServerConfig:
    """Configuration for a single Minecraft server."""

    name: str
    host: str
    port: int = DEFAULT_PORT
    password: str | None = None
    password_env: str | None = None

    def resolve_password(self) -> str | None:
        """Return the inline password, else one from the environment."""
        if self.password is not None:
            return self.password
        if self.password_env and self.password_env in os.environ:
            return os.environ[self.password_env]
        return os.environ.get(PASSWORD_ENV)


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    default_server: str | None
    servers: dict[str, ServerConfig]
    timeout: float = DEFAULT_TIMEOUT


def load_config(path: Path = CONFIG_FILE) -> AppConfig:
    """Load and parse the configuration file.

    Returns hardcoded defaults if no config file exists.
    """
    if not path.exists():
        return _default_config()

    with path.open("rb") as f:
        raw = tomllib.load(f)

    defaults = raw.get("defaults", {})

    servers: dict[str, ServerConfig] = {}
    for key, val in raw.get("servers", {}).items():
        servers[key] = ServerConfig(
            name=val.get("name", key),
            host=val["host"],
            port=int(val.get("port", DEFAULT_PORT)),
            password=val.get("password"),
            password_env=val.get("password_env"),
        )

    return AppConfig(
        default_server=defaults.get("server"),
        servers=servers,
        timeout=float(defaults.get("timeout", DEFAULT_TIMEOUT)),
    )


def _default_config() -> AppConfig:
    """Return the hardcoded default configuration."""
    return AppConfig(
        default_server="local",
        servers={
            "local": ServerConfig(name="Local server", host="127.0.0.1"),
        },
    )


def ensure_config_dir() -> None:
    """Create the config directory if it does not exist."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
