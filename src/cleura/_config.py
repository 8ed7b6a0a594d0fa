"""Configuration management for the Cleura SDK.

Supports:
- Environment variables (CLEURA_API_HOST, CLEURA_API_TOKEN, etc.)
- Config file (~/.cleura/config.toml)
- Programmatic configuration
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


DEFAULT_HOST = "https://rest.cleura.cloud"
DEFAULT_DOMAIN = "public"
DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_OPERATION_TIMEOUT = 45 * 60.0

CONFIG_DIR = Path.home() / ".cleura"
CONFIG_FILE = CONFIG_DIR / "config.toml"


@dataclass
class ReconcileConfig:
    """Timeouts for long-running shoot operations, in seconds."""

    create_timeout: float = DEFAULT_OPERATION_TIMEOUT
    update_timeout: float = DEFAULT_OPERATION_TIMEOUT
    delete_timeout: float = DEFAULT_OPERATION_TIMEOUT


@dataclass
class CleuraConfig:
    """SDK configuration."""

    host: str = DEFAULT_HOST
    username: str | None = None
    token: str | None = field(default=None, repr=False)
    password: str | None = field(default=None, repr=False)
    domain: str = DEFAULT_DOMAIN
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES

    debug: bool = False
    verify_ssl: bool = True

    reconcile: ReconcileConfig = field(default_factory=ReconcileConfig)

    @classmethod
    def from_env(cls) -> CleuraConfig:
        """Load configuration from environment variables."""
        return cls(
            host=os.getenv("CLEURA_API_HOST", DEFAULT_HOST),
            username=os.getenv("CLEURA_API_USERNAME"),
            token=os.getenv("CLEURA_API_TOKEN"),
            password=os.getenv("CLEURA_API_PASSWORD"),
            domain=os.getenv("CLEURA_DOMAIN", DEFAULT_DOMAIN),
            timeout=float(os.getenv("CLEURA_TIMEOUT", DEFAULT_TIMEOUT)),
            max_retries=int(os.getenv("CLEURA_MAX_RETRIES", DEFAULT_MAX_RETRIES)),
            debug=os.getenv("CLEURA_DEBUG", "").lower() in ("1", "true", "yes"),
            verify_ssl=os.getenv("CLEURA_VERIFY_SSL", "true").lower() not in ("0", "false", "no"),
        )

    @classmethod
    def from_file(cls, path: Path | None = None) -> CleuraConfig:
        """Load configuration from TOML file."""
        config_path = path or CONFIG_FILE

        if not config_path.exists():
            return cls()

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        reconcile_data = data.get("reconcile", {})
        reconcile = ReconcileConfig(
            create_timeout=float(reconcile_data.get("create_timeout", DEFAULT_OPERATION_TIMEOUT)),
            update_timeout=float(reconcile_data.get("update_timeout", DEFAULT_OPERATION_TIMEOUT)),
            delete_timeout=float(reconcile_data.get("delete_timeout", DEFAULT_OPERATION_TIMEOUT)),
        )

        return cls(
            host=data.get("host", DEFAULT_HOST),
            username=data.get("username"),
            token=data.get("token"),
            password=data.get("password"),
            domain=data.get("domain", DEFAULT_DOMAIN),
            timeout=float(data.get("timeout", DEFAULT_TIMEOUT)),
            max_retries=int(data.get("max_retries", DEFAULT_MAX_RETRIES)),
            debug=data.get("debug", False),
            verify_ssl=data.get("verify_ssl", True),
            reconcile=reconcile,
        )

    @classmethod
    def load(cls) -> CleuraConfig:
        """Load configuration with precedence: env > file > defaults."""
        config = cls.from_file()

        env_config = cls.from_env()

        if os.getenv("CLEURA_API_HOST"):
            config.host = env_config.host
        if env_config.username:
            config.username = env_config.username
        if env_config.token:
            config.token = env_config.token
        if env_config.password:
            config.password = env_config.password
        if os.getenv("CLEURA_DOMAIN"):
            config.domain = env_config.domain
        if os.getenv("CLEURA_TIMEOUT"):
            config.timeout = env_config.timeout
        if os.getenv("CLEURA_MAX_RETRIES"):
            config.max_retries = env_config.max_retries
        if os.getenv("CLEURA_DEBUG"):
            config.debug = env_config.debug
        if os.getenv("CLEURA_VERIFY_SSL"):
            config.verify_ssl = env_config.verify_ssl

        return config


def get_config_dir() -> Path:
    """Get or create the config directory."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    return CONFIG_DIR


def save_config(config: dict[str, Any], path: Path | None = None) -> None:
    """Save configuration to TOML file.

    The file may hold an API token, so it is written with 0o600 permissions.
    """
    import tomli_w

    config_path = path or CONFIG_FILE
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "wb") as f:
        tomli_w.dump(config, f)

    config_path.chmod(0o600)


def get_config_value(key: str) -> Any:
    """Get a single config value.

    Keys of the form ``reconcile.<name>`` address the [reconcile] section.
    """
    config = CleuraConfig.load()
    if key.startswith("reconcile."):
        return getattr(config.reconcile, key.split(".", 1)[1], None)
    return getattr(config, key, None)


def set_config_value(key: str, value: Any) -> None:
    """Set a single config value in the config file."""
    config_path = CONFIG_FILE

    if config_path.exists():
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    else:
        data = {}

    if key.startswith("reconcile."):
        data.setdefault("reconcile", {})[key.split(".", 1)[1]] = value
    else:
        data[key] = value
    save_config(data, config_path)
