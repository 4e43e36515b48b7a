"""Configuration loading for PriceWatch.

Settings live in ``~/.config/pricewatch/config.toml``. Values missing from
the file fall back to :data:`DEFAULT_CONFIG`; secrets and the database path
can also come from environment variables, which take precedence.
"""

import copy
import os
from pathlib import Path
from typing import Any, Optional

import toml

from pricewatch.errors import ConfigError

CONFIG_DIR = Path.home() / ".config" / "pricewatch"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.toml"
DEFAULT_DB_PATH = CONFIG_DIR / "pricewatch.db"

DEFAULT_CONFIG: dict[str, Any] = {
    "database": {
        "path": str(DEFAULT_DB_PATH),
    },
    "scheduler": {
        "interval_seconds": 300,
        "max_retries": 2,
        "retry_delay_seconds": 5.0,
    },
    "reconciler": {
        "max_workers": 8,
        "call_timeout_seconds": 10.0,
        "resolve_before_transition": False,
    },
    "quotes": {
        "provider": "finnhub",
        "base_url": "https://finnhub.io/api/v1",
        "api_key": "",  # Leave empty to use FINNHUB_API_KEY env var
        "timeout_seconds": 10.0,
        "static": {},
    },
    "notifications": {
        "channel": "email",
        "smtp_server": "",
        "smtp_port": 587,
        "smtp_username": "",
        "smtp_password": "",  # Leave empty to use SMTP_PASSWORD env var
        "from_address": "",
        "from_name": "PriceWatch Alerts",
        "use_tls": True,
    },
    "logging": {
        "level": "INFO",
        "file": "",
    },
}

# (env var, section, key)
ENV_OVERRIDES = [
    ("PRICEWATCH_DB_PATH", "database", "path"),
    ("FINNHUB_API_KEY", "quotes", "api_key"),
    ("SMTP_PASSWORD", "notifications", "smtp_password"),
]

VALID_PROVIDERS = ("finnhub", "static")
VALID_CHANNELS = ("email", "console")


def _deep_merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[Path] = None) -> dict[str, Any]:
    """Load configuration merged over the defaults.

    Args:
        path: Config file to read. Defaults to ``PRICEWATCH_CONFIG`` or
            ``~/.config/pricewatch/config.toml``. A missing file is not an
            error.

    Returns:
        Complete configuration dictionary.

    Raises:
        ConfigError: If the file exists but is not valid TOML or names an
            unknown quote provider or notification channel.
    """
    if path is None:
        path = Path(os.environ.get("PRICEWATCH_CONFIG", DEFAULT_CONFIG_PATH))
    path = Path(path).expanduser()

    file_config: dict[str, Any] = {}
    if path.exists():
        try:
            file_config = toml.load(path)
        except (toml.TomlDecodeError, OSError) as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e

    config = _deep_merge(DEFAULT_CONFIG, file_config)

    for env_var, section, key in ENV_OVERRIDES:
        value = os.environ.get(env_var)
        if value:
            config[section][key] = value

    provider = config["quotes"]["provider"]
    if provider not in VALID_PROVIDERS:
        raise ConfigError(
            f"Unknown quote provider '{provider}'. Expected one of: {', '.join(VALID_PROVIDERS)}"
        )
    channel = config["notifications"]["channel"]
    if channel not in VALID_CHANNELS:
        raise ConfigError(
            f"Unknown notification channel '{channel}'. Expected one of: {', '.join(VALID_CHANNELS)}"
        )
    return config


def get_db_path(config: dict[str, Any]) -> Path:
    """Database path from a loaded configuration."""
    return Path(config["database"]["path"]).expanduser()


def create_template_config(path: Optional[Path] = None) -> Path:
    """Write a template configuration file.

    Args:
        path: Where to write it. Defaults to the standard config path.

    Returns:
        The path that was written.

    Raises:
        ConfigError: If the file already exists.
    """
    path = Path(path or DEFAULT_CONFIG_PATH).expanduser()
    if path.exists():
        raise ConfigError(f"Config file already exists: {path}")

    path.parent.mkdir(parents=True, exist_ok=True)
    template = copy.deepcopy(DEFAULT_CONFIG)
    template["quotes"]["static"] = {"AAPL": 190.0, "MSFT": 410.0}
    with open(path, "w") as f:
        toml.dump(template, f)
    return path
