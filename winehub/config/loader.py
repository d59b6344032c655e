"""Configuration loader for WineHub.

Loads configuration from TOML files and secrets from .env files.
Environment variables can override any configuration value.
"""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from winehub.config.schema import SecretsConfig, WinehubConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "WINEHUB"

INT_KEYS = {
    "port",
    "workers",
    "rate_limit_per_minute",
    "min_pool_size",
    "max_pool_size",
    "max_upload_mb",
    "max_files_per_request",
    "token_lifetime_minutes",
    "auth_rate_limit_per_minute",
    "default_page_size",
    "max_page_size",
}

BOOL_KEYS = {
    "debug",
    "enforce_https",
    "registration_enabled",
    "transactions",
}

LIST_KEYS = {
    "cors_origins",
    "allowed_mimetypes",
}

SECRET_KEYS = {
    f"{ENV_PREFIX}_SECRET_KEY": "secret_key",
    f"{ENV_PREFIX}_OPENAI_API_KEY": "openai_api_key",
    "OPENAI_API_KEY": "openai_api_key",
    f"{ENV_PREFIX}_REMOVEBG_API_KEY": "removebg_api_key",
    "REMOVEBG_API_KEY": "removebg_api_key",
    f"{ENV_PREFIX}_UNSPLASH_ACCESS_KEY": "unsplash_access_key",
    "UNSPLASH_ACCESS_KEY": "unsplash_access_key",
}


def _search_dirs() -> list[Path]:
    return [
        Path.cwd(),
        Path.home() / ".config" / "winehub",
        Path("/opt/winehub"),
        Path("/etc/winehub"),
    ]


def get_config_search_paths() -> list[Path]:
    """Get the list of paths to search for configuration files.

    Returns paths in priority order (first found wins):
    1. ./config.toml (project root - for development)
    2. ~/.config/winehub/config.toml (user config)
    3. /opt/winehub/config.toml (production install)
    4. /etc/winehub/config.toml (system config)
    """
    return [directory / "config.toml" for directory in _search_dirs()]


def get_secrets_search_paths() -> list[Path]:
    """Get the list of paths to search for secrets files, in priority order."""
    return [directory / "secrets.env" for directory in _search_dirs()]


def _first_existing(paths: list[Path]) -> Path | None:
    found = next((path for path in paths if path.is_file()), None)
    if found is not None:
        logger.debug("Using %s", found)
    return found


def find_config_file() -> Path | None:
    """Find the first existing config file from search paths."""
    return _first_existing(get_config_search_paths())


def find_secrets_file() -> Path | None:
    return _first_existing(get_secrets_search_paths())


def load_toml_file(path: Path) -> dict[str, Any]:
    """Load a TOML file and return its contents as a dictionary."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def parse_env_file(path: Path) -> dict[str, str]:
    """Parse a simple .env file into a dictionary.

    Supports:
    - KEY=value
    - KEY="quoted value"
    - # comments
    - Empty lines
    """
    env_vars: dict[str, str] = {}

    with open(path) as f:
        for line in f:
            line = line.strip()

            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip()

            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]

            env_vars[key] = value

    return env_vars


def _convert_value(key: str, value: str) -> Any:
    if key in INT_KEYS:
        return int(value)
    if key in BOOL_KEYS:
        return value.lower() in ("true", "1", "yes")
    if key in LIST_KEYS:
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


def apply_env_overrides(config_dict: dict[str, Any], prefix: str = ENV_PREFIX) -> None:
    """Apply environment variable overrides to configuration dictionary.

    Environment variables are mapped as follows:
    - WINEHUB_SERVER_PORT -> config_dict["server"]["port"]
    - WINEHUB_MONGODB_URL -> config_dict["database"]["mongodb_url"]
    - etc.

    Note: This modifies config_dict in place.
    """
    env_mappings = {
        # Server
        f"{prefix}_SERVER_HOST": ("server", "host"),
        f"{prefix}_SERVER_PORT": ("server", "port"),
        f"{prefix}_SERVER_WORKERS": ("server", "workers"),
        f"{prefix}_SERVER_DEBUG": ("server", "debug"),
        f"{prefix}_DEBUG": ("server", "debug"),  # Shorthand
        f"{prefix}_HOST": ("server", "host"),  # Shorthand
        f"{prefix}_PORT": ("server", "port"),  # Shorthand
        f"{prefix}_ENFORCE_HTTPS": ("server", "enforce_https"),
        f"{prefix}_CORS_ORIGINS": ("server", "cors_origins"),
        # Database
        f"{prefix}_DATABASE_MONGODB_URL": ("database", "mongodb_url"),
        f"{prefix}_DATABASE_MONGODB_DATABASE": ("database", "mongodb_database"),
        f"{prefix}_MONGODB_URL": ("database", "mongodb_url"),  # Shorthand
        f"{prefix}_MONGODB_DATABASE": ("database", "mongodb_database"),  # Shorthand
        f"{prefix}_DATABASE_TRANSACTIONS": ("database", "transactions"),
        # Storage
        f"{prefix}_STORAGE_UPLOAD_DIR": ("storage", "upload_dir"),
        f"{prefix}_UPLOAD_DIR": ("storage", "upload_dir"),  # Shorthand
        f"{prefix}_STORAGE_MAX_UPLOAD_MB": ("storage", "max_upload_mb"),
        f"{prefix}_STORAGE_ALLOWED_MIMETYPES": ("storage", "allowed_mimetypes"),
        # Auth
        f"{prefix}_AUTH_REGISTRATION_ENABLED": ("auth", "registration_enabled"),
        f"{prefix}_REGISTRATION_ENABLED": ("auth", "registration_enabled"),  # Shorthand
        f"{prefix}_AUTH_TOKEN_LIFETIME_MINUTES": ("auth", "token_lifetime_minutes"),
        # API
        f"{prefix}_API_DEFAULT_PAGE_SIZE": ("api", "default_page_size"),
        f"{prefix}_API_MAX_PAGE_SIZE": ("api", "max_page_size"),
    }

    for env_var, path in env_mappings.items():
        value = os.environ.get(env_var)
        if value is not None:
            section, key = path
            config_dict.setdefault(section, {})
            config_dict[section][key] = _convert_value(key, value)


def load_secrets(secrets_file: Path | None = None) -> SecretsConfig:
    """Load secrets from environment variables and optional secrets.env file.

    Environment variables take precedence over file values.
    """
    secrets_dict: dict[str, str | None] = {}

    if secrets_file is None:
        secrets_file = find_secrets_file()

    if secrets_file and secrets_file.exists():
        logger.info("Loading secrets from: %s", secrets_file)
        file_secrets = parse_env_file(secrets_file)

        for file_key, config_key in SECRET_KEYS.items():
            if file_secrets.get(file_key):
                secrets_dict[config_key] = file_secrets[file_key]

    for env_var, config_key in SECRET_KEYS.items():
        value = os.environ.get(env_var)
        if value:
            secrets_dict[config_key] = value

    return SecretsConfig(**secrets_dict)


def load_config(config_file: Path | None = None) -> WinehubConfig:
    """Load configuration from TOML file with environment variable overrides.

    Args:
        config_file: Optional path to config file. If not provided,
                     searches default locations.

    Returns:
        WinehubConfig instance with all settings loaded.
    """
    config_dict: dict[str, Any] = {}

    if config_file is None:
        config_file = find_config_file()

    if config_file and config_file.exists():
        logger.info("Loading config from: %s", config_file)
        config_dict = load_toml_file(config_file)
    else:
        logger.info("No config file found, using defaults with env overrides")

    apply_env_overrides(config_dict)

    return WinehubConfig(**config_dict)
