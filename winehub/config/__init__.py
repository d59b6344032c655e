"""WineHub configuration module.

This module provides TOML-based configuration with environment variable overrides.

Configuration is loaded from the following locations (in order of priority):
1. Environment variables (highest priority)
2. ./config.toml (project root - for development)
3. ~/.config/winehub/config.toml (user config)
4. /opt/winehub/config.toml (production install)
5. /etc/winehub/config.toml (system config)

Secrets are loaded from secrets.env files in the same directories.
"""

from winehub.config.schema import (
    APIConfig,
    AuthConfig,
    DatabaseConfig,
    SecretsConfig,
    ServerConfig,
    StorageConfig,
    WinehubConfig,
)
from winehub.config.settings import get_settings, settings

__all__ = [
    "APIConfig",
    "AuthConfig",
    "DatabaseConfig",
    "SecretsConfig",
    "ServerConfig",
    "StorageConfig",
    "WinehubConfig",
    "get_settings",
    "settings",
]
