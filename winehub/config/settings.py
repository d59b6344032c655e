"""The ``settings`` object the rest of WineHub reads from.

``Settings`` wraps the structured ``WinehubConfig`` and ``SecretsConfig``
and exposes the values the application actually uses as flat attributes.
It is built on first access and cached; ``reset_settings()`` drops the
cached copy so the next access reloads files and environment.
"""

import logging
import secrets as token_source
from pathlib import Path

from winehub.config.loader import load_config, load_secrets
from winehub.config.schema import SecretsConfig, WinehubConfig

logger = logging.getLogger(__name__)


class Settings:
    """Flat, read-only view over the loaded configuration and secrets."""

    def __init__(
        self,
        config: WinehubConfig | None = None,
        secrets: SecretsConfig | None = None,
    ):
        # Explicit objects (tests) bypass the file and environment lookup
        self._config = config if config is not None else load_config()
        self._secrets = secrets if secrets is not None else load_secrets()
        self._generated_key: str | None = None
        self._ensure_secret_key()

    def _ensure_secret_key(self) -> None:
        if self._secrets.secret_key:
            return
        self._generated_key = token_source.token_urlsafe(32)
        self._secrets.secret_key = self._generated_key
        logger.warning(
            "WINEHUB_SECRET_KEY is not set; signing tokens with a throwaway key. "
            "Every issued token stops working when the process restarts."
        )

    @property
    def config(self) -> WinehubConfig:
        return self._config

    @property
    def secrets(self) -> SecretsConfig:
        return self._secrets

    # Application
    @property
    def app_name(self) -> str:
        return self._config.app_name

    @property
    def debug(self) -> bool:
        return self._config.server.debug

    # Server
    @property
    def host(self) -> str:
        return self._config.server.host

    @property
    def port(self) -> int:
        return self._config.server.port

    @property
    def enforce_https(self) -> bool:
        return self._config.server.enforce_https

    @property
    def rate_limit_per_minute(self) -> int:
        return self._config.server.rate_limit_per_minute

    @property
    def cors_origins(self) -> list[str]:
        return self._config.server.cors_origins

    # Database
    @property
    def mongodb_url(self) -> str:
        return self._config.database.mongodb_url

    @property
    def mongodb_database(self) -> str:
        return self._config.database.mongodb_database

    @property
    def min_pool_size(self) -> int:
        return self._config.database.min_pool_size

    @property
    def max_pool_size(self) -> int:
        return self._config.database.max_pool_size

    @property
    def use_transactions(self) -> bool | None:
        return self._config.database.transactions

    # Storage
    @property
    def upload_dir(self) -> Path:
        return self._config.storage.upload_dir

    @property
    def max_upload_size_bytes(self) -> int:
        return self._config.storage.max_upload_bytes

    @property
    def max_files_per_request(self) -> int:
        return self._config.storage.max_files_per_request

    @property
    def allowed_mimetypes(self) -> list[str]:
        return self._config.storage.allowed_mimetypes

    # Auth
    @property
    def registration_enabled(self) -> bool:
        return self._config.auth.registration_enabled

    @property
    def token_lifetime_minutes(self) -> int:
        return self._config.auth.token_lifetime_minutes

    @property
    def auth_rate_limit_per_minute(self) -> int:
        return self._config.auth.auth_rate_limit_per_minute

    # API
    @property
    def default_page_size(self) -> int:
        return self._config.api.default_page_size

    @property
    def max_page_size(self) -> int:
        return self._config.api.max_page_size

    # Secrets
    @property
    def secret_key(self) -> str:
        # Never None after __init__
        return self._secrets.secret_key or ""

    @property
    def secret_key_generated(self) -> bool:
        """True while the signing key is the throwaway one made at startup."""
        return self._generated_key is not None and self._secrets.secret_key == self._generated_key

    @property
    def openai_api_key(self) -> str | None:
        return self._secrets.openai_api_key

    @property
    def removebg_api_key(self) -> str | None:
        return self._secrets.removebg_api_key

    @property
    def unsplash_access_key(self) -> str | None:
        return self._secrets.unsplash_access_key


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Forget the cached settings so the next access reloads them."""
    global _settings
    _settings = None


class _SettingsProxy:
    # Lets modules bind ``settings`` at import time without loading config yet

    def __getattr__(self, name: str):
        return getattr(get_settings(), name)

    def __repr__(self) -> str:
        return f"<settings {get_settings().config.app_name!r}>"


settings = _SettingsProxy()
