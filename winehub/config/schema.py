"""Pydantic models for WineHub configuration.

These models define the structure of config.toml and secrets.env files.
"""

from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_ALLOWED_MIMETYPES = [
    # Images
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
    # Documents
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    "text/csv",
    # Others
    "application/zip",
    "video/mp4",
]


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 5001
    workers: int = 2
    debug: bool = False
    enforce_https: bool = False
    rate_limit_per_minute: int = 60
    # Admin SPA and public site dev servers
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:3001"]
    )


class DatabaseConfig(BaseModel):
    """MongoDB database configuration."""

    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "winehub"
    # Connection pool settings
    min_pool_size: int = 10
    max_pool_size: int = 100
    # None means detect replica set / mongos support at startup
    transactions: bool | None = None


class StorageConfig(BaseModel):
    """Upload storage configuration."""

    upload_dir: Path = Field(default_factory=lambda: Path("uploads"))
    max_upload_mb: int = 10
    max_files_per_request: int = 10
    allowed_mimetypes: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_MIMETYPES)
    )

    @property
    def max_upload_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_mb * 1024 * 1024


class AuthConfig(BaseModel):
    """Authentication configuration."""

    registration_enabled: bool = True
    token_lifetime_minutes: int = 60 * 24 * 7
    auth_rate_limit_per_minute: int = 30


class APIConfig(BaseModel):
    """List endpoint paging configuration."""

    default_page_size: int = 10
    max_page_size: int = 100


class WinehubConfig(BaseModel):
    """Main WineHub configuration loaded from config.toml."""

    app_name: str = "WineHub CMS"
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    api: APIConfig = Field(default_factory=APIConfig)


class SecretsConfig(BaseModel):
    """Secrets loaded from secrets.env file.

    These are sensitive values that should not be stored in config.toml.
    """

    secret_key: str | None = None
    openai_api_key: str | None = None
    removebg_api_key: str | None = None
    unsplash_access_key: str | None = None
