"""Configuration settings for the chatclips worker.

This module provides centralized configuration management using Pydantic Settings,
with logical grouping of related settings. Nested values are read from the
environment with a double underscore delimiter, e.g. ``QUEUE__MAX_ATTEMPTS=5``.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.services.highlight_detection import ChatDetectionConfig


class AppConfig(BaseModel):
    """Core application configuration."""

    name: str = Field(default="chatclips", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


class DatabaseConfig(BaseModel):
    """Database configuration."""

    url: str = Field(
        default="sqlite+aiosqlite:///./chatclips.db",
        description="Async SQLAlchemy connection URL (postgresql+asyncpg in production)",
    )
    echo: bool = Field(default=False, description="Echo SQL statements")
    pool_size: int = Field(default=20, description="Database connection pool size")
    max_overflow: int = Field(default=10, description="Max overflow connections")


class QueueConfig(BaseModel):
    """Job queue configuration."""

    poll_interval_ms: int = Field(
        default=5000, gt=0, description="Delay between queue polls"
    )
    max_attempts: int = Field(
        default=3, ge=1, description="Attempts before a job is marked failed"
    )
    job_timeout_seconds: Optional[float] = Field(
        default=1800, gt=0, description="Upper bound on a single processor run"
    )
    stale_after_seconds: float = Field(
        default=3600,
        gt=0,
        description="Age after which a processing job is considered abandoned",
    )
    worker_count: int = Field(
        default=1, ge=1, description="Independent queue loops started by the worker"
    )
    progress_interval_seconds: float = Field(
        default=2.0, ge=0.0, description="Minimum delay between progress writes"
    )


class MediaConfig(BaseModel):
    """FFmpeg and temporary file configuration."""

    ffmpeg_path: str = Field(default="ffmpeg", description="FFmpeg executable")
    ffprobe_path: str = Field(default="ffprobe", description="FFprobe executable")
    temp_dir: str = Field(
        default="/tmp/chatclips", description="Directory for extracted clips"
    )
    clip_format: str = Field(default="mp4", description="Container of extracted clips")
    video_height: int = Field(default=1080, gt=0, description="Output video height")
    preset: str = Field(default="fast", description="libx264 encoding preset")
    crf: int = Field(default=23, ge=0, le=51, description="libx264 constant rate factor")
    thumbnail_offset_seconds: float = Field(
        default=1.0, ge=0.0, description="Clip offset of the thumbnail frame"
    )


class StorageConfig(BaseModel):
    """Clip artifact storage configuration."""

    provider: Literal["s3", "local"] = Field(
        default="local", description="Storage backend"
    )
    s3_bucket: str = Field(default="chatclips", description="S3 bucket for clips")
    s3_region: str = Field(default="us-east-1", description="AWS region")
    s3_access_key_id: str = Field(default="", description="AWS access key ID")
    s3_secret_access_key: SecretStr = Field(
        default=SecretStr(""), description="AWS secret access key"
    )
    s3_endpoint_url: Optional[str] = Field(
        default=None, description="Custom S3 endpoint (MinIO, R2, ...)"
    )
    cloudfront_domain: Optional[str] = Field(
        default=None, description="CDN domain serving the bucket"
    )
    local_root: str = Field(
        default="./storage", description="Directory used by the local backend"
    )
    local_base_url: str = Field(
        default="http://localhost:8000/storage",
        description="Public URL prefix of the local backend",
    )
    upload_max_retries: int = Field(
        default=3, ge=1, description="Attempts per S3 upload"
    )


class TwitchConfig(BaseModel):
    """Twitch VOD API configuration."""

    client_id: str = Field(
        default="kimne78kx3ncx6brgo4mv6wki5h1ko", description="Twitch GQL client ID"
    )
    gql_url: str = Field(default="https://gql.twitch.tv/gql", description="GQL endpoint")
    usher_url: str = Field(
        default="https://usher.ttvnw.net/vod", description="HLS playlist endpoint"
    )
    request_timeout_seconds: float = Field(
        default=30.0, gt=0, description="HTTP request timeout"
    )
    max_pages: int = Field(
        default=10_000, ge=1, description="Upper bound on chat replay pages per VOD"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Application log level")
    json_format: bool = Field(default=False, description="Render logs as JSON")


class LogfireConfig(BaseModel):
    """Logfire observability configuration."""

    enabled: bool = Field(default=False, description="Enable Logfire observability")
    service_name: str = Field(
        default="chatclips-worker", description="Service name for Logfire"
    )
    token: Optional[SecretStr] = Field(
        default=None, description="Logfire write token (optional for local development)"
    )
    environment: Optional[str] = Field(
        default=None, description="Logfire environment (defaults to app environment)"
    )
    console_enabled: bool = Field(
        default=False, description="Enable Logfire console output"
    )


class Settings(BaseSettings):
    """Application settings with logical grouping."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Grouped configuration
    app: AppConfig = Field(default_factory=AppConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    detection: ChatDetectionConfig = Field(default_factory=ChatDetectionConfig)
    media: MediaConfig = Field(default_factory=MediaConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    twitch: TwitchConfig = Field(default_factory=TwitchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    logfire: LogfireConfig = Field(default_factory=LogfireConfig)

    @property
    def database_url(self) -> str:
        return self.database.url

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app.is_production

    @property
    def logfire_env(self) -> str:
        """Get Logfire environment, defaulting to app environment."""
        return self.logfire.environment or self.app.environment


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings
    """
    return Settings()
