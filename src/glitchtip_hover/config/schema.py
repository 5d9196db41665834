"""Pydantic models for configuration schema."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GlitchTipConfig(BaseModel):
    """Connection settings for the GlitchTip (Sentry-compatible) API.

    Any of ``auth_token``, ``organization_slug`` or ``project_slug`` may be left
    unset; the sync service then treats syncing as not runnable.
    """

    url: str = "https://app.glitchtip.com"
    auth_token: str | None = None
    organization_slug: str | None = None
    project_slug: str | None = None
    timeout: float = Field(30.0, gt=0, le=300, description="HTTP timeout in seconds")
    # A higher limit slows down every cycle and risks hitting rate limits
    issue_limit: int = Field(100, ge=1, le=100)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate the base URL and drop any trailing slash."""
        from ..utils.security import validate_base_url

        if v and not validate_base_url(v):
            raise ValueError(f"Invalid GlitchTip URL: {v}. Expected http(s)://host")
        return v.rstrip("/")

    @property
    def missing_fields(self) -> tuple[str, ...]:
        """Names of required settings that are unset or empty."""
        required = ("url", "auth_token", "organization_slug", "project_slug")
        return tuple(name for name in required if not getattr(self, name))

    @property
    def is_complete(self) -> bool:
        """Return True if every setting needed for a sync is present."""
        return not self.missing_fields

    def require_complete(self) -> None:
        """Raise ConfigIncompleteError if any required setting is missing."""
        from ..utils.async_helpers import ConfigIncompleteError

        missing = self.missing_fields
        if missing:
            raise ConfigIncompleteError(missing)


class WorkspaceConfig(BaseModel):
    """Local source tree that issues are attributed to."""

    root: Path = Path(".")
    exclude_pattern: str = "**/node_modules/**"
    max_results: int = Field(1, ge=1, le=100)
    cache_size: int = Field(1024, ge=0)
    search_timeout: float = Field(30.0, gt=0, description="Per-search timeout in seconds")


class SyncConfig(BaseModel):
    """Sync scheduling configuration."""

    interval_seconds: int = Field(3600, ge=60, description="Seconds between scheduled cycles")
    max_concurrent_events: int = Field(
        1, ge=1, le=20, description="Latest-event requests allowed in flight at once"
    )
    run_on_start: bool = True


class RetryConfig(BaseModel):
    """Retry configuration for transient network failures."""

    max_attempts: int = Field(1, ge=1, le=10)
    min_wait: float = Field(1.0, ge=0.0, le=10.0)
    max_wait: float = Field(30.0, ge=0.0, le=300.0)


class FileLoggingConfig(BaseModel):
    """File logging configuration."""

    enabled: bool = False
    path: Path = Path("glitchtip-hover.log")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "console"
    file: FileLoggingConfig = FileLoggingConfig()


class HoverConfig(BaseSettings):
    """Root configuration for glitchtip-hover."""

    glitchtip: GlitchTipConfig = GlitchTipConfig()
    workspace: WorkspaceConfig = WorkspaceConfig()
    sync: SyncConfig = SyncConfig()
    retry: RetryConfig = RetryConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = SettingsConfigDict(
        env_prefix="GLITCHTIP_HOVER_",
        env_file=".env",
        env_nested_delimiter="__",
    )
