"""Configuration management for the workbook preview service.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
WBP_ prefix, or via a .env file in the project root.

Environment Variables:
    WBP_WORKBOOK_DIR: Directory searched by the local workbook source
    WBP_WORKBOOK_SOURCE_URL: URL of an HTTP workbook source (overrides the dir)
    WBP_WORKBOOK_SOURCE_TOKEN: Bearer token sent to the HTTP workbook source
    WBP_FETCH_TIMEOUT_SECONDS: Timeout for HTTP workbook fetches (default: 30)
    WBP_MAX_FILE_SIZE_MB: Maximum workbook size in MB (default: 25)
    WBP_DEFAULT_MAX_ROWS: Rows rendered when a request gives none (default: 100)
    WBP_DEFAULT_MAX_COLS: Columns rendered when a request gives none (default: 30)
    WBP_MAX_ROWS_LIMIT: Largest row window a request may ask for (default: 1000)
    WBP_MAX_COLS_LIMIT: Largest column window a request may ask for (default: 200)
    WBP_CACHE_MAX_ENTRIES: Preview cache entry cap (default: 50)
    WBP_CACHE_MAX_SIZE_MB: Preview cache HTML size cap in MB (default: 50)
    WBP_CACHE_TTL_SECONDS: Preview cache time-to-live (default: 300)
    WBP_CDN_MAX_AGE_SECONDS: Shared-cache lifetime sent to clients (default: 300)
    WBP_CDN_STALE_WHILE_REVALIDATE_SECONDS: Revalidation window (default: 600)
    WBP_LOG_LEVEL: Logging level (default: INFO)
    WBP_DEBUG: Enable debug mode (default: false)
    WBP_CORS_ORIGINS: Comma-separated CORS origins (default: *)
    WBP_SERVER_HOST: Server bind host (default: 0.0.0.0)
    WBP_SERVER_PORT: Server bind port (default: 8000)
"""

import logging
from typing import Any

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Example .env file:
        WBP_WORKBOOK_SOURCE_URL=https://models.example.com/api/get-model
        WBP_CACHE_TTL_SECONDS=120
        WBP_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="WBP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Workbook Source Settings
    # =========================================================================

    workbook_dir: str = "/tmp/wbp_workbooks"
    """Directory searched by the local workbook source."""

    workbook_source_url: str | None = None
    """URL of an HTTP workbook source. When set, replaces the local source."""

    workbook_source_token: SecretStr = SecretStr("")
    """Optional bearer token for the HTTP workbook source."""

    fetch_timeout_seconds: float = 30.0
    """Timeout applied to HTTP workbook fetches."""

    max_file_size_mb: int = 25
    """Maximum workbook size in megabytes."""

    # =========================================================================
    # Render Window Settings
    # =========================================================================

    default_max_rows: int = 100
    """Rows rendered when the request does not specify a limit."""

    default_max_cols: int = 30
    """Columns rendered when the request does not specify a limit."""

    max_rows_limit: int = 1000
    """Upper bound accepted for the row window."""

    max_cols_limit: int = 200
    """Upper bound accepted for the column window."""

    # =========================================================================
    # Preview Cache Settings
    # =========================================================================

    cache_max_entries: int = 50
    """Maximum number of cached previews."""

    cache_max_size_mb: int = 50
    """Maximum total HTML size held by the cache, in megabytes."""

    cache_ttl_seconds: int = 300
    """Time-to-live of a cached preview, measured from insertion."""

    cdn_max_age_seconds: int = 300
    """s-maxage directive sent with preview responses."""

    cdn_stale_while_revalidate_seconds: int = 600
    """stale-while-revalidate directive sent with preview responses."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with additional error details."""

    # =========================================================================
    # Server Settings
    # =========================================================================

    cors_origins: str = "*"
    """Comma-separated list of allowed CORS origins, or * for all."""

    server_host: str = "0.0.0.0"
    """Host address for the server to bind to."""

    server_port: int = 8000
    """Port for the server to listen on."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator(
        "default_max_rows",
        "default_max_cols",
        "max_rows_limit",
        "max_cols_limit",
        "cache_max_entries",
        "cache_max_size_mb",
        "cache_ttl_seconds",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate limits are positive."""
        if v < 1:
            raise ValueError(f"Value must be at least 1, got {v}")
        return v

    @field_validator("cdn_max_age_seconds", "cdn_stale_while_revalidate_seconds")
    @classmethod
    def validate_directive(cls, v: int) -> int:
        """Validate cache directives are not negative."""
        if v < 0:
            raise ValueError(f"Cache directive must not be negative, got {v}")
        return v

    @field_validator("fetch_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate fetch timeout is positive."""
        if v <= 0:
            raise ValueError(f"fetch_timeout_seconds must be positive, got {v}")
        return v

    @field_validator("max_file_size_mb")
    @classmethod
    def validate_file_size(cls, v: int) -> int:
        """Validate file size is positive and reasonable."""
        if not 1 <= v <= 500:
            raise ValueError(f"max_file_size_mb must be between 1 and 500, got {v}")
        return v

    @field_validator("server_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError(f"server_port must be between 1 and 65535, got {v}")
        return v

    @model_validator(mode="after")
    def validate_window_defaults(self) -> "Settings":
        """Validate default windows fit inside the request limits."""
        if self.default_max_rows > self.max_rows_limit:
            raise ValueError(
                f"default_max_rows ({self.default_max_rows}) must not exceed "
                f"max_rows_limit ({self.max_rows_limit})"
            )
        if self.default_max_cols > self.max_cols_limit:
            raise ValueError(
                f"default_max_cols ({self.default_max_cols}) must not exceed "
                f"max_cols_limit ({self.max_cols_limit})"
            )
        return self

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_file_size_bytes(self) -> int:
        """Get max workbook size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def cache_max_size_bytes(self) -> int:
        """Get the cache size cap in bytes."""
        return self.cache_max_size_mb * 1024 * 1024

    @property
    def cache_control_header(self) -> str:
        """Get the Cache-Control value sent with preview responses."""
        return (
            f"public, s-maxage={self.cdn_max_age_seconds}, "
            f"stale-while-revalidate={self.cdn_stale_while_revalidate_seconds}"
        )

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def get_workbook_source_token(self) -> str:
        """Get the HTTP workbook source token value.

        Returns:
            The token string. Returns empty string if not set.
        """
        return self.workbook_source_token.get_secret_value()

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary with sensitive values masked."""
        return {
            "workbook_dir": self.workbook_dir,
            "workbook_source_url": self.workbook_source_url,
            "workbook_source_token": (
                "***" if self.get_workbook_source_token() else "(not set)"
            ),
            "fetch_timeout_seconds": self.fetch_timeout_seconds,
            "max_file_size_mb": self.max_file_size_mb,
            "default_max_rows": self.default_max_rows,
            "default_max_cols": self.default_max_cols,
            "max_rows_limit": self.max_rows_limit,
            "max_cols_limit": self.max_cols_limit,
            "cache_max_entries": self.cache_max_entries,
            "cache_max_size_mb": self.cache_max_size_mb,
            "cache_ttl_seconds": self.cache_ttl_seconds,
            "cdn_max_age_seconds": self.cdn_max_age_seconds,
            "cdn_stale_while_revalidate_seconds": (
                self.cdn_stale_while_revalidate_seconds
            ),
            "log_level": self.log_level,
            "debug": self.debug,
            "cors_origins": self.cors_origins,
            "server_host": self.server_host,
            "server_port": self.server_port,
        }


def validate_settings_on_startup(s: Settings) -> None:
    """Validate settings on application startup.

    Emits warnings for configurations that work but are unlikely to be
    intended in production.

    Args:
        s: Settings instance to validate.
    """
    logger = logging.getLogger(__name__)

    if s.workbook_source_url is None:
        logger.warning(
            f"No workbook source URL configured; serving workbooks from "
            f"{s.workbook_dir}. Set WBP_WORKBOOK_SOURCE_URL to fetch over HTTP."
        )

    if s.cors_origins == "*" and not s.debug:
        logger.warning(
            "CORS is configured to allow all origins (*). "
            "Consider restricting this in production."
        )

    logger.info(
        f"Configuration loaded: log_level={s.log_level}, debug={s.debug}, "
        f"cache_max_entries={s.cache_max_entries}, "
        f"cache_max_size_mb={s.cache_max_size_mb}, "
        f"cache_ttl_seconds={s.cache_ttl_seconds}"
    )


# Create the global settings instance
settings = Settings()
