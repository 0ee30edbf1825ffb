"""Centralized configuration management with environment-aware defaults.

Settings are read with Pydantic Settings, so every value is typed and
validated and can be overridden through environment variables or a ``.env``
file. Nested sections use ``__`` as delimiter, e.g.
``EXTERNAL_API_CONFIG__BASE_URL=https://partner.example.com``.

Configuration sources (in order of precedence):
1. Environment variables
2. .env file in project root
3. Default values in model definitions
"""

import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogConfig(BaseModel):
    """Logging configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_formatter_type: Literal["console", "json"] | None = Field(
        default=None,
        description="Log output formatter. Auto-detected if not specified.",
    )
    excluded_paths: list[str] = Field(
        default_factory=lambda: ["/health"],
        description="Paths to exclude from request logging",
    )
    slow_request_threshold_ms: int = Field(
        default=1000,
        gt=0,
        description="Threshold for slow request warnings (milliseconds)",
    )
    sensitive_fields: list[str] = Field(
        default_factory=lambda: [
            "password",
            "token",
            "secret",
            "cookie",
            "authorization",
        ],
        description="Field names to redact",
    )


class PaginationConfig(BaseModel):
    """Defaults applied when parsing list query strings."""

    default_limit: int = Field(
        default=10,
        ge=1,
        description="Page size used when the limit parameter is missing or invalid",
    )
    max_limit: int = Field(
        default=100,
        ge=1,
        description="Upper bound for the limit parameter",
    )

    @model_validator(mode="after")
    def check_bounds(self) -> "PaginationConfig":
        """Ensure the default page size does not exceed the maximum."""
        if self.default_limit > self.max_limit:
            msg = "default_limit must not be greater than max_limit"
            raise ValueError(msg)
        return self


class ExternalApiConfig(BaseModel):
    """Downstream HTTP API used by the external user bridge."""

    base_url: str = Field(
        default="http://localhost:9000",
        description="Base URL of the downstream API",
    )
    endpoint_path: str = Field(
        default="/users",
        description="Path, relative to base_url, that receives user payloads",
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Total timeout for one downstream call",
    )
    token: str | None = Field(
        default=None,
        description="Token added to every outbound payload when set",
    )
    client_ip_header: str = Field(
        default="CF-Connecting-IP",
        description="Header carrying the original client IP, read and forwarded",
    )
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Extra headers merged into every outbound call",
    )

    @field_validator("token", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for nullable fields."""
        if v == "":
            return None
        return v

    @field_validator("base_url", mode="after")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) URL and strip the trailing slash."""
        if not v.startswith(("http://", "https://")):
            msg = "External API base URL must start with http:// or https://"
            raise ValueError(msg)
        return v.rstrip("/")


class Settings(BaseSettings):
    """Main settings class for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        env_nested_delimiter="__",
    )

    # Application settings
    app_name: str = Field(default="Userhub", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Environment the application is running in",
    )
    debug: bool = Field(default=True, description="Debug mode flag")

    # API settings
    api_host: str = Field(default="127.0.0.1", description="API host")
    api_port: int = Field(default=3000, description="API port")
    docs_url: str | None = Field(default="/docs", description="Swagger UI URL")
    redoc_url: str | None = Field(default="/redoc", description="ReDoc URL")
    openapi_url: str | None = Field(
        default="/openapi.json", description="OpenAPI schema URL"
    )

    log_config: LogConfig = Field(
        default_factory=LogConfig, description="Logging configuration"
    )
    pagination_config: PaginationConfig = Field(
        default_factory=PaginationConfig, description="Pagination defaults"
    )
    external_api_config: ExternalApiConfig = Field(
        default_factory=ExternalApiConfig, description="Downstream API settings"
    )

    def model_post_init(self, __context: object) -> None:
        """Post initialization to set environment-based defaults."""
        super().model_post_init(__context)

        if self.log_config.log_formatter_type is None:
            self.log_config.log_formatter_type = self._detect_formatter()

    def _detect_formatter(self) -> Literal["console", "json"]:
        """Auto-detect log formatter based on environment."""
        # Container platforms collect stdout as JSON
        if os.getenv("K_SERVICE") or os.getenv("AWS_EXECUTION_ENV"):
            return "json"
        if self.environment == "development":
            return "console"
        return "json"

    @field_validator("docs_url", "redoc_url", "openapi_url", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for nullable fields."""
        if v == "":
            return None
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
