"""
Configuration management for promptcode.
Supports environment variables and .env files.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_TEMP_DIR = Path(__file__).resolve().parent.parent / "temp"


class GeminiConfig(BaseSettings):
    """Generative model (OpenAI compatible endpoint) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_", env_file=".env", extra="ignore"
    )

    api_key: str = Field(default="", description="API key for the generative endpoint")
    base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/openai/",
        description="OpenAI compatible base URL"
    )
    model: str = Field(default="gemini-1.5-flash", description="Model used for code generation")
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    top_p: float = Field(default=0.95, ge=0.0, le=1.0)
    max_tokens: int = Field(default=8192, description="Maximum output tokens")
    timeout: float = Field(default=30.0, description="Request timeout in seconds")


class JDoodleConfig(BaseSettings):
    """Remote execution (JDoodle) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="JDOODLE_", env_file=".env", extra="ignore"
    )

    client_id: str = Field(default="", description="JDoodle client id")
    client_secret: str = Field(default="", description="JDoodle client secret")
    url: str = Field(
        default="https://api.jdoodle.com/v1/execute",
        description="Execute endpoint"
    )
    timeout: float = Field(default=30.0, description="Request timeout in seconds")


class StorageConfig(BaseSettings):
    """Temp file store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_", env_file=".env", extra="ignore"
    )

    temp_dir: Path = Field(
        default=_DEFAULT_TEMP_DIR,
        description="Directory holding generated source files"
    )
    max_age_seconds: float = Field(
        default=24 * 60 * 60,
        description="Files older than this are removed by the sweeper"
    )
    sweep_interval_seconds: float = Field(
        default=60 * 60,
        description="Interval between two sweeps"
    )


class RateLimitConfig(BaseSettings):
    """Per-client request rate limiting."""

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_", env_file=".env", extra="ignore"
    )

    enabled: bool = Field(default=True)
    max_requests: int = Field(default=100, ge=1, description="Requests allowed per window")
    window_seconds: int = Field(default=15 * 60, ge=1, description="Window length in seconds")
    storage_uri: str = Field(
        default="memory://",
        description="limits storage URI holding the counters"
    )


class PipelineConfig(BaseSettings):
    """Orchestration pipeline behaviour."""

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_", env_file=".env", extra="ignore"
    )

    return_partial_results: bool = Field(
        default=False,
        description="Attach generated code to the error details when execution fails"
    )


class ServerConfig(BaseSettings):
    """Server configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SERVER_", env_file=".env", extra="ignore"
    )

    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3001, description="Server port")
    workers: int = Field(default=1, description="Number of workers")
    cors_origins: list[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins"
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__"
    )

    app_name: str = "promptcode"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = Field(default=False, description="Debug mode")

    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    jdoodle: JDoodleConfig = Field(default_factory=JDoodleConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @field_validator("debug", mode="before")
    @classmethod
    def validate_debug(cls, v: str | bool) -> bool:
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.lower() in ("true", "1", "yes", "on")
        return False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
