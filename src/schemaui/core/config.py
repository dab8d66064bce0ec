"""Configuration Management."""

from functools import lru_cache
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

BREAKPOINT_NAMES = ("xs", "sm", "md", "lg", "xl", "2xl")


class Settings(BaseSettings):
    """Engine settings from environment."""

    model_config = SettingsConfigDict(
        env_prefix="SCHEMAUI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    json_logs: bool = Field(default=False, description="Use JSON log format")

    # Rendering
    default_breakpoint: str = Field(default="lg", description="Breakpoint used when none is injected")
    strict_expressions: bool = Field(
        default=False, description="Raise on expression failures instead of failing open"
    )
    expression_cache_size: int = Field(default=512, gt=0, description="Parsed expression cache size")

    # Document limits
    max_schema_depth: int = Field(default=64, gt=0, description="Max nesting depth of a schema document")
    max_schema_size: int = Field(default=2 * 1024 * 1024, gt=0, description="Max schema document size (bytes)")

    # Backend data source
    backend_url: str = Field(default="", description="Base URL of the HTTP data source")
    backend_timeout: float = Field(default=5.0, gt=0, description="Backend request timeout")
    breaker_fail_max: int = Field(default=5, gt=0, description="Failures before the breaker opens")
    breaker_reset_timeout: int = Field(default=30, gt=0, description="Seconds before the breaker half-opens")
    upload_chunk_size: int = Field(default=64 * 1024, gt=0, description="Upload chunk size (bytes)")

    # Metrics
    enable_metrics: bool = Field(default=True, description="Collect Prometheus metrics")

    @field_validator("default_breakpoint")
    @classmethod
    def validate_breakpoint(cls, v: str) -> str:
        """Ensure the default breakpoint is a known name."""
        if v not in BREAKPOINT_NAMES:
            raise ValueError(f"Unknown breakpoint '{v}'. Must be one of: {BREAKPOINT_NAMES}")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
