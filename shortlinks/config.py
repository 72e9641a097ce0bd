"""Configuration management for the short link service."""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration."""

    # Storage settings
    storage_backend: Literal["memory", "postgres", "redis"] = Field(
        default="memory",
        description="Where link records are kept: memory, postgres or redis"
    )

    database_url: Optional[str] = Field(
        default=None,
        description="PostgreSQL connection URL (postgres backend)"
    )

    database_create_tables: bool = Field(
        default=False,
        description="Create the links tables on first use (postgres backend)"
    )

    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL (redis backend)"
    )

    # Server settings
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind to"
    )

    port: int = Field(
        default=9200,
        description="Port to listen on"
    )

    workers: int = Field(
        default=1,
        ge=1,
        description="Number of uvicorn worker processes. Use 1 with the memory backend."
    )

    # Short link settings
    base_url: str = Field(
        default="http://localhost:9200",
        description="Base URL for generating short URLs"
    )

    path_prefix: str = Field(
        default="/r",
        description="Path prefix redirects are served under (e.g., '/r' for /r/abc123)"
    )

    short_code_length: int = Field(
        default=6,
        ge=1,
        description="Length of generated short codes"
    )

    max_collision_retries: int = Field(
        default=10,
        ge=1,
        description="Maximum generated candidates tried before giving up"
    )

    enable_custom_codes: bool = Field(
        default=True,
        description="Allow callers to provide custom short codes"
    )

    default_validity_minutes: float = Field(
        default=30,
        gt=0,
        description="Validity applied when a create request does not give one"
    )

    lock_stripes: int = Field(
        default=64,
        ge=1,
        description="Number of per-code locks in the registry"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    log_file: Optional[str] = Field(
        default=None,
        description="Log file path (logs to stdout if not specified)"
    )

    log_json: bool = Field(
        default=False,
        description="Use JSON format for logs"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


def load_config() -> Config:
    """Load configuration from environment."""
    return Config()
