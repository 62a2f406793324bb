"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False
    cors_origins: list[str] = ["*"]

    # Database
    database_url: str = "postgresql+asyncpg://catalog:catalog_dev_password@db:5432/catalog"
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Redis (listing cache and audit queue). Empty disables both.
    redis_url: str = "redis://redis:6379/0"

    # Listing cache
    cache_ttl_seconds: int = 300
    cache_timeout_seconds: float = 2.0

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100

    # Audit events
    audit_queue_key: str = "catalog:audit"
    audit_queue_max_length: int = 10000
    audit_max_pending: int = 100
    audit_timeout_seconds: float = 1.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
