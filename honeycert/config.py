"""
Configuration Management for HoneyCert
Uses Pydantic Settings for type-safe configuration
"""

from typing import List, Optional
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application Settings loaded from environment variables
    """

    # ==================== Application ====================
    app_name: str = Field(default="HoneyCert")
    app_version: str = Field(default="1.0.0")
    environment: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # ==================== Master Catalog Database ====================
    # Checked in priority order: MASTER_DATABASE_URL, DATABASE_URL, POSTGRES_URL
    master_database_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MASTER_DATABASE_URL", "DATABASE_URL", "POSTGRES_URL"),
    )
    master_connection_limit: int = Field(default=3)
    master_lookup_timeout: float = Field(default=10.0)
    master_list_timeout: float = Field(default=15.0)

    # ==================== Tenant Connections ====================
    tenant_connection_limit: int = Field(default=2)
    tenant_connect_timeout: float = Field(default=30.0)
    tenant_max_retries: int = Field(default=3)
    tenant_retry_delay: float = Field(default=1.0)  # multiplied by attempt number
    tenant_test_timeout: float = Field(default=5.0)

    # Pool parameters written into every DSN
    pool_acquire_timeout: int = Field(default=10)
    pool_connect_timeout: int = Field(default=30)
    pool_statement_timeout_ms: int = Field(default=30000)

    # ==================== Connection Lifecycle ====================
    connection_idle_timeout: float = Field(default=60.0)
    connection_sweep_interval: float = Field(default=300.0)
    shutdown_timeout: float = Field(default=10.0)
    shutdown_force_timeout: float = Field(default=5.0)

    # Tenants processed concurrently by fan-out operations
    fanout_batch_size: int = Field(default=3)

    # ==================== JWT & Security ====================
    jwt_secret_key: str = Field(default="your-super-secret-jwt-key-change-in-production")
    jwt_algorithm: str = Field(default="HS256")
    jwt_access_token_expire_minutes: int = Field(default=60 * 24)

    # CORS
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"]
    )

    # ==================== Logging ====================
    log_dir: str = Field(default="./logs")
    log_file: str = Field(default="honeycert.log")
    log_rotation: str = Field(default="10 MB")
    log_retention: str = Field(default="30 days")
    log_to_file: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_ignore_empty=True,
        populate_by_name=True,
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance

    Returns:
        Settings instance loaded from environment variables
    """
    return Settings()


# Global settings instance
settings = get_settings()
