"""
Configuration management for the bill synchronization engine.

Groups upstream provider, cache, summary, and facade settings. Every group
reads from environment variables (with its own prefix) and the shared .env
file.

Responsibility: Centralized configuration and environment management
"""

from enum import Enum
from typing import Optional, List
import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment"""
    LOCAL = "local"
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LegiScanConfig(BaseSettings):
    """Upstream legislative-data provider configuration"""

    base_url: str = Field(default="https://api.legiscan.com")
    api_key: Optional[str] = Field(
        default=None,
        description="Provider API key used for bill text requests (never logged)"
    )
    user_agent: str = Field(default="BillSync/1.0")

    # Request settings
    timeout_seconds: float = Field(default=30.0, gt=0)
    rate_limit_per_second: float = Field(default=1.0, gt=0)
    rate_limit_burst: int = Field(default=5, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="LEGISCAN_",
        case_sensitive=False,
        extra="ignore"
    )


class CacheConfig(BaseSettings):
    """Artifact cache configuration"""

    max_document_bytes: int = Field(default=50 * 1024 * 1024, ge=1)
    dataset_ttl_seconds: int = Field(default=3600)  # 1 hour
    version_index_ttl_seconds: int = Field(default=600)  # 10 minutes
    diff_memo_entries: int = Field(default=256, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        case_sensitive=False,
        extra="ignore"
    )


class SummaryBackend(str, Enum):
    """Available summary generators"""
    EXTRACTIVE = "extractive"
    OPENAI = "openai"


class SummaryConfig(BaseSettings):
    """Summary generator configuration"""

    backend: SummaryBackend = Field(default=SummaryBackend.EXTRACTIVE)
    max_sentences: int = Field(default=5, ge=1)

    # Delegated summarization
    openai_api_key: Optional[str] = Field(default=None)
    openai_model: str = Field(default="gpt-4o-mini")
    openai_endpoint: str = Field(default="https://api.openai.com/v1/chat/completions")
    max_tokens: int = Field(default=1000)
    temperature: float = Field(default=0.3)
    timeout_seconds: float = Field(default=60.0, gt=0)
    chunk_words: int = Field(default=900, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="SUMMARY_",
        case_sensitive=False,
        extra="ignore"
    )


class SyncConfig(BaseSettings):
    """Synchronization facade configuration"""

    max_attempts: int = Field(
        default=1,
        ge=1,
        description="Upstream attempts per fetch (1 = no automatic retry)"
    )
    retry_base_delay: float = Field(default=1.0)
    retry_max_delay: float = Field(default=30.0)
    diff_granularity: str = Field(default="line")

    model_config = SettingsConfigDict(
        env_prefix="SYNC_",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("diff_granularity")
    @classmethod
    def validate_granularity(cls, v: str) -> str:
        """Only line and word tokenization are supported"""
        v = v.strip().lower()
        if v not in ("line", "word"):
            raise ValueError("diff_granularity must be 'line' or 'word'")
        return v


class AppConfig(BaseSettings):
    """Application configuration"""

    # Environment
    environment: Environment = Field(default=Environment.LOCAL)
    debug: bool = Field(default=True)

    # Application metadata
    app_name: str = Field(default="BillSync")
    app_version: str = Field(default="1.0.0")

    # Logging
    log_level: str = Field(default="INFO")

    # CORS settings
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins (JSON list or comma-separated in env)"
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from JSON string or comma-separated list"""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            v = v.strip()
            if (v.startswith('"') and v.endswith('"')) or (v.startswith("'") and v.endswith("'")):
                v = v[1:-1]
            if v.startswith("["):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


class Settings(BaseSettings):
    """
    Global settings container.

    Loads configuration from:
    1. Environment variables
    2. .env file
    3. Default values

    Example:
        settings = Settings(
            legiscan=LegiScanConfig(api_key="..."),
            summary=SummaryConfig(backend=SummaryBackend.OPENAI)
        )
    """

    app: AppConfig = Field(default_factory=AppConfig)
    legiscan: LegiScanConfig = Field(default_factory=LegiScanConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    summary: SummaryConfig = Field(default_factory=SummaryConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
