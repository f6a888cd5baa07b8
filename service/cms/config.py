"""
Configuration and settings for the CMS backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Database (Postgres expected)
    database_url: Optional[str] = Field(default=None)

    # Supabase storage through its S3-compatible endpoint
    storage_endpoint: Optional[str] = Field(default=None)
    storage_region: str = Field(default="us-east-1")
    storage_access_key_id: Optional[str] = Field(default=None)
    storage_secret_access_key: Optional[str] = Field(default=None)
    # Project URL used to build public object URLs
    public_storage_url: str = Field(default="")

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # Queue (Redis)
    redis_url: Optional[str] = Field(default=None)
    redis_queue_key: str = Field(default="cms:notifications")

    # Web3Forms email relay
    web3forms_access_key: Optional[str] = Field(default=None)
    web3forms_url: str = Field(default="https://api.web3forms.com/submit")

    # Admin access
    admin_api_token: Optional[str] = Field(default=None)
    admin_panel_url: str = Field(default="http://localhost:3000/admin")

    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    privacy_contact_email: str = Field(default="info@chroniclesexhibits.com")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
