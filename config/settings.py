"""
Environment-driven settings shared by the API server and the selection client.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Settings read from the environment, then .env.

    SUPABASE_URL and SUPABASE_KEY are required; everything else has a
    development default.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(..., description="Project URL")
    supabase_key: str = Field(..., description="Anon key, used with the caller's token")
    supabase_service_key: Optional[str] = Field(
        None,
        description="Service role key, only for role backfill writes"
    )

    # ===================
    # SELECTION CLIENT
    # ===================
    api_base_url: str = Field(
        default="http://localhost:8000/api",
        description="Where HttpSelectionStore sends requests"
    )
    notification_dismiss_seconds: float = Field(
        default=3.0,
        gt=0,
        le=60,
        description="How long a banner stays up"
    )
    selection_request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Bound on one store call made by a toggle"
    )

    # ===================
    # SERVER
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$"
    )
    debug: bool = Field(default=True, description="Expose /docs and error details")
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$"
    )
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8000, ge=1000, le=65535)
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Frontend origins"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Load settings once.

    Raises:
        ValidationError: If SUPABASE_URL or SUPABASE_KEY is missing
    """
    return Settings()


settings = get_settings()
