"""Application configuration via pydantic settings."""

from functools import lru_cache
from pathlib import Path

from typing import Any

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed application configuration."""

    app_env: str = Field("local", alias="APP_ENV")
    app_name: str = "Sliding Pricing API"
    api_v1_prefix: str = "/api/v1"
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    database_url: str = Field(
        "sqlite+aiosqlite:///./sliding_pricing.db", alias="DATABASE_URL"
    )
    sync_database_url: str | None = Field(default=None, alias="SYNC_DATABASE_URL")

    pricing_stack_rules: bool = Field(True, alias="PRICING_STACK_RULES")
    pricing_max_discount_percent: int = Field(
        50, ge=0, le=100, alias="PRICING_MAX_DISCOUNT_PERCENT"
    )
    pricing_show_original: bool = Field(True, alias="PRICING_SHOW_ORIGINAL")
    pricing_show_savings: bool = Field(True, alias="PRICING_SHOW_SAVINGS")
    pricing_daily_capacity: int = Field(10, gt=0, alias="PRICING_DAILY_CAPACITY")
    pricing_quote_cache_seconds: float = Field(
        60.0, ge=0, alias="PRICING_QUOTE_CACHE_SECONDS"
    )

    cors_allowlist: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"], alias="CORS_ALLOWLIST"
    )

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[2] / ".env",
        case_sensitive=False,
        populate_by_name=True,
    )

    @field_validator("cors_allowlist", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()  # type: ignore[call-arg]
