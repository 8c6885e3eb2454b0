"""Application configuration using pydantic settings with structured sections."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    url: str = Field(default="sqlite+aiosqlite:///./finance_tracker.db", alias="url")
    echo: bool = False
    pool_size: Optional[int] = None
    max_overflow: Optional[int] = None
    operation_timeout_seconds: float = Field(default=10.0, gt=0)


class BillingSettings(BaseModel):
    default_currency: str = Field(default="USD", min_length=3, max_length=3)
    sweep_batch_size: int = Field(default=500, ge=1)
    sweep_interval_seconds: int = Field(default=60 * 60, ge=1)
    recorder_timeout_seconds: float = Field(default=10.0, gt=0)


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    """Top-level application settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    project_name: str = "Finance Tracker Ledger"

    database: DatabaseSettings = DatabaseSettings()
    billing: BillingSettings = BillingSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def database_url(self) -> str:
        return self.database.url

    @property
    def store_timeout(self) -> float:
        return self.database.operation_timeout_seconds

    @property
    def recorder_timeout(self) -> float:
        return self.billing.recorder_timeout_seconds


@lru_cache()
def get_settings() -> Settings:
    return Settings()
