"""Application configuration using pydantic-settings.

Read settings through ``get_settings()``; values come from the environment
or a local .env file.
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # Document store - "sql" keeps documents as JSON rows, "firestore" talks to Cloud Firestore
    store_backend: Literal["sql", "firestore"] = "sql"

    # Database for the sql store backend
    database_url: str = "sqlite:///./data/coffeeos.db"

    # Firestore backend
    firebase_credentials_path: Optional[str] = None
    firebase_project_id: Optional[str] = None

    # CORS - comma-separated origins or "*" for development only
    cors_origins: str = "http://localhost:3000,http://localhost:9002"

    # ==========================================================================
    # Forecast oracle (hosted language model)
    # ==========================================================================
    forecast_api_url: str = "https://generativelanguage.googleapis.com/v1beta"
    forecast_api_key: str = ""
    forecast_model: str = "gemini-2.0-flash"
    forecast_timeout_seconds: float = 60.0
    forecast_max_days: int = 365

    # ==========================================================================
    # Point of sale
    # ==========================================================================
    default_tax_rate: float = 0.08
    default_service_charge_rate: float = 0.0
    currency: str = "USD"

    # Live order subscriptions (seconds between store polls)
    subscription_poll_interval: float = 1.0

    # Server
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # API
    api_v1_prefix: str = "/api/v1"

    # Rate limiting
    rate_limit_enabled: bool = True
    rate_limit_requests: int = 100  # requests per window
    rate_limit_window: int = 60  # window in seconds

    @field_validator("default_tax_rate", "default_service_charge_rate")
    @classmethod
    def validate_rate(cls, v: float) -> float:
        if v < 0 or v > 1:
            raise ValueError(f"rate must be between 0 and 1, got {v}")
        return v

    @field_validator("subscription_poll_interval")
    @classmethod
    def validate_poll_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("subscription_poll_interval must be positive")
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list, filtering localhost in production."""
        if self.cors_origins == "*":
            return ["*"]

        origins = [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

        # Filter out localhost origins in production mode
        if not self.debug:
            localhost_patterns = ["localhost", "127.0.0.1", "0.0.0.0"]
            origins = [o for o in origins if not any(p in o for p in localhost_patterns)]

        return origins

    @property
    def forecast_configured(self) -> bool:
        return bool(self.forecast_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
