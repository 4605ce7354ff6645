"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from cardwise.domain.models import RoundingPolicy


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="CARDWISE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Database
    database_url: str = "sqlite:///./cardwise.db"

    # Service
    service_name: str = "cardwise"
    log_level: str = "INFO"

    # Scheduling
    base_currency: str = "IDR"
    reminder_lookahead_days: int = 7
    installment_rounding: RoundingPolicy = RoundingPolicy.CEILING


settings = Settings()
