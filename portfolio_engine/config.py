"""Application configuration."""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = "sqlite:///./portfolio.db"

    # Local store used when there is no authenticated user
    local_store_dir: str = "./.portfolio"

    # Currency
    display_currency: str = "BRL"
    fallback_usd_rate: Decimal = Decimal("5.85")
    exchange_rate_cache_seconds: int = 300

    # Reference indexes for floating-rate fixed income (% a.a.), used when the
    # central bank API is unavailable
    cdi_rate: Decimal = Decimal("12.25")
    ipca_rate: Decimal = Decimal("4.5")
    economic_rates_cache_seconds: int = 3600

    # Reject sells larger than the held quantity instead of emptying the position
    strict_oversell: bool = False

    # Application
    log_level: str = "INFO"
    debug: bool = True

    # CORS
    allowed_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )


settings = Settings()
