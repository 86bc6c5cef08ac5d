"""
Application Configuration

All settings loaded from environment variables.
"""

from functools import lru_cache
from typing import Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Application
    app_name: str = "Crypto Advisor Backend"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 3001

    # Database (any SQLAlchemy async URL; SQLite file under ./data by default)
    database_url: Optional[str] = None
    sqlite_path: Optional[str] = None

    # CORS (dashboard URL)
    allowed_origins: list[str] = ["http://localhost:5173"]

    # Market data providers
    binance_futures_base_url: str = "https://fapi.binance.com"
    binance_quote_asset: str = "USDT"
    tradingview_scanner_url: str = "https://scanner.tradingview.com/america/scan"
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    http_user_agent: str = "CryptoTrader-Bot/1.0"

    # Timeouts (seconds)
    candle_timeout_seconds: float = 10.0
    quote_timeout_seconds: float = 8.0
    ping_timeout_seconds: float = 5.0

    # Rate limiting pauses (seconds)
    evaluation_pause_seconds: float = 0.5
    quote_pause_seconds: float = 0.3

    # Evaluation rules
    expiry_days: int = 30
    hold_min_days: int = 7
    hold_tolerance_percent: float = 10.0

    # Scheduler (UTC hours at which pending recommendations are evaluated)
    enable_scheduler: bool = True
    evaluation_hours_utc: list[int] = [3, 7, 11, 15, 19, 23]

    # Symbols used when the dashboard asks for a default watchlist
    default_symbols: list[str] = ["BTC", "ETH", "SOL", "ADA"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("evaluation_hours_utc")
    @classmethod
    def check_evaluation_hours(cls, hours: list[int]) -> list[int]:
        if not hours:
            raise ValueError("evaluation_hours_utc needs at least one hour")
        invalid = [h for h in hours if not 0 <= h <= 23]
        if invalid:
            raise ValueError(f"evaluation_hours_utc must be within 0-23, got {invalid}")
        return sorted(set(hours))


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
