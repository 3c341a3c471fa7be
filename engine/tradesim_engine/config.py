"""
Configuration management for the tradesim engine.

Uses pydantic-settings for type-safe environment variable handling.
Every setting can be overridden with a TRADESIM_-prefixed variable or a .env file.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tradesim_engine.domain.product import ProductType


class AppEnvironment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Backtest defaults here seed EngineConfig.from_settings().
    """

    model_config = SettingsConfigDict(
        env_prefix="TRADESIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    env: AppEnvironment = Field(
        default=AppEnvironment.DEVELOPMENT,
        description="Application environment",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    json_logs: bool = Field(
        default=False,
        description="Emit JSON formatted log lines",
    )

    # Backtest defaults
    initial_capital: float = Field(
        default=1_000_000.0,
        gt=0,
        description="Starting capital for a backtest run",
    )
    slippage_pct: float = Field(
        default=0.001,
        ge=0,
        le=0.1,
        description="Slippage per fill as a fraction (0.001 = 0.1%)",
    )
    product: ProductType = Field(
        default=ProductType.CNC,
        description="Margin regime: CNC (delivery), MIS (intraday), NRML (carry-forward)",
    )
    risk_free_rate: float = Field(
        default=0.065,
        ge=0,
        le=1,
        description="Annual risk-free rate used for Sharpe/Sortino",
    )
    benchmark_name: str = Field(
        default="NIFTY 50",
        description="Display name of the benchmark series",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v

    def get_redacted_config(self) -> dict[str, str | float | bool]:
        """
        Get configuration dict safe for logging.
        """
        return {
            "env": self.env.value,
            "log_level": self.log_level,
            "json_logs": self.json_logs,
            "initial_capital": self.initial_capital,
            "slippage_pct": self.slippage_pct,
            "product": self.product.value,
            "risk_free_rate": self.risk_free_rate,
            "benchmark_name": self.benchmark_name,
        }


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure single instance throughout application.
    """
    return Settings()
