from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from alphaquant.cache import TTLCache
from alphaquant.data.base import MarketDataProvider
from alphaquant.data.cached_provider import CachedProvider
from alphaquant.rebalancing import RebalanceConfig


class Settings(BaseSettings):
    """Environment-backed runtime settings."""

    app_name: str = "AlphaQuant"
    env: str = "dev"
    log_level: str = "INFO"
    default_symbol: str = "SPY"
    data_dir: Path = Path("data")
    benchmark_symbol: str | None = None

    min_snapshot_bars: int = Field(default=50, gt=0)
    periods_per_year: int = Field(default=252, gt=0)
    var_confidence: float = Field(default=0.95, gt=0, lt=1)

    max_sector_pct: float = Field(default=25.0, gt=0, le=100)
    deadband_pct: float = Field(default=1.0, ge=0)
    deadband_min_value: float = Field(default=100.0, ge=0)
    commission_per_trade: float = Field(default=0.0, ge=0)
    drift_threshold_pct: float = Field(default=5.0, ge=0)

    cache_ttl_seconds: float = Field(default=300.0, ge=0)

    @field_validator("benchmark_symbol", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    model_config = SettingsConfigDict(
        env_prefix="ALPHAQ_",
        env_file=".env",
        env_file_encoding="utf-8-sig",
        extra="ignore",
    )

    def rebalance_config(self, max_sector_pct: float | None = None) -> RebalanceConfig:
        return RebalanceConfig(
            deadband_pct=self.deadband_pct,
            deadband_min_value=self.deadband_min_value,
            commission_per_trade=self.commission_per_trade,
            max_sector_pct=self.max_sector_pct if max_sector_pct is None else max_sector_pct,
        )

    def wrap_provider(self, provider: MarketDataProvider) -> MarketDataProvider:
        """Put a TTL cache in front of ``provider``; a zero TTL disables caching."""
        if self.cache_ttl_seconds <= 0:
            return provider
        return CachedProvider(provider, TTLCache(self.cache_ttl_seconds))
