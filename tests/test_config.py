from __future__ import annotations

import pytest

from alphaquant.config import Settings
from alphaquant.data.cached_provider import CachedProvider
from alphaquant.data.yfinance_provider import YFinanceProvider


def test_settings_defaults_are_valid() -> None:
    settings = Settings()
    assert settings.min_snapshot_bars == 50
    assert settings.periods_per_year == 252
    assert settings.max_sector_pct == 25
    assert settings.deadband_pct == 1.0
    assert settings.deadband_min_value == 100
    assert settings.commission_per_trade == 0
    assert settings.drift_threshold_pct == 5
    assert 0 < settings.var_confidence < 1
    assert settings.benchmark_symbol is None


def test_settings_read_prefixed_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALPHAQ_MAX_SECTOR_PCT", "30")
    monkeypatch.setenv("ALPHAQ_BENCHMARK_SYMBOL", "  ")
    settings = Settings()
    assert settings.max_sector_pct == 30
    assert settings.benchmark_symbol is None


def test_settings_reject_out_of_range_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALPHAQ_VAR_CONFIDENCE", "1.5")
    with pytest.raises(ValueError):
        Settings()


def test_rebalance_config_mirrors_settings() -> None:
    settings = Settings(deadband_pct=2.0, commission_per_trade=1.0)
    config = settings.rebalance_config()
    assert config.deadband_pct == 2.0
    assert config.commission_per_trade == 1.0
    assert config.max_sector_pct == settings.max_sector_pct
    assert settings.rebalance_config(max_sector_pct=40).max_sector_pct == 40


def test_wrap_provider_honours_cache_ttl() -> None:
    provider = YFinanceProvider()
    assert isinstance(Settings().wrap_provider(provider), CachedProvider)
    assert Settings(cache_ttl_seconds=0).wrap_provider(provider) is provider
