from __future__ import annotations

import logging
from datetime import datetime, timedelta

import pytest

from alphaquant.domain.models import PriceBar
from alphaquant.technical import (
    OverallSignal,
    TrendSignal,
    describe_snapshot,
    determine_overall_signal,
    determine_trend_signal,
    evaluate_snapshot,
)


def _bars(closes: list[float]) -> list[PriceBar]:
    start = datetime(2026, 1, 1)
    return [
        PriceBar(
            timestamp=start + timedelta(days=i),
            open=close,
            high=close * 1.01,
            low=close * 0.99,
            close=close,
            volume=1_000.0 + i,
        )
        for i, close in enumerate(closes)
    ]


def _growth(n: int, rate: float) -> list[float]:
    return [100 * (1 + rate) ** i for i in range(n)]


def test_trend_signal_majority_vote() -> None:
    assert determine_trend_signal(100, 90, None, None) is TrendSignal.BULLISH
    assert determine_trend_signal(100, 90, 110, None) is TrendSignal.NEUTRAL
    assert determine_trend_signal(100, 110, 120, 0.5) is TrendSignal.BEARISH
    assert determine_trend_signal(100, None, None, None) is TrendSignal.NEUTRAL


@pytest.mark.parametrize(
    ("rsi_value", "histogram", "trend", "expected"),
    [
        (25, 0.5, TrendSignal.BULLISH, OverallSignal.STRONG_BUY),
        (35, None, TrendSignal.NEUTRAL, OverallSignal.BUY),
        (50, None, TrendSignal.NEUTRAL, OverallSignal.HOLD),
        (65, None, TrendSignal.NEUTRAL, OverallSignal.SELL),
        (75, -0.5, TrendSignal.BEARISH, OverallSignal.STRONG_SELL),
        (None, 0.5, TrendSignal.NEUTRAL, OverallSignal.BUY),
    ],
)
def test_overall_signal_scoring(
    rsi_value: float | None,
    histogram: float | None,
    trend: TrendSignal,
    expected: OverallSignal,
) -> None:
    assert determine_overall_signal(rsi_value, histogram, trend) is expected


def test_snapshot_unavailable_below_minimum(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO):
        assert evaluate_snapshot(_bars(_growth(49, 0.01))) is None
    assert "Indicators unavailable" in caplog.text


def test_snapshot_of_steady_uptrend() -> None:
    bars = _bars(_growth(60, 0.01))
    snapshot = evaluate_snapshot(bars)

    assert snapshot is not None
    assert snapshot.price == bars[-1].close
    assert snapshot.sma200 is None
    assert snapshot.ema200 is None
    assert snapshot.sma50 is not None and snapshot.sma20 is not None
    assert snapshot.rsi == 100.0
    assert snapshot.macd is not None and snapshot.macd.histogram > 0
    assert snapshot.bollinger is not None
    assert snapshot.bollinger.upper >= snapshot.bollinger.middle >= snapshot.bollinger.lower
    assert snapshot.bollinger.width == pytest.approx(
        snapshot.bollinger.upper - snapshot.bollinger.lower
    )
    assert snapshot.adx is not None
    assert snapshot.parabolic_sar is not None and snapshot.parabolic_sar.trend == "up"
    assert snapshot.trend_signal is TrendSignal.BULLISH
    # overbought RSI (-2) offsets MACD (+1) and trend (+1)
    assert snapshot.overall_signal is OverallSignal.HOLD


def test_snapshot_of_geometric_decline_has_rising_macd() -> None:
    snapshot = evaluate_snapshot(_bars(_growth(60, -0.01)))
    assert snapshot is not None
    assert snapshot.rsi == pytest.approx(0.0)
    # the MACD line shrinks toward zero, so the histogram stays positive
    assert snapshot.macd is not None and snapshot.macd.histogram > 0
    assert snapshot.trend_signal is TrendSignal.NEUTRAL
    assert snapshot.overall_signal is OverallSignal.STRONG_BUY


def test_snapshot_of_accelerating_decline() -> None:
    snapshot = evaluate_snapshot(_bars([100 - 0.02 * i * i for i in range(60)]))
    assert snapshot is not None
    assert snapshot.rsi == pytest.approx(0.0)
    assert snapshot.macd is not None and snapshot.macd.histogram < 0
    assert snapshot.trend_signal is TrendSignal.BEARISH
    assert snapshot.overall_signal is OverallSignal.HOLD


def test_snapshot_lists_swing_levels() -> None:
    snapshot = evaluate_snapshot(_bars([100 + abs(i - 30) for i in range(60)]))

    assert snapshot is not None
    assert snapshot.support_levels == pytest.approx((99.0,))
    assert snapshot.resistance_levels == ()


def test_long_history_fills_200_bar_averages() -> None:
    snapshot = evaluate_snapshot(_bars(_growth(210, 0.002)))
    assert snapshot is not None
    assert snapshot.sma200 is not None
    assert snapshot.ema200 is not None
    assert snapshot.prev_sma200 is not None


def test_min_bars_is_configurable() -> None:
    assert evaluate_snapshot(_bars(_growth(60, 0.01)), min_bars=100) is None


def test_describe_snapshot_messages() -> None:
    snapshot = evaluate_snapshot(_bars(_growth(210, 0.002)))
    assert snapshot is not None
    messages = describe_snapshot(snapshot)
    assert "RSI overbought at 100.0" in messages
    assert "MACD above signal line (bullish momentum)" in messages
    assert "SMA50 above SMA200 (long-term uptrend)" in messages
