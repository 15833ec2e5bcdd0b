from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from alphaquant.domain.models import IndicatorPoint, PriceBar
from alphaquant.indicators.base import (
    bar_frame,
    require_period,
    safe_ratio,
    to_points,
    typical_price,
    wilder,
)

CCI_CONSTANT = 0.015


@dataclass(slots=True, frozen=True)
class StochasticResult:
    k: list[IndicatorPoint] = field(default_factory=list)
    d: list[IndicatorPoint] = field(default_factory=list)


def rsi(bars: Sequence[PriceBar], period: int = 14) -> list[IndicatorPoint]:
    """Wilder RSI. A zero average loss reads as 100."""
    period = require_period("period", period)
    if len(bars) < period + 1:
        return []

    change = bar_frame(bars)["close"].diff().iloc[1:]
    avg_gain = wilder(change.clip(lower=0.0), period)
    avg_loss = wilder((-change).clip(lower=0.0), period)
    relative_strength = safe_ratio(avg_gain, avg_loss, default=np.inf)
    values = 100.0 - (100.0 / (1.0 + relative_strength))
    return to_points(bars, values.clip(0.0, 100.0))


def stochastic(
    bars: Sequence[PriceBar],
    k_period: int = 14,
    d_period: int = 3,
) -> StochasticResult:
    k_period = require_period("k_period", k_period)
    d_period = require_period("d_period", d_period)
    if len(bars) < k_period:
        return StochasticResult()

    frame = bar_frame(bars)
    highest = frame["high"].rolling(k_period).max()
    lowest = frame["low"].rolling(k_period).min()
    k = safe_ratio((frame["close"] - lowest) * 100, highest - lowest, default=50.0)
    k = k.iloc[k_period - 1 :].clip(0.0, 100.0)
    d = k.rolling(d_period).mean().iloc[d_period - 1 :]
    return StochasticResult(k=to_points(bars, k), d=to_points(bars, d))


def williams_r(bars: Sequence[PriceBar], period: int = 14) -> list[IndicatorPoint]:
    period = require_period("period", period)
    if len(bars) < period:
        return []

    frame = bar_frame(bars)
    highest = frame["high"].rolling(period).max()
    lowest = frame["low"].rolling(period).min()
    values = safe_ratio((highest - frame["close"]) * -100, highest - lowest, default=-50.0)
    return to_points(bars, values.iloc[period - 1 :].clip(-100.0, 0.0))


def cci(bars: Sequence[PriceBar], period: int = 20) -> list[IndicatorPoint]:
    period = require_period("period", period)
    if len(bars) < period:
        return []

    frame = bar_frame(bars)
    typical = typical_price(frame)
    window = typical.rolling(period)
    mean = window.mean()
    deviation = window.apply(_mean_absolute_deviation, raw=True)
    values = safe_ratio(typical - mean, deviation * CCI_CONSTANT, default=0.0)
    return to_points(bars, values.iloc[period - 1 :])


def _mean_absolute_deviation(window: np.ndarray) -> float:
    return float(np.abs(window - window.mean()).mean())
