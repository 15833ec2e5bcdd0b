from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum

import pandas as pd

from alphaquant.domain.models import IndicatorPoint, PriceBar
from alphaquant.errors import ParameterError
from alphaquant.indicators.base import (
    bar_frame,
    require_period,
    safe_ratio,
    seeded_smoothing,
    to_points,
    true_range,
    wilder,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class MacdResult:
    macd: list[IndicatorPoint] = field(default_factory=list)
    signal: list[IndicatorPoint] = field(default_factory=list)
    histogram: list[IndicatorPoint] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class AdxResult:
    adx: list[IndicatorPoint] = field(default_factory=list)
    plus_di: list[IndicatorPoint] = field(default_factory=list)
    minus_di: list[IndicatorPoint] = field(default_factory=list)


class SarTrend(StrEnum):
    UP = "up"
    DOWN = "down"


@dataclass(slots=True, frozen=True)
class SarState:
    trend: SarTrend
    sar: float
    extreme_point: float
    accel_factor: float


def sma(bars: Sequence[PriceBar], period: int) -> list[IndicatorPoint]:
    period = require_period("period", period)
    if len(bars) < period:
        return []
    close = bar_frame(bars)["close"]
    return to_points(bars, close.rolling(period).mean().iloc[period - 1 :])


def ema(bars: Sequence[PriceBar], period: int) -> list[IndicatorPoint]:
    period = require_period("period", period)
    close = bar_frame(bars)["close"]
    return to_points(bars, _ema_series(close, period))


def macd(
    bars: Sequence[PriceBar],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MacdResult:
    fast_period = require_period("fast_period", fast_period)
    slow_period = require_period("slow_period", slow_period)
    signal_period = require_period("signal_period", signal_period)
    if fast_period >= slow_period:
        raise ParameterError("fast_period must be < slow_period")
    if len(bars) < slow_period:
        return MacdResult()

    close = bar_frame(bars)["close"]
    fast = _ema_series(close, fast_period)
    slow = _ema_series(close, slow_period)
    line = fast.loc[slow.index] - slow
    signal = _ema_series(line, signal_period)
    if signal.empty:
        return MacdResult(macd=to_points(bars, line))

    histogram = line.loc[signal.index] - signal
    return MacdResult(
        macd=to_points(bars, line),
        signal=to_points(bars, signal),
        histogram=to_points(bars, histogram, tagger=_histogram_tag),
    )


def adx(bars: Sequence[PriceBar], period: int = 14) -> AdxResult:
    """Average directional index with +DI/-DI.

    +DI/-DI start at bar ``period``; ADX is seeded with the mean of the first
    ``period`` DX values and first reported at bar ``2 * period``.
    """
    period = require_period("period", period)
    if len(bars) < (2 * period) + 1:
        return AdxResult()

    frame = bar_frame(bars)
    up_move = frame["high"].diff().iloc[1:]
    down_move = -frame["low"].diff().iloc[1:]
    plus_dm = up_move.where((up_move > down_move) & (up_move > 0), 0.0)
    minus_dm = down_move.where((down_move > up_move) & (down_move > 0), 0.0)

    smoothed_tr = wilder(true_range(frame), period)
    plus_di = safe_ratio(wilder(plus_dm, period) * 100, smoothed_tr, default=0.0)
    minus_di = safe_ratio(wilder(minus_dm, period) * 100, smoothed_tr, default=0.0)
    dx = safe_ratio((plus_di - minus_di).abs() * 100, plus_di + minus_di, default=0.0)
    average = wilder(dx, period).iloc[1:]

    return AdxResult(
        adx=to_points(bars, average),
        plus_di=to_points(bars, plus_di),
        minus_di=to_points(bars, minus_di),
    )


def parabolic_sar(
    bars: Sequence[PriceBar],
    accel_step: float = 0.02,
    accel_max: float = 0.2,
) -> list[IndicatorPoint]:
    if accel_step <= 0:
        raise ParameterError("accel_step must be greater than zero")
    if accel_max < accel_step:
        raise ParameterError("accel_max must be >= accel_step")
    if not bars:
        return []

    state = initial_sar_state(bars[0], accel_step)
    points = [_sar_point(bars[0], state)]
    for bar in bars[1:]:
        state = step_sar(state, bar, accel_step, accel_max)
        points.append(_sar_point(bar, state))
    return points


def initial_sar_state(bar: PriceBar, accel_step: float) -> SarState:
    return SarState(
        trend=SarTrend.UP,
        sar=bar.low,
        extreme_point=bar.high,
        accel_factor=accel_step,
    )


def step_sar(state: SarState, bar: PriceBar, accel_step: float, accel_max: float) -> SarState:
    sar = state.sar + state.accel_factor * (state.extreme_point - state.sar)

    if state.trend is SarTrend.UP:
        if bar.low < sar:
            logger.debug("SAR reversal to downtrend at %s", bar.timestamp)
            return SarState(SarTrend.DOWN, state.extreme_point, bar.low, accel_step)
        if bar.high > state.extreme_point:
            accel = min(state.accel_factor + accel_step, accel_max)
            return SarState(SarTrend.UP, sar, bar.high, accel)
        return SarState(SarTrend.UP, sar, state.extreme_point, state.accel_factor)

    if bar.high > sar:
        logger.debug("SAR reversal to uptrend at %s", bar.timestamp)
        return SarState(SarTrend.UP, state.extreme_point, bar.high, accel_step)
    if bar.low < state.extreme_point:
        accel = min(state.accel_factor + accel_step, accel_max)
        return SarState(SarTrend.DOWN, sar, bar.low, accel)
    return SarState(SarTrend.DOWN, sar, state.extreme_point, state.accel_factor)


def _ema_series(values: pd.Series, period: int) -> pd.Series:
    return seeded_smoothing(values, period, alpha=2.0 / (period + 1))


def _histogram_tag(value: float) -> str:
    return "positive" if value >= 0 else "negative"


def _sar_point(bar: PriceBar, state: SarState) -> IndicatorPoint:
    return IndicatorPoint(timestamp=bar.timestamp, value=state.sar, tag=str(state.trend))
