from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from alphaquant.domain.models import IndicatorPoint

RSI_OVERBOUGHT = 70.0
RSI_OVERSOLD = 30.0
STOCH_OVERBOUGHT = 80.0
STOCH_OVERSOLD = 20.0
ADX_STRONG_TREND = 40.0
ADX_WEAK_TREND = 20.0
CCI_OVERBOUGHT = 100.0
CCI_OVERSOLD = -100.0
WILLIAMS_OVERBOUGHT = -20.0
WILLIAMS_OVERSOLD = -80.0
VOLUME_SURGE_RATIO = 1.5


class ZoneSignal(StrEnum):
    OVERBOUGHT = "overbought"
    OVERSOLD = "oversold"
    NEUTRAL = "neutral"


class CrossoverSignal(StrEnum):
    BULLISH_CROSSOVER = "bullish_crossover"
    BEARISH_CROSSOVER = "bearish_crossover"
    NEUTRAL = "neutral"


class MovingAverageCross(StrEnum):
    GOLDEN_CROSS = "golden_cross"
    DEATH_CROSS = "death_cross"
    NEUTRAL = "neutral"


class StochasticSignalType(StrEnum):
    OVERBOUGHT = "overbought"
    OVERSOLD = "oversold"
    BULLISH_CROSSOVER = "bullish_crossover"
    BEARISH_CROSSOVER = "bearish_crossover"
    NEUTRAL = "neutral"


class TrendStrength(StrEnum):
    STRONG_TREND = "strong_trend"
    WEAK_TREND = "weak_trend"
    NO_TREND = "no_trend"


class Direction(StrEnum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class BandPosition(StrEnum):
    ABOVE_UPPER = "price_above_upper"
    BELOW_LOWER = "price_below_lower"
    INSIDE = "inside"


@dataclass(slots=True, frozen=True)
class RsiSignal:
    type: ZoneSignal
    value: float
    threshold: float


@dataclass(slots=True, frozen=True)
class MacdSignal:
    type: CrossoverSignal
    macd_value: float
    signal_value: float


@dataclass(slots=True, frozen=True)
class MovingAverageSignal:
    type: MovingAverageCross
    fast_ma: float
    slow_ma: float


@dataclass(slots=True, frozen=True)
class StochasticSignal:
    type: StochasticSignalType
    k_value: float
    d_value: float


@dataclass(slots=True, frozen=True)
class AdxSignal:
    type: TrendStrength
    adx_value: float
    trend_direction: Direction


@dataclass(slots=True, frozen=True)
class OscillatorSignal:
    type: ZoneSignal
    value: float


def detect_rsi_signal(
    value: float,
    overbought: float = RSI_OVERBOUGHT,
    oversold: float = RSI_OVERSOLD,
) -> RsiSignal:
    if value >= overbought:
        return RsiSignal(ZoneSignal.OVERBOUGHT, value, overbought)
    if value <= oversold:
        return RsiSignal(ZoneSignal.OVERSOLD, value, oversold)
    return RsiSignal(ZoneSignal.NEUTRAL, value, 50.0)


def detect_macd_crossover(
    macd_value: float,
    signal_value: float,
    prev_macd: float,
    prev_signal: float,
) -> MacdSignal:
    cross = _crossover(macd_value, signal_value, prev_macd, prev_signal)
    if cross > 0:
        return MacdSignal(CrossoverSignal.BULLISH_CROSSOVER, macd_value, signal_value)
    if cross < 0:
        return MacdSignal(CrossoverSignal.BEARISH_CROSSOVER, macd_value, signal_value)
    return MacdSignal(CrossoverSignal.NEUTRAL, macd_value, signal_value)


def detect_ma_crossover(
    fast: float,
    slow: float,
    prev_fast: float,
    prev_slow: float,
) -> MovingAverageSignal:
    cross = _crossover(fast, slow, prev_fast, prev_slow)
    if cross > 0:
        return MovingAverageSignal(MovingAverageCross.GOLDEN_CROSS, fast, slow)
    if cross < 0:
        return MovingAverageSignal(MovingAverageCross.DEATH_CROSS, fast, slow)
    return MovingAverageSignal(MovingAverageCross.NEUTRAL, fast, slow)


def detect_stochastic_signal(
    k_value: float,
    d_value: float,
    prev_k: float | None = None,
    prev_d: float | None = None,
    overbought: float = STOCH_OVERBOUGHT,
    oversold: float = STOCH_OVERSOLD,
) -> StochasticSignal:
    if k_value >= overbought and d_value >= overbought:
        return StochasticSignal(StochasticSignalType.OVERBOUGHT, k_value, d_value)
    if k_value <= oversold and d_value <= oversold:
        return StochasticSignal(StochasticSignalType.OVERSOLD, k_value, d_value)

    if prev_k is not None and prev_d is not None:
        cross = _crossover(k_value, d_value, prev_k, prev_d)
        if cross > 0:
            return StochasticSignal(StochasticSignalType.BULLISH_CROSSOVER, k_value, d_value)
        if cross < 0:
            return StochasticSignal(StochasticSignalType.BEARISH_CROSSOVER, k_value, d_value)
    return StochasticSignal(StochasticSignalType.NEUTRAL, k_value, d_value)


def detect_adx_signal(adx_value: float, plus_di: float, minus_di: float) -> AdxSignal:
    if plus_di > minus_di:
        direction = Direction.BULLISH
    elif minus_di > plus_di:
        direction = Direction.BEARISH
    else:
        direction = Direction.NEUTRAL

    if adx_value > ADX_STRONG_TREND:
        strength = TrendStrength.STRONG_TREND
    elif adx_value >= ADX_WEAK_TREND:
        strength = TrendStrength.WEAK_TREND
    else:
        strength = TrendStrength.NO_TREND
    return AdxSignal(strength, adx_value, direction)


def detect_cci_signal(value: float) -> OscillatorSignal:
    if value > CCI_OVERBOUGHT:
        return OscillatorSignal(ZoneSignal.OVERBOUGHT, value)
    if value < CCI_OVERSOLD:
        return OscillatorSignal(ZoneSignal.OVERSOLD, value)
    return OscillatorSignal(ZoneSignal.NEUTRAL, value)


def detect_williams_r_signal(value: float) -> OscillatorSignal:
    if value >= WILLIAMS_OVERBOUGHT:
        return OscillatorSignal(ZoneSignal.OVERBOUGHT, value)
    if value <= WILLIAMS_OVERSOLD:
        return OscillatorSignal(ZoneSignal.OVERSOLD, value)
    return OscillatorSignal(ZoneSignal.NEUTRAL, value)


def detect_bollinger_signal(price: float, upper: float, lower: float) -> BandPosition:
    if price > upper:
        return BandPosition.ABOVE_UPPER
    if price < lower:
        return BandPosition.BELOW_LOWER
    return BandPosition.INSIDE


def detect_volume_surge(
    volume: float | None,
    average_volume: float | None,
    ratio: float = VOLUME_SURGE_RATIO,
) -> bool:
    if not volume or not average_volume:
        return False
    return volume >= average_volume * ratio


def latest_pair(points: Sequence[IndicatorPoint]) -> tuple[float, float] | None:
    """Return ``(previous, current)`` values, or None with fewer than two points."""
    if len(points) < 2:
        return None
    return points[-2].value, points[-1].value


def _crossover(current_fast: float, current_slow: float, prev_fast: float, prev_slow: float) -> int:
    if prev_fast <= prev_slow and current_fast > current_slow:
        return 1
    if prev_fast >= prev_slow and current_fast < current_slow:
        return -1
    return 0
