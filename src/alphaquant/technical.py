from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from alphaquant.domain.models import IndicatorPoint, PriceBar
from alphaquant.indicators import (
    adx,
    atr,
    bollinger_bands,
    cci,
    ema,
    macd,
    obv,
    parabolic_sar,
    rsi,
    sma,
    stochastic,
    support_resistance,
    volume_sma,
    vwap,
    williams_r,
)
from alphaquant.signals import (
    MovingAverageCross,
    ZoneSignal,
    detect_ma_crossover,
    detect_rsi_signal,
    latest_pair,
)

logger = logging.getLogger(__name__)

MIN_SNAPSHOT_BARS = 50
LONG_WINDOW = 200


class TrendSignal(StrEnum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class OverallSignal(StrEnum):
    STRONG_BUY = "strong_buy"
    BUY = "buy"
    HOLD = "hold"
    SELL = "sell"
    STRONG_SELL = "strong_sell"


@dataclass(slots=True, frozen=True)
class MacdReading:
    value: float
    signal: float
    histogram: float


@dataclass(slots=True, frozen=True)
class BollingerReading:
    upper: float
    middle: float
    lower: float
    width: float


@dataclass(slots=True, frozen=True)
class StochasticReading:
    k: float
    d: float


@dataclass(slots=True, frozen=True)
class AdxReading:
    adx: float
    plus_di: float
    minus_di: float


@dataclass(slots=True, frozen=True)
class SarReading:
    value: float
    trend: str


@dataclass(slots=True, frozen=True)
class TechnicalSnapshot:
    """Latest value of every indicator. None marks a reading without enough history."""

    price: float
    sma20: float | None
    sma50: float | None
    sma200: float | None
    ema20: float | None
    ema50: float | None
    ema200: float | None
    rsi: float | None
    macd: MacdReading | None
    bollinger: BollingerReading | None
    stochastic: StochasticReading | None
    williams_r: float | None
    atr: float | None
    adx: AdxReading | None
    cci: float | None
    obv: float | None
    vwap: float | None
    parabolic_sar: SarReading | None
    volume_sma: float | None
    trend_signal: TrendSignal
    overall_signal: OverallSignal
    support_levels: tuple[float, ...] = ()
    resistance_levels: tuple[float, ...] = ()
    # previous-bar MAs, kept for crossover messages
    prev_sma50: float | None = None
    prev_sma200: float | None = None


def determine_trend_signal(
    price: float,
    sma50: float | None,
    sma200: float | None,
    macd_histogram: float | None,
) -> TrendSignal:
    bullish = 0
    bearish = 0
    for average in (sma50, sma200):
        if average is None:
            continue
        if price > average:
            bullish += 1
        else:
            bearish += 1
    if macd_histogram is not None:
        if macd_histogram > 0:
            bullish += 1
        else:
            bearish += 1

    if bullish > bearish:
        return TrendSignal.BULLISH
    if bearish > bullish:
        return TrendSignal.BEARISH
    return TrendSignal.NEUTRAL


def determine_overall_signal(
    rsi_value: float | None,
    macd_histogram: float | None,
    trend: TrendSignal,
) -> OverallSignal:
    score = 0
    if rsi_value is not None:
        if rsi_value < 30:
            score += 2
        elif rsi_value < 40:
            score += 1
        elif rsi_value > 70:
            score -= 2
        elif rsi_value > 60:
            score -= 1

    if macd_histogram is not None:
        score += 1 if macd_histogram > 0 else -1

    if trend is TrendSignal.BULLISH:
        score += 1
    elif trend is TrendSignal.BEARISH:
        score -= 1

    if score >= 3:
        return OverallSignal.STRONG_BUY
    if score >= 1:
        return OverallSignal.BUY
    if score <= -3:
        return OverallSignal.STRONG_SELL
    if score <= -1:
        return OverallSignal.SELL
    return OverallSignal.HOLD


def evaluate_snapshot(
    bars: Sequence[PriceBar],
    *,
    min_bars: int = MIN_SNAPSHOT_BARS,
) -> TechnicalSnapshot | None:
    if len(bars) < min_bars:
        logger.info("Indicators unavailable: %s bars, need %s", len(bars), min_bars)
        return None

    price = bars[-1].close
    sma50_points = sma(bars, 50)
    sma200_points = sma(bars, LONG_WINDOW) if len(bars) >= LONG_WINDOW else []
    ema200_points = ema(bars, LONG_WINDOW) if len(bars) >= LONG_WINDOW else []

    macd_result = macd(bars)
    macd_reading = None
    if macd_result.histogram:
        macd_reading = MacdReading(
            value=macd_result.macd[-1].value,
            signal=macd_result.signal[-1].value,
            histogram=macd_result.histogram[-1].value,
        )

    bands = bollinger_bands(bars)
    bollinger_reading = None
    if bands.middle:
        upper, middle, lower = bands.upper[-1].value, bands.middle[-1].value, bands.lower[-1].value
        bollinger_reading = BollingerReading(upper, middle, lower, width=upper - lower)

    stoch = stochastic(bars)
    stochastic_reading = None
    if stoch.d:
        stochastic_reading = StochasticReading(k=stoch.k[-1].value, d=stoch.d[-1].value)

    directional = adx(bars)
    adx_reading = None
    if directional.adx:
        adx_reading = AdxReading(
            adx=directional.adx[-1].value,
            plus_di=directional.plus_di[-1].value,
            minus_di=directional.minus_di[-1].value,
        )

    sar_points = parabolic_sar(bars)
    sar_reading = None
    if sar_points:
        sar_reading = SarReading(value=sar_points[-1].value, trend=sar_points[-1].tag or "")

    levels = support_resistance(bars)
    sma50 = _last(sma50_points)
    sma200 = _last(sma200_points)
    rsi_value = _last(rsi(bars))
    histogram = macd_reading.histogram if macd_reading is not None else None
    trend = determine_trend_signal(price, sma50, sma200, histogram)
    overall = determine_overall_signal(rsi_value, histogram, trend)

    logger.debug(
        "Snapshot for %s bars: trend=%s overall=%s",
        len(bars),
        trend,
        overall,
    )
    return TechnicalSnapshot(
        price=price,
        sma20=_last(sma(bars, 20)),
        sma50=sma50,
        sma200=sma200,
        ema20=_last(ema(bars, 20)),
        ema50=_last(ema(bars, 50)),
        ema200=_last(ema200_points),
        rsi=rsi_value,
        macd=macd_reading,
        bollinger=bollinger_reading,
        stochastic=stochastic_reading,
        williams_r=_last(williams_r(bars)),
        atr=_last(atr(bars)),
        adx=adx_reading,
        cci=_last(cci(bars)),
        obv=_last(obv(bars)),
        vwap=_last(vwap(bars)),
        parabolic_sar=sar_reading,
        volume_sma=_last(volume_sma(bars)),
        trend_signal=trend,
        overall_signal=overall,
        support_levels=levels.support,
        resistance_levels=levels.resistance,
        prev_sma50=_previous(sma50_points),
        prev_sma200=_previous(sma200_points),
    )


def describe_snapshot(snapshot: TechnicalSnapshot) -> list[str]:
    """Human-readable notes on the RSI, MACD and moving-average readings."""
    messages: list[str] = []

    if snapshot.rsi is not None:
        reading = detect_rsi_signal(snapshot.rsi)
        if reading.type is ZoneSignal.OVERBOUGHT:
            messages.append(f"RSI overbought at {snapshot.rsi:.1f}")
        elif reading.type is ZoneSignal.OVERSOLD:
            messages.append(f"RSI oversold at {snapshot.rsi:.1f}")
        else:
            messages.append(f"RSI neutral at {snapshot.rsi:.1f}")

    if snapshot.macd is not None:
        if snapshot.macd.histogram > 0:
            messages.append("MACD above signal line (bullish momentum)")
        else:
            messages.append("MACD below signal line (bearish momentum)")

    if snapshot.sma50 is not None and snapshot.sma200 is not None:
        if snapshot.prev_sma50 is not None and snapshot.prev_sma200 is not None:
            cross = detect_ma_crossover(
                snapshot.sma50,
                snapshot.sma200,
                snapshot.prev_sma50,
                snapshot.prev_sma200,
            )
            if cross.type is MovingAverageCross.GOLDEN_CROSS:
                messages.append("Golden cross: SMA50 crossed above SMA200")
            elif cross.type is MovingAverageCross.DEATH_CROSS:
                messages.append("Death cross: SMA50 crossed below SMA200")
        if snapshot.sma50 > snapshot.sma200:
            messages.append("SMA50 above SMA200 (long-term uptrend)")
        else:
            messages.append("SMA50 below SMA200 (long-term downtrend)")
    elif snapshot.sma50 is not None:
        side = "above" if snapshot.price > snapshot.sma50 else "below"
        messages.append(f"Price {side} SMA50")

    return messages


def _last(points: Sequence[IndicatorPoint]) -> float | None:
    return points[-1].value if points else None


def _previous(points: Sequence[IndicatorPoint]) -> float | None:
    pair = latest_pair(points)
    return pair[0] if pair is not None else None
