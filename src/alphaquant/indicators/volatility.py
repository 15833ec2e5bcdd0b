from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from alphaquant.domain.models import IndicatorPoint, PriceBar
from alphaquant.errors import ParameterError
from alphaquant.indicators.base import bar_frame, require_period, to_points, true_range, wilder


@dataclass(slots=True, frozen=True)
class BollingerBands:
    upper: list[IndicatorPoint] = field(default_factory=list)
    middle: list[IndicatorPoint] = field(default_factory=list)
    lower: list[IndicatorPoint] = field(default_factory=list)


def bollinger_bands(
    bars: Sequence[PriceBar],
    period: int = 20,
    std_dev: float = 2.0,
) -> BollingerBands:
    period = require_period("period", period)
    if std_dev <= 0:
        raise ParameterError("std_dev must be greater than zero")
    if len(bars) < period:
        return BollingerBands()

    window = bar_frame(bars)["close"].rolling(period)
    middle = window.mean().iloc[period - 1 :]
    band = std_dev * window.std(ddof=0).iloc[period - 1 :].clip(lower=0.0)
    return BollingerBands(
        upper=to_points(bars, middle + band),
        middle=to_points(bars, middle),
        lower=to_points(bars, middle - band),
    )


def atr(bars: Sequence[PriceBar], period: int = 14) -> list[IndicatorPoint]:
    period = require_period("period", period)
    if len(bars) < period + 1:
        return []
    return to_points(bars, wilder(true_range(bar_frame(bars)), period))
