from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime

import numpy as np
import pandas as pd

from alphaquant.domain.models import IndicatorPoint, PriceBar
from alphaquant.errors import ParameterError

OHLCV_COLUMNS = ["open", "high", "low", "close", "volume"]


def require_period(name: str, value: int) -> int:
    if isinstance(value, bool) or int(value) != value:
        raise ParameterError(f"{name} must be an integer")
    if value <= 0:
        raise ParameterError(f"{name} must be greater than zero")
    return int(value)


def bar_frame(bars: Sequence[PriceBar]) -> pd.DataFrame:
    """Positional OHLCV frame; timestamps stay on the bars themselves."""
    return pd.DataFrame(
        {
            "open": [bar.open for bar in bars],
            "high": [bar.high for bar in bars],
            "low": [bar.low for bar in bars],
            "close": [bar.close for bar in bars],
            "volume": [bar.volume for bar in bars],
        },
        columns=OHLCV_COLUMNS,
        dtype=float,
    )


def to_points(
    bars: Sequence[PriceBar],
    values: pd.Series,
    tagger: Callable[[float], str] | None = None,
) -> list[IndicatorPoint]:
    """Pair a positionally indexed series with the timestamps of its bars."""
    points: list[IndicatorPoint] = []
    for position, value in values.items():
        timestamp: datetime = bars[int(position)].timestamp
        number = float(value)
        points.append(
            IndicatorPoint(
                timestamp=timestamp,
                value=number,
                tag=tagger(number) if tagger is not None else None,
            )
        )
    return points


def seeded_smoothing(values: pd.Series, period: int, alpha: float) -> pd.Series:
    """Recursive smoothing seeded with the simple mean of the first ``period`` values.

    ``alpha = 2 / (period + 1)`` gives the EMA and ``alpha = 1 / period`` gives
    Wilder smoothing. The result keeps the labels of ``values`` and starts at
    the label of the ``period``-th value.
    """
    if len(values) < period:
        return pd.Series(dtype=float)
    seeded = values.iloc[period - 1 :].astype(float).copy()
    seeded.iloc[0] = float(values.iloc[:period].mean())
    return seeded.ewm(alpha=alpha, adjust=False).mean()


def wilder(values: pd.Series, period: int) -> pd.Series:
    return seeded_smoothing(values, period, alpha=1.0 / period)


def true_range(frame: pd.DataFrame) -> pd.Series:
    """True range for every bar after the first."""
    prev_close = frame["close"].shift(1)
    ranges = pd.concat(
        [
            frame["high"] - frame["low"],
            (frame["high"] - prev_close).abs(),
            (frame["low"] - prev_close).abs(),
        ],
        axis=1,
    )
    return ranges.max(axis=1).iloc[1:]


def safe_ratio(numerator: pd.Series, denominator: pd.Series, default: float) -> pd.Series:
    ratio = numerator / denominator.where(denominator != 0, np.nan)
    return ratio.where(denominator != 0, default)


def typical_price(frame: pd.DataFrame) -> pd.Series:
    return (frame["high"] + frame["low"] + frame["close"]) / 3
