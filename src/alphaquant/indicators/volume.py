from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from alphaquant.domain.models import IndicatorPoint, PriceBar
from alphaquant.indicators.base import (
    bar_frame,
    require_period,
    safe_ratio,
    to_points,
    typical_price,
)


def obv(bars: Sequence[PriceBar]) -> list[IndicatorPoint]:
    """On-balance volume seeded with the first bar's volume."""
    if not bars:
        return []
    frame = bar_frame(bars)
    direction = np.sign(frame["close"].diff().fillna(0.0))
    flow = direction * frame["volume"]
    flow.iloc[0] = frame["volume"].iloc[0]
    return to_points(bars, flow.cumsum())


def vwap(bars: Sequence[PriceBar]) -> list[IndicatorPoint]:
    """Cumulative VWAP over the whole sequence.

    Session resets are the caller's job: pass one session's bars at a time.
    Until any volume has traded the typical price is reported.
    """
    if not bars:
        return []
    frame = bar_frame(bars)
    typical = typical_price(frame)
    cumulative_volume = frame["volume"].cumsum()
    values = safe_ratio((typical * frame["volume"]).cumsum(), cumulative_volume, default=np.nan)
    return to_points(bars, values.fillna(typical))


def volume_sma(bars: Sequence[PriceBar], period: int = 20) -> list[IndicatorPoint]:
    period = require_period("period", period)
    if len(bars) < period:
        return []
    volume = bar_frame(bars)["volume"]
    return to_points(bars, volume.rolling(period).mean().iloc[period - 1 :])
