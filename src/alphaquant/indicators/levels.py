from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import pandas as pd

from alphaquant.domain.models import PriceBar
from alphaquant.indicators.base import bar_frame, require_period


@dataclass(slots=True, frozen=True)
class PriceLevels:
    support: tuple[float, ...] = ()
    resistance: tuple[float, ...] = ()


def support_resistance(
    bars: Sequence[PriceBar],
    window: int = 10,
    max_levels: int = 5,
) -> PriceLevels:
    """Swing lows and highs that are extreme within ``window`` bars on each side.

    Support levels are listed highest first and resistance levels lowest first,
    so the levels nearest a price in the middle of the range come first.
    """
    window = require_period("window", window)
    max_levels = require_period("max_levels", max_levels)
    if len(bars) < 2 * window:
        return PriceLevels()

    frame = bar_frame(bars)
    span = 2 * window + 1
    lowest = frame["low"].rolling(span, center=True).min()
    highest = frame["high"].rolling(span, center=True).max()

    swing_lows = frame["low"][frame["low"] == lowest]
    swing_highs = frame["high"][frame["high"] == highest]
    return PriceLevels(
        support=_distinct(swing_lows, descending=True)[:max_levels],
        resistance=_distinct(swing_highs, descending=False)[:max_levels],
    )


def _distinct(values: pd.Series, *, descending: bool) -> tuple[float, ...]:
    unique = sorted({float(value) for value in values}, reverse=descending)
    return tuple(unique)
