from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from alphaquant.domain.models import PriceBar
from alphaquant.errors import ParameterError
from alphaquant.indicators import (
    PriceLevels,
    SupportResistanceParams,
    compute,
    parse_params,
    support_resistance,
)


def _bars(lows: list[float], spread: float = 2.0) -> list[PriceBar]:
    start = datetime(2026, 1, 1)
    return [
        PriceBar(
            timestamp=start + timedelta(days=i),
            open=low + spread / 2,
            high=low + spread,
            low=low,
            close=low + spread / 2,
            volume=1_000.0,
        )
        for i, low in enumerate(lows)
    ]


def test_single_trough_is_the_only_support() -> None:
    bars = _bars([50.0 + abs(i - 20) for i in range(41)])
    levels = support_resistance(bars)
    assert levels == PriceLevels(support=(50.0,), resistance=())


def test_single_peak_is_the_only_resistance() -> None:
    bars = _bars([148.0 - abs(i - 20) for i in range(41)])
    levels = support_resistance(bars)
    assert levels.resistance == (150.0,)
    assert levels.support == ()


def test_supports_are_distinct_sorted_and_capped() -> None:
    depths = [1, 7, 3, 9, 5, 2, 8]
    lows = [100.0 + abs((i % 22) - 11) - depths[i // 22] for i in range(22 * len(depths))]
    bars = _bars(lows)

    assert support_resistance(bars).support == (99.0, 98.0, 97.0, 95.0, 93.0)
    assert support_resistance(bars, max_levels=2).support == (99.0, 98.0)


def test_repeated_swing_lows_collapse_to_one_level() -> None:
    lows = [100.0 + abs((i % 22) - 11) for i in range(66)]
    assert support_resistance(_bars(lows)).support == (100.0,)


def test_short_history_has_no_levels() -> None:
    bars = _bars([50.0 + abs(i - 10) for i in range(19)])
    assert support_resistance(bars) == PriceLevels()


def test_levels_validate_parameters() -> None:
    with pytest.raises(ParameterError, match="window must be greater than zero"):
        support_resistance(_bars([1.0] * 30), window=0)
    with pytest.raises(ParameterError, match="max_levels"):
        parse_params({"kind": "support_resistance", "max_levels": 0})


def test_levels_dispatch_through_params() -> None:
    bars = _bars([50.0 + abs(i - 20) for i in range(41)])
    params = parse_params({"kind": "support_resistance", "window": "5"})
    assert isinstance(params, SupportResistanceParams)
    assert compute(bars, params) == support_resistance(bars, window=5)
