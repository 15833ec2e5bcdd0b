from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from alphaquant.domain.models import PriceBar
from alphaquant.errors import ParameterError
from alphaquant.indicators import (
    AdxParams,
    AdxResult,
    AtrParams,
    BollingerParams,
    MacdParams,
    MacdResult,
    ObvParams,
    RsiParams,
    StochasticParams,
    StochasticResult,
    compute,
    min_bars,
    parse_params,
    rsi,
)


def _bars(n: int) -> list[PriceBar]:
    start = datetime(2026, 1, 1)
    return [
        PriceBar(
            timestamp=start + timedelta(days=i),
            open=100 + i,
            high=101 + i + (i % 3),
            low=99 + i - (i % 2),
            close=100 + i + (i % 4) * 0.5,
            volume=1_000.0 + i,
        )
        for i in range(n)
    ]


def _primary(result: object) -> list:
    if isinstance(result, list):
        return result
    if isinstance(result, MacdResult):
        return result.signal
    if isinstance(result, StochasticResult):
        return result.k
    if isinstance(result, AdxResult):
        return result.adx
    return result.middle  # type: ignore[attr-defined]


def test_parse_params_builds_the_tagged_variant() -> None:
    params = parse_params({"kind": "rsi", "period": "10"})
    assert isinstance(params, RsiParams)
    assert params.period == 10

    default_macd = parse_params({"kind": "macd"})
    assert isinstance(default_macd, MacdParams)
    assert (default_macd.fast_period, default_macd.slow_period) == (12, 26)


def test_parse_params_rejects_bad_input() -> None:
    with pytest.raises(ParameterError, match="fast_period must be < slow_period"):
        parse_params({"kind": "macd", "fast_period": 26, "slow_period": 12})
    with pytest.raises(ParameterError, match="period"):
        parse_params({"kind": "sma", "period": 0})
    with pytest.raises(ParameterError):
        parse_params({"kind": "unknown"})
    with pytest.raises(ParameterError):
        parse_params({"kind": "rsi", "std_dev": 2})


def test_param_models_validate_on_construction() -> None:
    with pytest.raises(ValueError):
        RsiParams(period=-1)
    with pytest.raises(ValueError):
        BollingerParams(std_dev=0)


def test_param_models_are_frozen() -> None:
    params = RsiParams(period=5)
    with pytest.raises(ValueError):
        params.period = 6  # type: ignore[misc]


def test_compute_dispatches_to_indicator() -> None:
    bars = _bars(30)
    assert compute(bars, RsiParams(period=5)) == rsi(bars, 5)
    assert len(compute(bars, ObvParams())) == 30  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "params",
    [
        RsiParams(period=5),
        AtrParams(period=5),
        AdxParams(period=4),
        MacdParams(fast_period=3, slow_period=6, signal_period=4),
        StochasticParams(k_period=5, d_period=3),
        BollingerParams(period=6),
        ObvParams(),
    ],
)
def test_min_bars_is_the_shortest_productive_history(params: object) -> None:
    needed = min_bars(params)  # type: ignore[arg-type]
    assert _primary(compute(_bars(needed), params))  # type: ignore[arg-type]
    assert not _primary(compute(_bars(needed - 1), params))  # type: ignore[arg-type]
