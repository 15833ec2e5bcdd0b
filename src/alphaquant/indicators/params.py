from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from alphaquant.domain.models import IndicatorPoint, PriceBar
from alphaquant.errors import ParameterError
from alphaquant.indicators import levels, momentum, trend, volatility, volume
from alphaquant.indicators.levels import PriceLevels
from alphaquant.indicators.momentum import StochasticResult
from alphaquant.indicators.trend import AdxResult, MacdResult
from alphaquant.indicators.volatility import BollingerBands


class _IndicatorParams(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class SmaParams(_IndicatorParams):
    kind: Literal["sma"] = "sma"
    period: int = Field(default=20, gt=0)


class EmaParams(_IndicatorParams):
    kind: Literal["ema"] = "ema"
    period: int = Field(default=20, gt=0)


class BollingerParams(_IndicatorParams):
    kind: Literal["bollinger"] = "bollinger"
    period: int = Field(default=20, gt=0)
    std_dev: float = Field(default=2.0, gt=0)


class RsiParams(_IndicatorParams):
    kind: Literal["rsi"] = "rsi"
    period: int = Field(default=14, gt=0)


class MacdParams(_IndicatorParams):
    kind: Literal["macd"] = "macd"
    fast_period: int = Field(default=12, gt=0)
    slow_period: int = Field(default=26, gt=0)
    signal_period: int = Field(default=9, gt=0)

    @model_validator(mode="after")
    def _check_windows(self) -> MacdParams:
        if self.fast_period >= self.slow_period:
            raise ValueError("fast_period must be < slow_period")
        return self


class StochasticParams(_IndicatorParams):
    kind: Literal["stochastic"] = "stochastic"
    k_period: int = Field(default=14, gt=0)
    d_period: int = Field(default=3, gt=0)


class AtrParams(_IndicatorParams):
    kind: Literal["atr"] = "atr"
    period: int = Field(default=14, gt=0)


class AdxParams(_IndicatorParams):
    kind: Literal["adx"] = "adx"
    period: int = Field(default=14, gt=0)


class CciParams(_IndicatorParams):
    kind: Literal["cci"] = "cci"
    period: int = Field(default=20, gt=0)


class WilliamsRParams(_IndicatorParams):
    kind: Literal["williams_r"] = "williams_r"
    period: int = Field(default=14, gt=0)


class ParabolicSarParams(_IndicatorParams):
    kind: Literal["parabolic_sar"] = "parabolic_sar"
    accel_step: float = Field(default=0.02, gt=0)
    accel_max: float = Field(default=0.2, gt=0)

    @model_validator(mode="after")
    def _check_acceleration(self) -> ParabolicSarParams:
        if self.accel_max < self.accel_step:
            raise ValueError("accel_max must be >= accel_step")
        return self


class ObvParams(_IndicatorParams):
    kind: Literal["obv"] = "obv"


class VwapParams(_IndicatorParams):
    kind: Literal["vwap"] = "vwap"


class VolumeSmaParams(_IndicatorParams):
    kind: Literal["volume_sma"] = "volume_sma"
    period: int = Field(default=20, gt=0)


class SupportResistanceParams(_IndicatorParams):
    kind: Literal["support_resistance"] = "support_resistance"
    window: int = Field(default=10, gt=0)
    max_levels: int = Field(default=5, gt=0)


IndicatorParams = Annotated[
    SmaParams
    | EmaParams
    | BollingerParams
    | RsiParams
    | MacdParams
    | StochasticParams
    | AtrParams
    | AdxParams
    | CciParams
    | WilliamsRParams
    | ParabolicSarParams
    | ObvParams
    | VwapParams
    | VolumeSmaParams
    | SupportResistanceParams,
    Field(discriminator="kind"),
]

IndicatorOutput = (
    list[IndicatorPoint]
    | BollingerBands
    | MacdResult
    | StochasticResult
    | AdxResult
    | PriceLevels
)

_ADAPTER: TypeAdapter[IndicatorParams] = TypeAdapter(IndicatorParams)


def parse_params(data: Mapping[str, object]) -> IndicatorParams:
    try:
        return _ADAPTER.validate_python(dict(data))
    except ValidationError as exc:
        raise ParameterError(_describe(exc)) from exc


def compute(bars: Sequence[PriceBar], params: IndicatorParams) -> IndicatorOutput:
    match params:
        case SmaParams(period=period):
            return trend.sma(bars, period)
        case EmaParams(period=period):
            return trend.ema(bars, period)
        case BollingerParams(period=period, std_dev=std_dev):
            return volatility.bollinger_bands(bars, period, std_dev)
        case RsiParams(period=period):
            return momentum.rsi(bars, period)
        case MacdParams():
            return trend.macd(bars, params.fast_period, params.slow_period, params.signal_period)
        case StochasticParams(k_period=k_period, d_period=d_period):
            return momentum.stochastic(bars, k_period, d_period)
        case AtrParams(period=period):
            return volatility.atr(bars, period)
        case AdxParams(period=period):
            return trend.adx(bars, period)
        case CciParams(period=period):
            return momentum.cci(bars, period)
        case WilliamsRParams(period=period):
            return momentum.williams_r(bars, period)
        case ParabolicSarParams(accel_step=accel_step, accel_max=accel_max):
            return trend.parabolic_sar(bars, accel_step, accel_max)
        case ObvParams():
            return volume.obv(bars)
        case VwapParams():
            return volume.vwap(bars)
        case VolumeSmaParams(period=period):
            return volume.volume_sma(bars, period)
        case SupportResistanceParams(window=window, max_levels=max_levels):
            return levels.support_resistance(bars, window, max_levels)
    raise ParameterError(f"Unsupported indicator parameters: {params!r}")


def min_bars(params: IndicatorParams) -> int:
    """Shortest history that yields at least one output point."""
    match params:
        case RsiParams(period=period) | AtrParams(period=period):
            return period + 1
        case AdxParams(period=period):
            return (2 * period) + 1
        case MacdParams():
            return params.slow_period + params.signal_period - 1
        case StochasticParams(k_period=k_period):
            return k_period
        case ObvParams() | VwapParams() | ParabolicSarParams():
            return 1
        case SupportResistanceParams(window=window):
            return (2 * window) + 1
        case (
            SmaParams(period=period)
            | EmaParams(period=period)
            | BollingerParams(period=period)
            | CciParams(period=period)
            | WilliamsRParams(period=period)
            | VolumeSmaParams(period=period)
        ):
            return period
    raise ParameterError(f"Unsupported indicator parameters: {params!r}")


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        message = str(error["msg"]).removeprefix("Value error, ")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)
