from alphaquant.indicators.levels import PriceLevels, support_resistance
from alphaquant.indicators.momentum import StochasticResult, cci, rsi, stochastic, williams_r
from alphaquant.indicators.params import (
    AdxParams,
    AtrParams,
    BollingerParams,
    CciParams,
    EmaParams,
    IndicatorOutput,
    IndicatorParams,
    MacdParams,
    ObvParams,
    ParabolicSarParams,
    RsiParams,
    SmaParams,
    StochasticParams,
    SupportResistanceParams,
    VolumeSmaParams,
    VwapParams,
    WilliamsRParams,
    compute,
    min_bars,
    parse_params,
)
from alphaquant.indicators.trend import (
    AdxResult,
    MacdResult,
    SarState,
    SarTrend,
    adx,
    ema,
    initial_sar_state,
    macd,
    parabolic_sar,
    sma,
    step_sar,
)
from alphaquant.indicators.volatility import BollingerBands, atr, bollinger_bands
from alphaquant.indicators.volume import obv, volume_sma, vwap

__all__ = [
    "AdxParams",
    "AdxResult",
    "AtrParams",
    "BollingerBands",
    "BollingerParams",
    "CciParams",
    "EmaParams",
    "IndicatorOutput",
    "IndicatorParams",
    "MacdParams",
    "MacdResult",
    "ObvParams",
    "ParabolicSarParams",
    "PriceLevels",
    "RsiParams",
    "SarState",
    "SarTrend",
    "SmaParams",
    "StochasticParams",
    "StochasticResult",
    "SupportResistanceParams",
    "VolumeSmaParams",
    "VwapParams",
    "WilliamsRParams",
    "adx",
    "atr",
    "bollinger_bands",
    "cci",
    "compute",
    "ema",
    "initial_sar_state",
    "macd",
    "min_bars",
    "obv",
    "parabolic_sar",
    "parse_params",
    "rsi",
    "sma",
    "stochastic",
    "step_sar",
    "support_resistance",
    "volume_sma",
    "vwap",
    "williams_r",
]
