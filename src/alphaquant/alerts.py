from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from threading import Lock
from time import monotonic
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from alphaquant.data.base import MarketDataProvider
from alphaquant.domain.models import PriceBar
from alphaquant.errors import ParameterError
from alphaquant.indicators import (
    BollingerParams,
    MacdParams,
    RsiParams,
    StochasticParams,
    bollinger_bands,
    ema,
    macd,
    rsi,
    sma,
    stochastic,
)
from alphaquant.signals import (
    RSI_OVERBOUGHT,
    RSI_OVERSOLD,
    STOCH_OVERBOUGHT,
    STOCH_OVERSOLD,
    BandPosition,
    CrossoverSignal,
    MovingAverageCross,
    StochasticSignalType,
    ZoneSignal,
    detect_bollinger_signal,
    detect_ma_crossover,
    detect_macd_crossover,
    detect_rsi_signal,
    detect_stochastic_signal,
    latest_pair,
)

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_MINUTES = 60.0


class AlertIndicator(StrEnum):
    RSI = "rsi"
    MACD = "macd"
    STOCHASTIC = "stochastic"
    MA_CROSSOVER = "ma_crossover"
    BOLLINGER_BANDS = "bollinger_bands"


class AlertCondition(StrEnum):
    OVERBOUGHT = "overbought"
    OVERSOLD = "oversold"
    BULLISH_CROSSOVER = "bullish_crossover"
    BEARISH_CROSSOVER = "bearish_crossover"
    CROSSES_ABOVE = "crosses_above"
    CROSSES_BELOW = "crosses_below"
    PRICE_ABOVE_UPPER = "price_above_upper"
    PRICE_BELOW_LOWER = "price_below_lower"


class MovingAverageCrossParams(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["ma_crossover"] = "ma_crossover"
    fast_period: int = Field(default=50, gt=0)
    slow_period: int = Field(default=200, gt=0)
    average: Literal["sma", "ema"] = "sma"

    @model_validator(mode="after")
    def _check_windows(self) -> MovingAverageCrossParams:
        if self.fast_period >= self.slow_period:
            raise ValueError("fast_period must be < slow_period")
        return self


AlertParams = (
    RsiParams | MacdParams | StochasticParams | MovingAverageCrossParams | BollingerParams
)

_RULE_SHAPES: dict[AlertIndicator, tuple[type[BaseModel], frozenset[AlertCondition]]] = {
    AlertIndicator.RSI: (
        RsiParams,
        frozenset({AlertCondition.OVERBOUGHT, AlertCondition.OVERSOLD}),
    ),
    AlertIndicator.MACD: (
        MacdParams,
        frozenset({AlertCondition.BULLISH_CROSSOVER, AlertCondition.BEARISH_CROSSOVER}),
    ),
    AlertIndicator.STOCHASTIC: (
        StochasticParams,
        frozenset(
            {
                AlertCondition.OVERBOUGHT,
                AlertCondition.OVERSOLD,
                AlertCondition.BULLISH_CROSSOVER,
                AlertCondition.BEARISH_CROSSOVER,
            }
        ),
    ),
    AlertIndicator.MA_CROSSOVER: (
        MovingAverageCrossParams,
        frozenset({AlertCondition.CROSSES_ABOVE, AlertCondition.CROSSES_BELOW}),
    ),
    AlertIndicator.BOLLINGER_BANDS: (
        BollingerParams,
        frozenset({AlertCondition.PRICE_ABOVE_UPPER, AlertCondition.PRICE_BELOW_LOWER}),
    ),
}


@dataclass(slots=True, frozen=True)
class AlertRule:
    """Indicator condition to watch on one symbol.

    ``params`` defaults to the indicator's standard windows. ``overbought`` and
    ``oversold`` override the RSI and Stochastic zone levels.
    """

    symbol: str
    indicator: AlertIndicator
    condition: AlertCondition
    params: AlertParams | None = None
    overbought: float | None = None
    oversold: float | None = None
    repeat: bool = False
    cooldown_minutes: float = DEFAULT_COOLDOWN_MINUTES

    def __post_init__(self) -> None:
        if not self.symbol.strip():
            raise ParameterError("symbol must be non-empty")
        try:
            indicator = AlertIndicator(self.indicator)
            condition = AlertCondition(self.condition)
        except ValueError as exc:
            raise ParameterError(str(exc)) from exc
        object.__setattr__(self, "indicator", indicator)
        object.__setattr__(self, "condition", condition)

        params_type, conditions = _RULE_SHAPES[indicator]
        if condition not in conditions:
            allowed = ", ".join(sorted(conditions))
            raise ParameterError(
                f"Condition '{condition}' does not apply to {indicator}; expected one of: {allowed}"
            )
        if self.params is None:
            object.__setattr__(self, "params", params_type())
        elif not isinstance(self.params, params_type):
            raise ParameterError(f"{indicator} alerts take {params_type.__name__}")

        if self.cooldown_minutes < 0:
            raise ParameterError("cooldown_minutes must be non-negative")
        if (
            self.overbought is not None
            and self.oversold is not None
            and self.oversold >= self.overbought
        ):
            raise ParameterError("oversold must be below overbought")


@dataclass(slots=True, frozen=True)
class AlertResult:
    triggered: bool
    current_value: float | None = None
    message: str | None = None


@dataclass(slots=True, frozen=True)
class AlertEvent:
    symbol: str
    indicator: AlertIndicator
    condition: AlertCondition
    current_value: float | None
    message: str
    triggered_at: float
    trigger_count: int


def evaluate_alert(bars: Sequence[PriceBar], rule: AlertRule) -> AlertResult:
    """Check ``rule`` against the latest bars. Too little history never triggers."""
    match rule.params:
        case RsiParams(period=period):
            return _check_rsi(bars, rule, period)
        case MacdParams():
            return _check_macd(bars, rule, rule.params)
        case StochasticParams(k_period=k_period, d_period=d_period):
            return _check_stochastic(bars, rule, k_period, d_period)
        case MovingAverageCrossParams():
            return _check_ma_crossover(bars, rule, rule.params)
        case BollingerParams(period=period, std_dev=std_dev):
            return _check_bollinger(bars, rule, period, std_dev)
    raise ParameterError(f"Unsupported alert parameters: {rule.params!r}")


class AlertMonitor:
    """Evaluates rules and holds back repeats until each rule's cooldown passes.

    A rule fires once; with ``repeat`` set it may fire again after
    ``cooldown_minutes``.
    """

    def __init__(self, clock: Callable[[], float] = monotonic) -> None:
        self._clock = clock
        self._fired: dict[AlertRule, _FiredState] = {}
        self._lock = Lock()

    def should_trigger(self, rule: AlertRule) -> bool:
        now = self._clock()
        with self._lock:
            return self._ready(rule, now)

    def check(self, bars: Sequence[PriceBar], rule: AlertRule) -> AlertEvent | None:
        result = evaluate_alert(bars, rule)
        if not result.triggered:
            return None

        now = self._clock()
        with self._lock:
            if not self._ready(rule, now):
                logger.info("Alert %s %s met but cooling down", rule.symbol, rule.condition)
                return None
            previous = self._fired.get(rule)
            count = (previous.count if previous is not None else 0) + 1
            self._fired[rule] = _FiredState(triggered_at=now, count=count)

        logger.info("Alert triggered for %s: %s", rule.symbol, result.message)
        return AlertEvent(
            symbol=rule.symbol,
            indicator=rule.indicator,
            condition=rule.condition,
            current_value=result.current_value,
            message=result.message or "",
            triggered_at=now,
            trigger_count=count,
        )

    def scan(
        self,
        provider: MarketDataProvider,
        rules: Iterable[AlertRule],
        period: str = "1y",
    ) -> list[AlertEvent]:
        """Fetch each symbol once and check every rule that watches it."""
        by_symbol: dict[str, list[AlertRule]] = {}
        for rule in rules:
            by_symbol.setdefault(rule.symbol.strip().upper(), []).append(rule)

        events: list[AlertEvent] = []
        for symbol, symbol_rules in by_symbol.items():
            bars = provider.fetch_bars(symbol, period=period)
            for rule in symbol_rules:
                event = self.check(bars, rule)
                if event is not None:
                    events.append(event)
        logger.info("Scanned %s symbols, %s alerts triggered", len(by_symbol), len(events))
        return events

    def _ready(self, rule: AlertRule, now: float) -> bool:
        state = self._fired.get(rule)
        if state is None:
            return True
        if not rule.repeat:
            return False
        return now - state.triggered_at >= rule.cooldown_minutes * 60


@dataclass(slots=True)
class _FiredState:
    triggered_at: float
    count: int = 0


def _check_rsi(bars: Sequence[PriceBar], rule: AlertRule, period: int) -> AlertResult:
    points = rsi(bars, period)
    if not points:
        return AlertResult(triggered=False)

    overbought = rule.overbought if rule.overbought is not None else RSI_OVERBOUGHT
    oversold = rule.oversold if rule.oversold is not None else RSI_OVERSOLD
    current = points[-1].value
    zone = detect_rsi_signal(current, overbought, oversold).type

    message = None
    if rule.condition is AlertCondition.OVERBOUGHT and zone is ZoneSignal.OVERBOUGHT:
        message = f"RSI is overbought at {current:.2f} (threshold: {overbought:g})"
    elif rule.condition is AlertCondition.OVERSOLD and zone is ZoneSignal.OVERSOLD:
        message = f"RSI is oversold at {current:.2f} (threshold: {oversold:g})"
    return AlertResult(triggered=message is not None, current_value=current, message=message)


def _check_macd(bars: Sequence[PriceBar], rule: AlertRule, params: MacdParams) -> AlertResult:
    result = macd(bars, params.fast_period, params.slow_period, params.signal_period)
    macd_pair = latest_pair(result.macd)
    signal_pair = latest_pair(result.signal)
    if macd_pair is None or signal_pair is None:
        return AlertResult(triggered=False)

    (prev_macd, current_macd), (prev_signal, current_signal) = macd_pair, signal_pair
    cross = detect_macd_crossover(current_macd, current_signal, prev_macd, prev_signal).type
    values = f"(MACD: {current_macd:.2f}, Signal: {current_signal:.2f})"

    message = None
    if (
        rule.condition is AlertCondition.BULLISH_CROSSOVER
        and cross is CrossoverSignal.BULLISH_CROSSOVER
    ):
        message = f"MACD bullish crossover detected {values}"
    elif (
        rule.condition is AlertCondition.BEARISH_CROSSOVER
        and cross is CrossoverSignal.BEARISH_CROSSOVER
    ):
        message = f"MACD bearish crossover detected {values}"
    return AlertResult(triggered=message is not None, current_value=current_macd, message=message)


def _check_stochastic(
    bars: Sequence[PriceBar],
    rule: AlertRule,
    k_period: int,
    d_period: int,
) -> AlertResult:
    result = stochastic(bars, k_period, d_period)
    k_pair = latest_pair(result.k)
    d_pair = latest_pair(result.d)
    if k_pair is None or d_pair is None:
        return AlertResult(triggered=False)

    (prev_k, current_k), (prev_d, current_d) = k_pair, d_pair
    signal = detect_stochastic_signal(
        current_k,
        current_d,
        prev_k,
        prev_d,
        overbought=rule.overbought if rule.overbought is not None else STOCH_OVERBOUGHT,
        oversold=rule.oversold if rule.oversold is not None else STOCH_OVERSOLD,
    ).type
    values = f"(%K: {current_k:.2f}, %D: {current_d:.2f})"

    messages = {
        (AlertCondition.OVERBOUGHT, StochasticSignalType.OVERBOUGHT): (
            f"Stochastic is overbought {values}"
        ),
        (AlertCondition.OVERSOLD, StochasticSignalType.OVERSOLD): (
            f"Stochastic is oversold {values}"
        ),
        (AlertCondition.BULLISH_CROSSOVER, StochasticSignalType.BULLISH_CROSSOVER): (
            "Stochastic bullish crossover detected (%K crossed above %D)"
        ),
        (AlertCondition.BEARISH_CROSSOVER, StochasticSignalType.BEARISH_CROSSOVER): (
            "Stochastic bearish crossover detected (%K crossed below %D)"
        ),
    }
    message = messages.get((rule.condition, signal))
    return AlertResult(triggered=message is not None, current_value=current_k, message=message)


def _check_ma_crossover(
    bars: Sequence[PriceBar],
    rule: AlertRule,
    params: MovingAverageCrossParams,
) -> AlertResult:
    average = sma if params.average == "sma" else ema
    fast_pair = latest_pair(average(bars, params.fast_period))
    slow_pair = latest_pair(average(bars, params.slow_period))
    if fast_pair is None or slow_pair is None:
        return AlertResult(triggered=False)

    (prev_fast, current_fast), (prev_slow, current_slow) = fast_pair, slow_pair
    cross = detect_ma_crossover(current_fast, current_slow, prev_fast, prev_slow).type
    label = params.average.upper()
    fast_label = f"{label}({params.fast_period})"
    slow_label = f"{label}({params.slow_period})"

    message = None
    if rule.condition is AlertCondition.CROSSES_ABOVE and cross is MovingAverageCross.GOLDEN_CROSS:
        message = f"Golden Cross: {fast_label} crossed above {slow_label}"
    elif rule.condition is AlertCondition.CROSSES_BELOW and cross is MovingAverageCross.DEATH_CROSS:
        message = f"Death Cross: {fast_label} crossed below {slow_label}"
    return AlertResult(triggered=message is not None, current_value=current_fast, message=message)


def _check_bollinger(
    bars: Sequence[PriceBar],
    rule: AlertRule,
    period: int,
    std_dev: float,
) -> AlertResult:
    bands = bollinger_bands(bars, period, std_dev)
    if not bands.upper:
        return AlertResult(triggered=False)

    price = bars[-1].close
    upper, lower = bands.upper[-1].value, bands.lower[-1].value
    position = detect_bollinger_signal(price, upper, lower)

    message = None
    if (
        rule.condition is AlertCondition.PRICE_ABOVE_UPPER
        and position is BandPosition.ABOVE_UPPER
    ):
        message = f"Price ({price:.2f}) is above upper Bollinger Band ({upper:.2f})"
    elif (
        rule.condition is AlertCondition.PRICE_BELOW_LOWER
        and position is BandPosition.BELOW_LOWER
    ):
        message = f"Price ({price:.2f}) is below lower Bollinger Band ({lower:.2f})"
    return AlertResult(triggered=message is not None, current_value=price, message=message)
