from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime

import numpy as np
import pandas as pd
from scipy.stats import norm

from alphaquant.domain.models import PortfolioHolding, PortfolioSnapshot
from alphaquant.errors import ParameterError

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class DayReturn:
    date: datetime
    return_pct: float


@dataclass(slots=True, frozen=True)
class Drawdown:
    value: float
    peak_date: datetime | None = None
    trough_date: datetime | None = None


@dataclass(slots=True, frozen=True)
class RiskMetrics:
    daily_returns: tuple[float, ...] = ()
    avg_daily_return: float = 0.0
    volatility: float = 0.0
    annualized_volatility: float = 0.0
    downside_volatility: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    calmar_ratio: float = 0.0
    max_drawdown: float = 0.0
    max_drawdown_period: tuple[datetime, datetime] | None = None
    current_drawdown: float = 0.0
    annualized_return: float = 0.0
    total_return_pct: float = 0.0
    win_rate: float = 0.0
    best_day: DayReturn | None = None
    worst_day: DayReturn | None = None
    beta: float = 1.0
    value_at_risk: float = 0.0
    sector_concentration: float = 0.0
    position_concentration: float = 0.0


@dataclass(slots=True, frozen=True)
class BenchmarkComparison:
    benchmark_symbol: str
    benchmark_name: str
    portfolio_return: float = 0.0
    benchmark_return: float = 0.0
    alpha: float = 0.0
    correlation: float = 0.0


def daily_returns(values: pd.Series) -> pd.Series:
    """Bar-to-bar percentage change; zero where the previous value is not positive."""
    previous = values.shift(1)
    returns = (values - previous) / previous.where(previous > 0) * 100
    return returns.iloc[1:].fillna(0.0)


def drawdown_series(values: pd.Series) -> pd.Series:
    """Drawdown in percent against the running peak of ``values``."""
    peak = values.cummax()
    drawdown = (values - peak) / peak.where(peak > 0) * 100
    return drawdown.fillna(0.0).clip(upper=0.0)


def sharpe_ratio(returns: pd.Series) -> float:
    if returns.empty:
        return 0.0
    std = float(returns.std(ddof=0))
    if std == 0 or math.isnan(std):
        return 0.0
    return float(returns.mean() / std)


def sortino_ratio(returns: pd.Series) -> float:
    downside = downside_volatility(returns)
    if returns.empty or downside == 0:
        return 0.0
    return float(returns.mean() / downside)


def downside_volatility(returns: pd.Series) -> float:
    negative = returns[returns < 0]
    if negative.empty:
        return 0.0
    return float(np.sqrt((negative**2).mean()))


def herfindahl(weights: Sequence[float]) -> float:
    """Sum of squared fractional weights; 1.0 means a single position."""
    return float(sum(weight * weight for weight in weights))


def analyze_snapshots(
    snapshots: Sequence[PortfolioSnapshot],
    *,
    periods_per_year: int = 252,
    holdings: Sequence[PortfolioHolding] | None = None,
    benchmark_values: Sequence[float] | None = None,
    var_confidence: float = 0.95,
) -> RiskMetrics:
    if periods_per_year <= 0:
        raise ParameterError("periods_per_year must be greater than zero")
    if not 0 < var_confidence < 1:
        raise ParameterError("var_confidence must be between 0 and 1")

    sector_concentration, position_concentration = _concentration(holdings or ())
    if len(snapshots) < 2:
        logger.debug("Risk metrics need two snapshots, got %s", len(snapshots))
        return RiskMetrics(
            sector_concentration=sector_concentration,
            position_concentration=position_concentration,
        )

    values = pd.Series([snapshot.total_value for snapshot in snapshots], dtype=float)
    timestamps = [snapshot.timestamp for snapshot in snapshots]
    returns = daily_returns(values)

    mean_return = float(returns.mean())
    volatility = float(returns.std(ddof=0))
    drawdown = _deepest_drawdown(values, timestamps)
    annualized = mean_return * periods_per_year
    calmar = annualized / abs(drawdown.value) if drawdown.value < 0 else 0.0

    best_label = returns.idxmax()
    worst_label = returns.idxmin()
    latest = snapshots[-1]
    total_return = (
        ((latest.total_value - latest.total_cost) / latest.total_cost) * 100
        if latest.total_cost > 0
        else 0.0
    )
    z_score = float(norm.ppf(var_confidence))

    metrics = RiskMetrics(
        daily_returns=tuple(float(value) for value in returns),
        avg_daily_return=mean_return,
        volatility=volatility,
        annualized_volatility=volatility * math.sqrt(periods_per_year),
        downside_volatility=downside_volatility(returns),
        sharpe_ratio=sharpe_ratio(returns),
        sortino_ratio=sortino_ratio(returns),
        calmar_ratio=calmar,
        max_drawdown=drawdown.value,
        max_drawdown_period=(
            (drawdown.peak_date, drawdown.trough_date)
            if drawdown.peak_date is not None and drawdown.trough_date is not None
            else None
        ),
        current_drawdown=float(drawdown_series(values).iloc[-1]),
        annualized_return=annualized,
        total_return_pct=total_return,
        win_rate=float((returns > 0).sum() / len(returns) * 100),
        best_day=DayReturn(timestamps[int(best_label)], float(returns[best_label])),
        worst_day=DayReturn(timestamps[int(worst_label)], float(returns[worst_label])),
        beta=_beta(returns, benchmark_values),
        value_at_risk=latest.total_value * z_score * volatility / 100,
        sector_concentration=sector_concentration,
        position_concentration=position_concentration,
    )
    logger.debug(
        "Risk metrics over %s snapshots: vol=%.4f max_dd=%.4f",
        len(snapshots),
        metrics.volatility,
        metrics.max_drawdown,
    )
    return metrics


def compare_to_benchmark(
    values: Sequence[float],
    benchmark_values: Sequence[float],
    symbol: str,
    name: str,
) -> BenchmarkComparison:
    if not values or not benchmark_values:
        return BenchmarkComparison(benchmark_symbol=symbol, benchmark_name=name)

    portfolio_return = _total_return(values)
    benchmark_return = _total_return(benchmark_values)

    length = min(len(values), len(benchmark_values))
    frame = pd.DataFrame(
        {
            "portfolio": list(values[:length]),
            "benchmark": list(benchmark_values[:length]),
        },
        dtype=float,
    )
    previous = frame.shift(1)
    valid = (previous["portfolio"] > 0) & (previous["benchmark"] > 0)
    returns = (frame - previous)[valid] / previous[valid]

    correlation = 0.0
    if len(returns) > 0:
        std_p = float(returns["portfolio"].std(ddof=0))
        std_b = float(returns["benchmark"].std(ddof=0))
        if std_p > 0 and std_b > 0:
            correlation = float(returns["portfolio"].corr(returns["benchmark"]))

    return BenchmarkComparison(
        benchmark_symbol=symbol,
        benchmark_name=name,
        portfolio_return=portfolio_return,
        benchmark_return=benchmark_return,
        alpha=portfolio_return - benchmark_return,
        correlation=correlation,
    )


def holding_volatilities(
    price_history: Mapping[str, pd.Series],
    periods_per_year: int = 252,
) -> dict[str, float]:
    """Annualized volatility in percent per symbol from close prices."""
    if periods_per_year <= 0:
        raise ParameterError("periods_per_year must be greater than zero")

    result: dict[str, float] = {}
    for symbol, closes in price_history.items():
        returns = closes.astype(float).pct_change().dropna()
        if returns.empty:
            continue
        std = float(returns.std(ddof=0))
        result[symbol] = std * math.sqrt(periods_per_year) * 100
    return result


def _deepest_drawdown(values: pd.Series, timestamps: Sequence[datetime]) -> Drawdown:
    drawdown = drawdown_series(values)
    trough = int(drawdown.to_numpy().argmin())
    deepest = float(drawdown.iloc[trough])
    if deepest >= 0:
        return Drawdown(0.0)
    peak = int(values.iloc[: trough + 1].to_numpy().argmax())
    return Drawdown(deepest, timestamps[peak], timestamps[trough])


def _beta(returns: pd.Series, benchmark_values: Sequence[float] | None) -> float:
    if benchmark_values is None:
        return 1.0
    benchmark = daily_returns(pd.Series(list(benchmark_values), dtype=float))
    if len(benchmark) != len(returns):
        logger.debug("Benchmark length %s does not match returns %s", len(benchmark), len(returns))
        return 1.0

    benchmark_centered = benchmark.to_numpy() - benchmark.mean()
    returns_centered = returns.to_numpy() - returns.mean()
    variance = float(np.mean(benchmark_centered**2))
    if variance <= 0:
        return 1.0
    return float(np.mean(returns_centered * benchmark_centered) / variance)


def _concentration(holdings: Sequence[PortfolioHolding]) -> tuple[float, float]:
    total = sum(holding.current_value for holding in holdings)
    if total <= 0:
        return 0.0, 0.0

    sectors: dict[str, float] = {}
    for holding in holdings:
        sectors[holding.sector] = sectors.get(holding.sector, 0.0) + holding.current_value
    sector_weights = [value / total for value in sectors.values()]
    position_weights = [holding.current_value / total for holding in holdings]
    return herfindahl(sector_weights), herfindahl(position_weights)


def _total_return(values: Sequence[float]) -> float:
    start, end = values[0], values[-1]
    return ((end - start) / start) * 100 if start > 0 else 0.0
