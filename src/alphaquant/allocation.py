from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from enum import StrEnum

from alphaquant.domain.models import PortfolioHolding
from alphaquant.errors import ParameterError
from alphaquant.portfolio import allocations

logger = logging.getLogger(__name__)

DEFAULT_SECTOR_VOLATILITY = 25.0
SECTOR_VOLATILITY: dict[str, float] = {
    "Technology": 30.0,
    "Healthcare": 25.0,
    "Financial Services": 20.0,
    "Consumer Cyclical": 28.0,
    "Energy": 35.0,
    "Utilities": 15.0,
    "Real Estate": 18.0,
    "Consumer Defensive": 16.0,
    "Industrials": 22.0,
    "Communication Services": 27.0,
}
TARGET_SUM_TOLERANCE = 0.01


class RebalanceStrategy(StrEnum):
    EQUAL_WEIGHT = "equal_weight"
    SECTOR_BALANCED = "sector_balanced"
    RISK_PARITY = "risk_parity"
    MARKET_CAP_WEIGHT = "market_cap_weight"
    CUSTOM = "custom"


def parse_strategy(name: str | RebalanceStrategy) -> RebalanceStrategy:
    normalized = str(name).strip().lower().replace("-", "_")
    try:
        return RebalanceStrategy(normalized)
    except ValueError as exc:
        choices = ", ".join(strategy.value for strategy in RebalanceStrategy)
        raise ParameterError(f"Unknown strategy {name!r}; expected one of: {choices}") from exc


def equal_weight(holdings: Sequence[PortfolioHolding]) -> dict[str, float]:
    _require_holdings(holdings)
    target = 100.0 / len(holdings)
    return {holding.symbol: target for holding in holdings}


def sector_balanced(
    holdings: Sequence[PortfolioHolding],
    max_sector_pct: float = 25.0,
) -> dict[str, float]:
    """Cap every sector at ``max_sector_pct`` and scale the rest up to fill 100%.

    With three sectors or fewer the sectors are split evenly instead.
    """
    _require_holdings(holdings)
    if not 0 < max_sector_pct <= 100:
        raise ParameterError("max_sector_pct must be in (0, 100]")

    groups = _group_by_sector(holdings)
    if len(groups) <= 3:
        sector_target = 100.0 / len(groups)
        return {
            holding.symbol: sector_target / len(members)
            for members in groups.values()
            for holding in members
        }

    current = allocations(holdings)
    sector_weight = {
        sector: sum(current[holding.symbol] for holding in members)
        for sector, members in groups.items()
    }
    capped = {sector for sector, weight in sector_weight.items() if weight > max_sector_pct}
    scale = 1.0
    while True:
        free = [sector for sector in groups if sector not in capped]
        if not free:
            break
        remaining = max(100.0 - max_sector_pct * len(capped), 0.0)
        free_weight = sum(sector_weight[sector] for sector in free)
        scale = remaining / free_weight if free_weight > 0 else 0.0
        newly_capped = {
            sector for sector in free if sector_weight[sector] * scale > max_sector_pct + 1e-9
        }
        if not newly_capped:
            break
        capped |= newly_capped

    targets: dict[str, float] = {}
    for sector, members in groups.items():
        for holding in members:
            if sector in capped:
                targets[holding.symbol] = max_sector_pct / len(members)
            else:
                targets[holding.symbol] = current[holding.symbol] * scale

    logger.debug("Sector cap %.2f applied to %s", max_sector_pct, sorted(capped))
    return _normalize(targets)


def risk_parity(
    holdings: Sequence[PortfolioHolding],
    volatilities: Mapping[str, float] | None = None,
) -> dict[str, float]:
    """Inverse-volatility weights; unknown volatilities fall back to a per-sector estimate."""
    _require_holdings(holdings)
    known = volatilities or {}

    inverse: dict[str, float] = {}
    for holding in holdings:
        volatility = known.get(holding.symbol)
        if volatility is None:
            volatility = SECTOR_VOLATILITY.get(holding.sector, DEFAULT_SECTOR_VOLATILITY)
        inverse[holding.symbol] = 1.0 / volatility if volatility > 0 else 0.0

    total_inverse = sum(inverse.values())
    if total_inverse <= 0:
        return equal_weight(holdings)
    return {symbol: (value / total_inverse) * 100 for symbol, value in inverse.items()}


def market_cap_weight(
    holdings: Sequence[PortfolioHolding],
    market_caps: Mapping[str, float],
) -> dict[str, float]:
    _require_holdings(holdings)
    caps = {
        holding.symbol: max(float(market_caps.get(holding.symbol, 0.0)), 0.0)
        for holding in holdings
    }
    total_cap = sum(caps.values())
    if total_cap <= 0:
        raise ParameterError("market_caps must contain a positive value for at least one holding")
    return {symbol: (cap / total_cap) * 100 for symbol, cap in caps.items()}


def custom(
    holdings: Sequence[PortfolioHolding],
    targets: Mapping[str, float],
) -> dict[str, float]:
    _require_holdings(holdings)
    symbols = {holding.symbol for holding in holdings}
    unknown = sorted(set(targets).difference(symbols))
    if unknown:
        raise ParameterError(f"Targets reference unknown symbols: {unknown}")
    negative = sorted(symbol for symbol, value in targets.items() if value < 0)
    if negative:
        raise ParameterError(f"Targets must be non-negative: {negative}")

    total = sum(targets.values())
    if abs(total - 100.0) > TARGET_SUM_TOLERANCE:
        raise ParameterError(f"Targets must sum to 100, got {total:.4f}")
    return {holding.symbol: float(targets.get(holding.symbol, 0.0)) for holding in holdings}


def target_allocations(
    holdings: Sequence[PortfolioHolding],
    strategy: str | RebalanceStrategy,
    *,
    max_sector_pct: float = 25.0,
    volatilities: Mapping[str, float] | None = None,
    market_caps: Mapping[str, float] | None = None,
    custom_targets: Mapping[str, float] | None = None,
) -> dict[str, float]:
    match parse_strategy(strategy):
        case RebalanceStrategy.EQUAL_WEIGHT:
            return equal_weight(holdings)
        case RebalanceStrategy.SECTOR_BALANCED:
            return sector_balanced(holdings, max_sector_pct)
        case RebalanceStrategy.RISK_PARITY:
            return risk_parity(holdings, volatilities)
        case RebalanceStrategy.MARKET_CAP_WEIGHT:
            if market_caps is None:
                raise ParameterError("market_caps are required for market_cap_weight")
            return market_cap_weight(holdings, market_caps)
        case RebalanceStrategy.CUSTOM:
            if custom_targets is None:
                raise ParameterError("custom_targets are required for custom strategy")
            return custom(holdings, custom_targets)
    raise ParameterError(f"Unsupported strategy: {strategy!r}")


def allocation_drift(
    holdings: Sequence[PortfolioHolding],
    targets: Mapping[str, float],
) -> dict[str, float]:
    """Percentage points between actual and target allocation per symbol."""
    current = allocations(holdings)
    return {symbol: value - targets.get(symbol, 0.0) for symbol, value in current.items()}


def needs_rebalancing(
    holdings: Sequence[PortfolioHolding],
    targets: Mapping[str, float],
    drift_threshold: float = 5.0,
) -> bool:
    if drift_threshold < 0:
        raise ParameterError("drift_threshold must be non-negative")
    drift = allocation_drift(holdings, targets)
    return any(abs(value) > drift_threshold for value in drift.values())


def _group_by_sector(holdings: Sequence[PortfolioHolding]) -> dict[str, list[PortfolioHolding]]:
    groups: dict[str, list[PortfolioHolding]] = {}
    for holding in holdings:
        groups.setdefault(holding.sector, []).append(holding)
    return groups


def _normalize(targets: dict[str, float]) -> dict[str, float]:
    total = sum(targets.values())
    if total <= 0:
        raise ParameterError("Target allocations sum to zero")
    return {symbol: (value / total) * 100 for symbol, value in targets.items()}


def _require_holdings(holdings: Sequence[PortfolioHolding]) -> None:
    if not holdings:
        raise ParameterError("holdings must be non-empty")
    symbols = [holding.symbol for holding in holdings]
    if len(set(symbols)) != len(symbols):
        raise ParameterError("holdings must have unique symbols")
