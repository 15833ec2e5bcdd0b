from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

UNKNOWN_SECTOR = "Unknown"


@dataclass(slots=True, frozen=True)
class PriceBar:
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(slots=True, frozen=True)
class IndicatorPoint:
    timestamp: datetime
    value: float
    tag: str | None = None


@dataclass(slots=True, frozen=True)
class PortfolioHolding:
    symbol: str
    shares: float
    avg_cost: float
    current_price: float
    sector: str = UNKNOWN_SECTOR
    company_name: str | None = None

    def __post_init__(self) -> None:
        if not self.symbol.strip():
            raise ValueError("symbol must be non-empty")
        if self.shares < 0:
            raise ValueError("shares must be non-negative for long-only holdings")
        if self.current_price < 0:
            raise ValueError("current_price must be non-negative")

    @property
    def current_value(self) -> float:
        return self.shares * self.current_price

    @property
    def cost_basis(self) -> float:
        return self.shares * self.avg_cost

    @property
    def gain(self) -> float:
        return self.current_value - self.cost_basis

    @property
    def gain_pct(self) -> float:
        basis = self.cost_basis
        return (self.gain / basis) * 100 if basis > 0 else 0.0

    @property
    def display_name(self) -> str:
        return self.company_name or self.symbol


@dataclass(slots=True, frozen=True)
class HoldingPerformance:
    symbol: str
    name: str
    value: float
    cost_basis: float
    gain: float
    gain_pct: float
    sector: str = UNKNOWN_SECTOR


@dataclass(slots=True, frozen=True)
class SectorAllocation:
    sector: str
    value: float
    weight: float
    gain: float
    gain_pct: float
    count: int


@dataclass(slots=True, frozen=True)
class PortfolioSnapshot:
    timestamp: datetime
    total_value: float
    total_cost: float = 0.0
    gain_loss: float = 0.0
    gain_loss_pct: float = 0.0
    day_change: float = 0.0
    day_change_pct: float = 0.0
    holdings: tuple[HoldingPerformance, ...] = field(default_factory=tuple)
    sector_allocation: tuple[SectorAllocation, ...] = field(default_factory=tuple)
    top_performers: tuple[HoldingPerformance, ...] = field(default_factory=tuple)
    top_losers: tuple[HoldingPerformance, ...] = field(default_factory=tuple)


class TradeAction(StrEnum):
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


@dataclass(slots=True, frozen=True)
class RebalancingAction:
    symbol: str
    company_name: str
    action: TradeAction
    current_shares: float
    target_shares: float
    shares_to_trade: float
    current_value: float
    target_value: float
    value_difference: float
    target_allocation: float
    reason: str
