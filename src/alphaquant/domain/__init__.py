from alphaquant.domain.models import (
    UNKNOWN_SECTOR,
    HoldingPerformance,
    IndicatorPoint,
    PortfolioHolding,
    PortfolioSnapshot,
    PriceBar,
    RebalancingAction,
    SectorAllocation,
    TradeAction,
)

__all__ = [
    "UNKNOWN_SECTOR",
    "HoldingPerformance",
    "IndicatorPoint",
    "PortfolioHolding",
    "PortfolioSnapshot",
    "PriceBar",
    "RebalancingAction",
    "SectorAllocation",
    "TradeAction",
]
