from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone

from alphaquant.domain.models import (
    HoldingPerformance,
    PortfolioHolding,
    PortfolioSnapshot,
    SectorAllocation,
)

logger = logging.getLogger(__name__)


def total_value(holdings: Sequence[PortfolioHolding]) -> float:
    return float(sum(holding.current_value for holding in holdings))


def allocations(holdings: Sequence[PortfolioHolding]) -> dict[str, float]:
    """Actual allocation in percent of the portfolio total, keyed by symbol."""
    total = total_value(holdings)
    if total <= 0:
        return {holding.symbol: 0.0 for holding in holdings}
    return {holding.symbol: (holding.current_value / total) * 100 for holding in holdings}


def sector_allocation(holdings: Sequence[PortfolioHolding]) -> list[SectorAllocation]:
    total = total_value(holdings)
    grouped: dict[str, list[PortfolioHolding]] = {}
    for holding in holdings:
        grouped.setdefault(holding.sector, []).append(holding)

    rows: list[SectorAllocation] = []
    for sector, members in grouped.items():
        value = sum(member.current_value for member in members)
        cost = sum(member.cost_basis for member in members)
        gain = value - cost
        rows.append(
            SectorAllocation(
                sector=sector,
                value=value,
                weight=(value / total) * 100 if total > 0 else 0.0,
                gain=gain,
                gain_pct=(gain / cost) * 100 if cost > 0 else 0.0,
                count=len(members),
            )
        )
    rows.sort(key=lambda row: row.value, reverse=True)
    return rows


def take_snapshot(
    holdings: Sequence[PortfolioHolding],
    *,
    previous_closes: Mapping[str, float] | None = None,
    timestamp: datetime | None = None,
    top_n: int = 5,
) -> PortfolioSnapshot:
    if top_n <= 0:
        raise ValueError("top_n must be greater than zero")

    value = total_value(holdings)
    cost = float(sum(holding.cost_basis for holding in holdings))
    gain_loss = value - cost

    day_change = 0.0
    if previous_closes:
        for holding in holdings:
            previous = previous_closes.get(holding.symbol)
            if previous is not None:
                day_change += (holding.current_price - previous) * holding.shares
    opening_value = value - day_change

    performance = [
        HoldingPerformance(
            symbol=holding.symbol,
            name=holding.display_name,
            value=holding.current_value,
            cost_basis=holding.cost_basis,
            gain=holding.gain,
            gain_pct=holding.gain_pct,
            sector=holding.sector,
        )
        for holding in holdings
    ]
    ranked = sorted(performance, key=lambda row: row.gain_pct, reverse=True)

    snapshot = PortfolioSnapshot(
        timestamp=timestamp or datetime.now(timezone.utc),
        total_value=value,
        total_cost=cost,
        gain_loss=gain_loss,
        gain_loss_pct=(gain_loss / cost) * 100 if cost > 0 else 0.0,
        day_change=day_change,
        day_change_pct=(day_change / opening_value) * 100 if opening_value > 0 else 0.0,
        holdings=tuple(performance),
        sector_allocation=tuple(sector_allocation(holdings)),
        top_performers=tuple(ranked[:top_n]),
        top_losers=tuple(reversed(ranked[-top_n:])),
    )
    logger.debug("Snapshot of %s holdings valued at %.2f", len(holdings), value)
    return snapshot
