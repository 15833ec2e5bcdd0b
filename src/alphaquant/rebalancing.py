from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from alphaquant.allocation import RebalanceStrategy, parse_strategy, target_allocations
from alphaquant.domain.models import PortfolioHolding, RebalancingAction, TradeAction
from alphaquant.errors import ParameterError
from alphaquant.portfolio import allocations, total_value

logger = logging.getLogger(__name__)

SELL_TAX_NOTE = (
    "Review tax implications before selling positions. "
    "Consider tax-loss harvesting opportunities."
)
NO_SELL_TAX_NOTE = "No sell orders, minimal tax impact."


@dataclass(slots=True, frozen=True)
class RebalanceConfig:
    deadband_pct: float = 1.0
    deadband_min_value: float = 100.0
    commission_per_trade: float = 0.0
    max_sector_pct: float = 25.0

    def __post_init__(self) -> None:
        if self.deadband_pct < 0:
            raise ParameterError("deadband_pct must be non-negative")
        if self.deadband_min_value < 0:
            raise ParameterError("deadband_min_value must be non-negative")
        if self.commission_per_trade < 0:
            raise ParameterError("commission_per_trade must be non-negative")
        if not 0 < self.max_sector_pct <= 100:
            raise ParameterError("max_sector_pct must be in (0, 100]")

    def deadband(self, current_value: float) -> float:
        return max(current_value * self.deadband_pct / 100, self.deadband_min_value)


@dataclass(slots=True, frozen=True)
class PlanSummary:
    buy_orders: int
    sell_orders: int
    hold_positions: int

    @property
    def total_trades(self) -> int:
        return self.buy_orders + self.sell_orders


@dataclass(slots=True, frozen=True)
class RebalancingPlan:
    strategy: RebalanceStrategy
    total_value: float
    actions: tuple[RebalancingAction, ...]
    target_allocations: dict[str, float] = field(default_factory=dict)
    estimated_cost: float = 0.0
    risk_reduction: float = 0.0
    tax_note: str = NO_SELL_TAX_NOTE
    summary: PlanSummary = field(default_factory=lambda: PlanSummary(0, 0, 0))


def build_plan(
    holdings: Sequence[PortfolioHolding],
    strategy: str | RebalanceStrategy,
    *,
    config: RebalanceConfig | None = None,
    volatilities: Mapping[str, float] | None = None,
    market_caps: Mapping[str, float] | None = None,
    custom_targets: Mapping[str, float] | None = None,
) -> RebalancingPlan:
    cfg = config or RebalanceConfig()
    selected = parse_strategy(strategy)
    if len(holdings) < 2:
        raise ParameterError("Need at least 2 holdings to rebalance")
    total = total_value(holdings)
    if total <= 0:
        raise ParameterError("Portfolio total value must be greater than zero")

    targets = target_allocations(
        holdings,
        selected,
        max_sector_pct=cfg.max_sector_pct,
        volatilities=volatilities,
        market_caps=market_caps,
        custom_targets=custom_targets,
    )
    current = allocations(holdings)
    actions = [
        _plan_action(holding, current[holding.symbol], targets[holding.symbol], total, cfg)
        for holding in holdings
    ]
    actions.sort(key=lambda action: abs(action.value_difference), reverse=True)

    summary = PlanSummary(
        buy_orders=sum(1 for action in actions if action.action is TradeAction.BUY),
        sell_orders=sum(1 for action in actions if action.action is TradeAction.SELL),
        hold_positions=sum(1 for action in actions if action.action is TradeAction.HOLD),
    )
    plan = RebalancingPlan(
        strategy=selected,
        total_value=total,
        actions=tuple(actions),
        target_allocations=targets,
        estimated_cost=summary.total_trades * cfg.commission_per_trade,
        risk_reduction=max(current.values()) - max(targets.values()),
        tax_note=SELL_TAX_NOTE if summary.sell_orders else NO_SELL_TAX_NOTE,
        summary=summary,
    )
    logger.info(
        "Rebalancing plan %s: %s buys, %s sells, %s holds",
        selected,
        summary.buy_orders,
        summary.sell_orders,
        summary.hold_positions,
    )
    return plan


def _plan_action(
    holding: PortfolioHolding,
    actual: float,
    target: float,
    total: float,
    cfg: RebalanceConfig,
) -> RebalancingAction:
    current_value = holding.current_value
    target_value = (target / 100) * total
    target_shares = target_value / holding.current_price if holding.current_price > 0 else 0.0
    shares_to_trade = round(target_shares - holding.shares, 2)
    value_difference = target_value - current_value

    action = TradeAction.HOLD
    if abs(value_difference) > cfg.deadband(current_value):
        if shares_to_trade > 0:
            action = TradeAction.BUY
        elif shares_to_trade < 0:
            action = TradeAction.SELL

    if action is TradeAction.BUY:
        reason = f"Increase allocation from {actual:.1f}% to {target:.1f}%"
    elif action is TradeAction.SELL:
        reason = f"Reduce allocation from {actual:.1f}% to {target:.1f}%"
    else:
        reason = f"Current allocation ({actual:.1f}%) is close to target ({target:.1f}%)"
        shares_to_trade = 0.0

    return RebalancingAction(
        symbol=holding.symbol,
        company_name=holding.display_name,
        action=action,
        current_shares=holding.shares,
        target_shares=round(target_shares, 2),
        shares_to_trade=shares_to_trade,
        current_value=current_value,
        target_value=target_value,
        value_difference=value_difference,
        target_allocation=target,
        reason=reason,
    )
