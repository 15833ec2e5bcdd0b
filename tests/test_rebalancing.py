from __future__ import annotations

import pytest

from alphaquant.allocation import RebalanceStrategy
from alphaquant.domain.models import PortfolioHolding, TradeAction
from alphaquant.errors import ParameterError
from alphaquant.rebalancing import (
    NO_SELL_TAX_NOTE,
    SELL_TAX_NOTE,
    RebalanceConfig,
    build_plan,
)


def _holding(
    symbol: str,
    shares: float,
    price: float = 100.0,
    sector: str = "Unknown",
) -> PortfolioHolding:
    return PortfolioHolding(
        symbol,
        shares=shares,
        avg_cost=price,
        current_price=price,
        sector=sector,
    )


def test_equal_holdings_need_no_trades() -> None:
    holdings = [_holding("A", 10), _holding("B", 10), _holding("C", 10)]
    plan = build_plan(holdings, "equal_weight")

    assert plan.strategy is RebalanceStrategy.EQUAL_WEIGHT
    assert all(action.action is TradeAction.HOLD for action in plan.actions)
    assert all(action.shares_to_trade == 0 for action in plan.actions)
    assert plan.summary.total_trades == 0
    assert plan.summary.hold_positions == 3
    assert plan.tax_note == NO_SELL_TAX_NOTE
    assert "close to target" in plan.actions[0].reason


def test_imbalanced_pair_trades_toward_equal_weight() -> None:
    holdings = [_holding("A", 30), _holding("B", 10)]
    plan = build_plan(holdings, "equal_weight", config=RebalanceConfig(commission_per_trade=1.5))

    by_symbol = {action.symbol: action for action in plan.actions}
    assert by_symbol["A"].action is TradeAction.SELL
    assert by_symbol["A"].shares_to_trade == pytest.approx(-10.0)
    assert by_symbol["A"].target_shares == pytest.approx(20.0)
    assert by_symbol["A"].reason == "Reduce allocation from 75.0% to 50.0%"
    assert by_symbol["B"].action is TradeAction.BUY
    assert by_symbol["B"].shares_to_trade == pytest.approx(10.0)
    assert plan.summary.buy_orders == 1
    assert plan.summary.sell_orders == 1
    assert plan.estimated_cost == pytest.approx(3.0)
    assert plan.risk_reduction == pytest.approx(25.0)
    assert plan.tax_note == SELL_TAX_NOTE
    assert plan.total_value == pytest.approx(4_000.0)


def test_deadband_suppresses_small_trades() -> None:
    holdings = [_holding("A", 10.05), _holding("B", 9.95)]
    plan = build_plan(holdings, "equal_weight")
    assert all(action.action is TradeAction.HOLD for action in plan.actions)

    tight = build_plan(
        holdings,
        "equal_weight",
        config=RebalanceConfig(deadband_pct=0.1, deadband_min_value=1.0),
    )
    assert {action.action for action in tight.actions} == {TradeAction.BUY, TradeAction.SELL}


def test_actions_sorted_by_value_difference() -> None:
    holdings = [_holding("A", 10), _holding("B", 40), _holding("C", 25), _holding("D", 25)]
    plan = build_plan(holdings, "equal_weight")
    differences = [abs(action.value_difference) for action in plan.actions]
    assert differences == sorted(differences, reverse=True)
    assert plan.actions[0].symbol == "A"


def test_trade_sign_matches_action() -> None:
    holdings = [
        _holding("A", 12, 50.0, "Technology"),
        _holding("B", 40, 25.0, "Technology"),
        _holding("C", 3, 300.0, "Energy"),
        _holding("D", 70, 10.0, "Utilities"),
        _holding("E", 8, 80.0, "Healthcare"),
    ]
    for strategy in ("equal_weight", "sector_balanced", "risk_parity"):
        plan = build_plan(holdings, strategy)
        assert sum(plan.target_allocations.values()) == pytest.approx(100.0, abs=0.01)
        for action in plan.actions:
            if action.action is TradeAction.BUY:
                assert action.shares_to_trade > 0
            elif action.action is TradeAction.SELL:
                assert action.shares_to_trade < 0
            else:
                assert action.shares_to_trade == 0


def test_custom_targets_flow_into_plan() -> None:
    holdings = [_holding("A", 10), _holding("B", 10)]
    plan = build_plan(holdings, "custom", custom_targets={"A": 80, "B": 20})
    assert plan.target_allocations == {"A": 80.0, "B": 20.0}
    assert plan.actions[0].target_allocation in {80.0, 20.0}


def test_sector_cap_comes_from_config() -> None:
    holdings = [
        _holding("A", 30, sector="Technology"),
        _holding("B", 30, sector="Technology"),
        _holding("C", 10, sector="Energy"),
        _holding("D", 10, sector="Healthcare"),
        _holding("E", 10, sector="Utilities"),
        _holding("F", 10, sector="Real Estate"),
    ]
    plan = build_plan(holdings, "sector_balanced", config=RebalanceConfig(max_sector_pct=30))
    tech = plan.target_allocations["A"] + plan.target_allocations["B"]
    assert tech == pytest.approx(30.0)


def test_plan_requires_two_holdings_and_value() -> None:
    with pytest.raises(ParameterError, match="at least 2 holdings"):
        build_plan([_holding("A", 10)], "equal_weight")
    with pytest.raises(ParameterError, match="greater than zero"):
        build_plan([_holding("A", 0), _holding("B", 0)], "equal_weight")
    with pytest.raises(ParameterError, match="Unknown strategy"):
        build_plan([_holding("A", 10), _holding("B", 10)], "momentum")


def test_config_validation() -> None:
    with pytest.raises(ParameterError, match="deadband_pct must be non-negative"):
        RebalanceConfig(deadband_pct=-1)
    with pytest.raises(ParameterError, match="max_sector_pct"):
        RebalanceConfig(max_sector_pct=150)
    assert RebalanceConfig().deadband(50_000) == pytest.approx(500.0)
    assert RebalanceConfig().deadband(1_000) == pytest.approx(100.0)
