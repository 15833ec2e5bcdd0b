from __future__ import annotations

import pytest

from alphaquant.allocation import (
    RebalanceStrategy,
    allocation_drift,
    custom,
    equal_weight,
    market_cap_weight,
    needs_rebalancing,
    parse_strategy,
    risk_parity,
    sector_balanced,
    target_allocations,
)
from alphaquant.domain.models import PortfolioHolding
from alphaquant.errors import ParameterError


def _holding(symbol: str, value: float, sector: str = "Unknown") -> PortfolioHolding:
    return PortfolioHolding(symbol, shares=value / 10, avg_cost=10, current_price=10, sector=sector)


def _sector_total(targets: dict[str, float], symbols: list[str]) -> float:
    return sum(targets[symbol] for symbol in symbols)


def test_parse_strategy_accepts_dashes_and_rejects_unknown() -> None:
    assert parse_strategy("sector-balanced") is RebalanceStrategy.SECTOR_BALANCED
    assert parse_strategy(RebalanceStrategy.CUSTOM) is RebalanceStrategy.CUSTOM
    with pytest.raises(ParameterError, match="Unknown strategy"):
        parse_strategy("magic")


def test_equal_weight() -> None:
    targets = equal_weight([_holding(s, 100) for s in "ABCD"])
    assert targets == pytest.approx({"A": 25.0, "B": 25.0, "C": 25.0, "D": 25.0})
    with pytest.raises(ParameterError, match="holdings must be non-empty"):
        equal_weight([])


def test_sector_balanced_splits_few_sectors_evenly() -> None:
    holdings = [
        _holding("A", 500, "Technology"),
        _holding("B", 100, "Technology"),
        _holding("C", 100, "Energy"),
    ]
    assert sector_balanced(holdings) == pytest.approx({"A": 25.0, "B": 25.0, "C": 50.0})


def test_sector_balanced_caps_overweight_sector() -> None:
    holdings = [
        _holding("A", 300, "Technology"),
        _holding("B", 300, "Technology"),
        _holding("C", 100, "Energy"),
        _holding("D", 100, "Healthcare"),
        _holding("E", 100, "Utilities"),
        _holding("F", 100, "Real Estate"),
    ]
    targets = sector_balanced(holdings, max_sector_pct=25)

    assert _sector_total(targets, ["A", "B"]) == pytest.approx(25.0)
    assert targets["A"] == pytest.approx(12.5)
    for symbol in "CDEF":
        assert targets[symbol] == pytest.approx(18.75)
    assert sum(targets.values()) == pytest.approx(100.0)


def test_sector_balanced_four_sectors_rescales_until_no_sector_exceeds_cap() -> None:
    holdings = [
        _holding("A", 300, "Technology"),
        _holding("B", 300, "Technology"),
        _holding("C", 200, "Energy"),
        _holding("D", 100, "Healthcare"),
        _holding("E", 100, "Utilities"),
    ]
    targets = sector_balanced(holdings, max_sector_pct=25)

    assert _sector_total(targets, ["A", "B"]) == pytest.approx(25.0)
    assert targets["C"] == pytest.approx(25.0)
    assert targets["D"] > 10.0
    assert targets["E"] > 10.0
    assert sum(targets.values()) == pytest.approx(100.0)


def test_sector_balanced_renormalizes_when_every_sector_is_capped() -> None:
    holdings = [_holding(s, 100, sector) for s, sector in zip("ABCD", "WXYZ", strict=True)]
    targets = sector_balanced(holdings, max_sector_pct=20)
    assert targets == pytest.approx({"A": 25.0, "B": 25.0, "C": 25.0, "D": 25.0})


def test_sector_balanced_validates_ceiling() -> None:
    with pytest.raises(ParameterError, match="max_sector_pct"):
        sector_balanced([_holding("A", 100)], max_sector_pct=0)


def test_risk_parity_uses_inverse_volatility() -> None:
    holdings = [_holding("A", 100), _holding("B", 100)]
    targets = risk_parity(holdings, {"A": 10.0, "B": 20.0})
    assert targets == pytest.approx({"A": 200 / 3, "B": 100 / 3})


def test_risk_parity_falls_back_to_sector_estimates() -> None:
    holdings = [_holding("A", 100, "Utilities"), _holding("B", 100, "Energy")]
    targets = risk_parity(holdings)
    expected_a = (1 / 15) / (1 / 15 + 1 / 35) * 100
    assert targets["A"] == pytest.approx(expected_a)
    assert targets["A"] + targets["B"] == pytest.approx(100.0)


def test_risk_parity_with_zero_volatility_is_equal_weight() -> None:
    holdings = [_holding("A", 100), _holding("B", 300)]
    assert risk_parity(holdings, {"A": 0.0, "B": 0.0}) == pytest.approx({"A": 50.0, "B": 50.0})


def test_market_cap_weight() -> None:
    holdings = [_holding("A", 100), _holding("B", 100)]
    assert market_cap_weight(holdings, {"A": 3e9, "B": 1e9}) == pytest.approx(
        {"A": 75.0, "B": 25.0}
    )
    with pytest.raises(ParameterError, match="market_caps"):
        market_cap_weight(holdings, {})


def test_custom_targets_are_validated() -> None:
    holdings = [_holding("A", 100), _holding("B", 100), _holding("C", 100)]
    assert custom(holdings, {"A": 60, "B": 40}) == {"A": 60.0, "B": 40.0, "C": 0.0}
    with pytest.raises(ParameterError, match="sum to 100"):
        custom(holdings, {"A": 60, "B": 39})
    with pytest.raises(ParameterError, match="unknown symbols"):
        custom(holdings, {"A": 50, "Z": 50})
    with pytest.raises(ParameterError, match="non-negative"):
        custom(holdings, {"A": 110, "B": -10})


def test_target_allocations_dispatch_requires_inputs() -> None:
    holdings = [_holding("A", 100), _holding("B", 100)]
    assert target_allocations(holdings, "equal_weight") == pytest.approx({"A": 50, "B": 50})
    with pytest.raises(ParameterError, match="custom_targets are required"):
        target_allocations(holdings, "custom")
    with pytest.raises(ParameterError, match="market_caps are required"):
        target_allocations(holdings, RebalanceStrategy.MARKET_CAP_WEIGHT)


def test_drift_and_needs_rebalancing() -> None:
    holdings = [_holding("A", 700), _holding("B", 300)]
    targets = {"A": 50.0, "B": 50.0}

    assert allocation_drift(holdings, targets) == pytest.approx({"A": 20.0, "B": -20.0})
    assert needs_rebalancing(holdings, targets) is True
    assert needs_rebalancing(holdings, {"A": 68.0, "B": 32.0}) is False
    assert needs_rebalancing(holdings, {"A": 68.0, "B": 32.0}, drift_threshold=1.0) is True
