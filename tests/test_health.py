from __future__ import annotations

import pytest

from alphaquant.domain.models import PortfolioHolding
from alphaquant.health import (
    Priority,
    SuggestionType,
    health_score,
    profile_portfolio,
    review_portfolio,
)


def _concentrated() -> list[PortfolioHolding]:
    return [
        PortfolioHolding("AAA", 10, 20, 30, sector="Technology"),
        PortfolioHolding("BBB", 5, 20, 20, sector="Technology"),
        PortfolioHolding("CCC", 10, 20, 10, sector="Energy"),
    ]


def _spread(count: int, sectors: list[str], price: float) -> list[PortfolioHolding]:
    return [
        PortfolioHolding(f"S{i:02d}", 10, 10, price, sector=sectors[i % len(sectors)])
        for i in range(count)
    ]


def test_profile_reads_concentration_and_return() -> None:
    profile = profile_portfolio(_concentrated())

    assert profile.holdings_count == 3
    assert profile.sector_count == 2
    assert profile.dominant_sector == "Technology"
    assert profile.max_sector_pct == pytest.approx(80.0)
    assert profile.max_position_pct == pytest.approx(60.0)
    assert profile.total_return_pct == pytest.approx(0.0)
    assert profile.underperformers == ("CCC",)


def test_concentrated_portfolio_review() -> None:
    review = review_portfolio(_concentrated())

    assert review.score == 100 - 20 - 15 - 25
    assert review.strengths == ("Portfolio established and tracking",)
    assert review.weaknesses == (
        "High concentration in single sector",
        "Limited diversification",
        "Large individual position sizes",
    )
    assert [item.title for item in review.suggestions] == [
        "Reduce Sector Concentration Risk",
        "Rebalance Oversized Positions",
        "Increase Portfolio Diversification",
        "Review Underperforming Positions",
    ]

    sector = review.suggestions[0]
    assert sector.type is SuggestionType.DIVERSIFICATION
    assert sector.priority is Priority.HIGH
    assert "concentrated in Technology (80.0%)" in sector.description
    assert sector.action_items[0] == "Consider reducing Technology allocation to below 25%"
    assert review.suggestions[1].priority is Priority.MEDIUM
    assert "1 position(s)" in review.suggestions[3].description


def test_diversified_winning_portfolio_scores_full_marks() -> None:
    sectors = ["Technology", "Energy", "Health", "Financials", "Utilities"]
    review = review_portfolio(_spread(10, sectors, price=12))

    assert review.score == 100
    assert review.suggestions == ()
    assert review.strengths == (
        "Well-diversified with multiple holdings",
        "Strong overall portfolio performance",
        "Good sector diversification",
        "Exposure across multiple sectors",
    )
    assert review.weaknesses == ("Room for optimization",)


def test_losing_portfolio_takes_every_partial_deduction() -> None:
    holdings = _spread(6, ["Technology", "Energy", "Health"], price=8)
    profile = profile_portfolio(holdings)

    assert profile.total_return_pct == pytest.approx(-20.0)
    assert health_score(profile) == 100 - 10 - 8 - 15 - 15

    review = review_portfolio(holdings)
    assert review.weaknesses[-1] == "Negative portfolio returns"
    assert "6 position(s) with losses exceeding 10%" in review.suggestions[-1].description


def test_small_loss_costs_five_points() -> None:
    holdings = _spread(10, ["A", "B", "C", "D", "E"], price=9.5)
    assert review_portfolio(holdings).score == 95


def test_empty_portfolio_prompts_for_holdings() -> None:
    review = review_portfolio([])

    assert review.score == 0
    assert review.suggestions == ()
    assert review.strengths == ("Start building your portfolio by adding holdings",)
    assert review.weaknesses == ("No holdings to analyze",)
