from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from alphaquant.domain.models import PortfolioHolding
from alphaquant.portfolio import allocations, sector_allocation

logger = logging.getLogger(__name__)

SECTOR_WARNING_PCT = 30.0
SECTOR_CRITICAL_PCT = 40.0
SECTOR_DIVERSIFIED_PCT = 25.0
POSITION_WARNING_PCT = 15.0
POSITION_CRITICAL_PCT = 20.0
MIN_HOLDINGS = 8
CRITICAL_HOLDINGS = 5
WELL_DIVERSIFIED_HOLDINGS = 10
WELL_DIVERSIFIED_SECTORS = 5
STRONG_RETURN_PCT = 10.0
UNDERPERFORMER_PCT = -10.0


class SuggestionType(StrEnum):
    DIVERSIFICATION = "diversification"
    RISK = "risk"
    PERFORMANCE = "performance"


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(slots=True, frozen=True)
class OptimizationSuggestion:
    type: SuggestionType
    priority: Priority
    title: str
    description: str
    impact: str
    action_items: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class PortfolioProfile:
    """Concentration and return figures the review rules read. Percentages are 0-100."""

    holdings_count: int
    sector_count: int
    dominant_sector: str | None
    max_sector_pct: float
    max_position_pct: float
    total_return_pct: float
    underperformers: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class PortfolioReview:
    score: int
    strengths: tuple[str, ...]
    weaknesses: tuple[str, ...]
    suggestions: tuple[OptimizationSuggestion, ...]


def profile_portfolio(holdings: Sequence[PortfolioHolding]) -> PortfolioProfile:
    sectors = sector_allocation(holdings)
    weights = allocations(holdings)
    cost = sum(holding.cost_basis for holding in holdings)
    gain = sum(holding.gain for holding in holdings)
    return PortfolioProfile(
        holdings_count=len(holdings),
        sector_count=len(sectors),
        dominant_sector=sectors[0].sector if sectors else None,
        max_sector_pct=sectors[0].weight if sectors else 0.0,
        max_position_pct=max(weights.values(), default=0.0),
        total_return_pct=(gain / cost) * 100 if cost > 0 else 0.0,
        underperformers=tuple(
            holding.symbol for holding in holdings if holding.gain_pct < UNDERPERFORMER_PCT
        ),
    )


def health_score(profile: PortfolioProfile) -> int:
    """Start from 100 and deduct for each concentration or loss rule that fires."""
    score = 100
    if profile.max_sector_pct > SECTOR_CRITICAL_PCT:
        score -= 20
    elif profile.max_sector_pct > SECTOR_WARNING_PCT:
        score -= 10

    if profile.max_position_pct > POSITION_CRITICAL_PCT:
        score -= 15
    elif profile.max_position_pct > POSITION_WARNING_PCT:
        score -= 8

    if profile.holdings_count < CRITICAL_HOLDINGS:
        score -= 25
    elif profile.holdings_count < MIN_HOLDINGS:
        score -= 15

    if profile.total_return_pct < UNDERPERFORMER_PCT:
        score -= 15
    elif profile.total_return_pct < 0:
        score -= 5
    return max(0, min(100, score))


def suggestions(profile: PortfolioProfile) -> list[OptimizationSuggestion]:
    found: list[OptimizationSuggestion] = []
    if profile.max_sector_pct > SECTOR_WARNING_PCT:
        sector = profile.dominant_sector
        found.append(
            OptimizationSuggestion(
                type=SuggestionType.DIVERSIFICATION,
                priority=Priority.HIGH,
                title="Reduce Sector Concentration Risk",
                description=(
                    f"Your portfolio is heavily concentrated in {sector} "
                    f"({profile.max_sector_pct:.1f}%). This exposes you to sector-specific risks."
                ),
                impact=(
                    "Reducing concentration would improve risk-adjusted returns "
                    "and portfolio stability"
                ),
                action_items=(
                    f"Consider reducing {sector} allocation to below "
                    f"{SECTOR_DIVERSIFIED_PCT:g}%",
                    "Add positions in underrepresented sectors",
                    "Research opportunities in complementary sectors",
                ),
            )
        )

    if profile.max_position_pct > POSITION_WARNING_PCT:
        found.append(
            OptimizationSuggestion(
                type=SuggestionType.RISK,
                priority=Priority.MEDIUM,
                title="Rebalance Oversized Positions",
                description=(
                    f"Your largest position represents {profile.max_position_pct:.1f}% "
                    "of your portfolio, which may be too concentrated."
                ),
                impact="Better position sizing reduces single-stock risk",
                action_items=(
                    "Consider trimming positions above 10-12% of portfolio",
                    "Use proceeds to increase smaller positions or add new holdings",
                ),
            )
        )

    if profile.holdings_count < MIN_HOLDINGS:
        found.append(
            OptimizationSuggestion(
                type=SuggestionType.DIVERSIFICATION,
                priority=Priority.HIGH,
                title="Increase Portfolio Diversification",
                description=(
                    f"With only {profile.holdings_count} holdings, your portfolio may not "
                    "be adequately diversified."
                ),
                impact="More holdings reduce unsystematic risk and improve stability",
                action_items=(
                    "Target 10-15 quality holdings for optimal diversification",
                    "Look for stocks in underrepresented sectors",
                    "Consider adding international exposure",
                ),
            )
        )

    if profile.underperformers:
        found.append(
            OptimizationSuggestion(
                type=SuggestionType.PERFORMANCE,
                priority=Priority.MEDIUM,
                title="Review Underperforming Positions",
                description=(
                    f"You have {len(profile.underperformers)} position(s) with losses "
                    "exceeding 10%."
                ),
                impact="Addressing underperformers can improve overall returns",
                action_items=(
                    "Reassess investment thesis for each underperforming stock",
                    "Consider tax-loss harvesting opportunities",
                    "Decide whether to hold, average down, or exit each position",
                ),
            )
        )
    return found


def strengths(profile: PortfolioProfile) -> list[str]:
    found: list[str] = []
    if profile.holdings_count >= WELL_DIVERSIFIED_HOLDINGS:
        found.append("Well-diversified with multiple holdings")
    if profile.total_return_pct > STRONG_RETURN_PCT:
        found.append("Strong overall portfolio performance")
    if profile.max_sector_pct < SECTOR_DIVERSIFIED_PCT:
        found.append("Good sector diversification")
    if profile.sector_count >= WELL_DIVERSIFIED_SECTORS:
        found.append("Exposure across multiple sectors")
    return found or ["Portfolio established and tracking"]


def weaknesses(profile: PortfolioProfile) -> list[str]:
    found: list[str] = []
    if profile.max_sector_pct > SECTOR_WARNING_PCT:
        found.append("High concentration in single sector")
    if profile.holdings_count < MIN_HOLDINGS:
        found.append("Limited diversification")
    if profile.max_position_pct > POSITION_WARNING_PCT:
        found.append("Large individual position sizes")
    if profile.total_return_pct < 0:
        found.append("Negative portfolio returns")
    return found or ["Room for optimization"]


def review_portfolio(holdings: Sequence[PortfolioHolding]) -> PortfolioReview:
    """Score a portfolio and attach the rule-based findings.

    An empty portfolio scores 0 and gets a single prompt to add holdings.
    """
    if not holdings:
        return PortfolioReview(
            score=0,
            strengths=("Start building your portfolio by adding holdings",),
            weaknesses=("No holdings to analyze",),
            suggestions=(),
        )

    profile = profile_portfolio(holdings)
    review = PortfolioReview(
        score=health_score(profile),
        strengths=tuple(strengths(profile)),
        weaknesses=tuple(weaknesses(profile)),
        suggestions=tuple(suggestions(profile)),
    )
    logger.debug(
        "Reviewed %s holdings: score %s, %s suggestions",
        profile.holdings_count,
        review.score,
        len(review.suggestions),
    )
    return review
