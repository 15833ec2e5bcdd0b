"""Technical indicators, portfolio risk and rebalancing."""

from alphaquant.alerts import AlertMonitor, AlertRule, evaluate_alert
from alphaquant.config import Settings
from alphaquant.errors import ParameterError
from alphaquant.health import PortfolioReview, review_portfolio
from alphaquant.rebalancing import RebalancingPlan, build_plan
from alphaquant.risk import RiskMetrics, analyze_snapshots
from alphaquant.technical import TechnicalSnapshot, evaluate_snapshot

__version__ = "0.1.0"

__all__ = [
    "AlertMonitor",
    "AlertRule",
    "ParameterError",
    "PortfolioReview",
    "RebalancingPlan",
    "RiskMetrics",
    "Settings",
    "TechnicalSnapshot",
    "analyze_snapshots",
    "build_plan",
    "evaluate_alert",
    "evaluate_snapshot",
    "review_portfolio",
    "__version__",
]
