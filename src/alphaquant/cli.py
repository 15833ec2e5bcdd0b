from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict, is_dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from alphaquant.allocation import RebalanceStrategy, needs_rebalancing
from alphaquant.config import Settings
from alphaquant.data.base import MarketDataProvider, frame_to_bars
from alphaquant.data.yfinance_provider import YFinanceProvider
from alphaquant.domain.models import PortfolioHolding, PortfolioSnapshot, PriceBar
from alphaquant.health import review_portfolio
from alphaquant.indicators import compute, parse_params
from alphaquant.logging_config import configure_logging
from alphaquant.rebalancing import build_plan
from alphaquant.risk import analyze_snapshots, compare_to_benchmark, holding_volatilities
from alphaquant.technical import describe_snapshot, evaluate_snapshot

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="AlphaQuant CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    fetch = subparsers.add_parser("fetch", help="Download OHLCV data")
    fetch.add_argument("--symbol", default="SPY")
    fetch.add_argument("--period", default="1y")
    fetch.add_argument("--interval", default="1d")
    fetch.add_argument("--output", default="data/latest.csv")

    analyze = subparsers.add_parser("analyze", help="Evaluate the latest technical snapshot")
    _add_bar_source(analyze)

    indicator = subparsers.add_parser("indicator", help="Compute one indicator series")
    _add_bar_source(indicator)
    indicator.add_argument("--kind", required=True, help="e.g. rsi, macd, bollinger")
    indicator.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Indicator parameter, repeatable",
    )

    risk = subparsers.add_parser("risk", help="Risk metrics from portfolio value snapshots")
    risk.add_argument(
        "--snapshots",
        required=True,
        help="CSV with timestamp,total_value[,total_cost]",
    )
    risk.add_argument("--holdings", default=None, help="Optional holdings CSV for concentration")
    risk.add_argument("--period", default="1y", help="Benchmark history to download")

    review = subparsers.add_parser("review", help="Rule-based portfolio health review")
    review.add_argument("--holdings", required=True, help="Holdings CSV")

    rebalance = subparsers.add_parser("rebalance", help="Plan trades toward target allocations")
    rebalance.add_argument(
        "--holdings",
        required=True,
        help="CSV with symbol,shares,avg_cost,current_price[,sector,company_name]",
    )
    rebalance.add_argument(
        "--strategy",
        choices=[strategy.value for strategy in RebalanceStrategy],
        default=RebalanceStrategy.EQUAL_WEIGHT.value,
    )
    rebalance.add_argument("--max-sector-pct", type=float, default=None)
    rebalance.add_argument(
        "--targets",
        default=None,
        help="Custom targets, e.g. AAPL=60,MSFT=40",
    )
    rebalance.add_argument(
        "--fetch-volatility",
        action="store_true",
        help="Estimate risk-parity volatilities from downloaded prices",
    )
    rebalance.add_argument("--period", default="1y")

    return parser


def _add_bar_source(command: argparse.ArgumentParser) -> None:
    source = command.add_mutually_exclusive_group()
    source.add_argument("--symbol", default=None)
    source.add_argument("--csv", default=None, help="OHLCV CSV written by the fetch command")
    command.add_argument("--period", default="1y")
    command.add_argument("--interval", default="1d")


def _provider(settings: Settings) -> MarketDataProvider:
    return settings.wrap_provider(YFinanceProvider())


def _handle_fetch(args: argparse.Namespace) -> int:
    provider = YFinanceProvider()
    frame = provider.fetch_ohlcv(args.symbol, period=args.period, interval=args.interval)
    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(output)
    logger.info("Saved %s rows to %s", len(frame), output)
    return 0


def _handle_analyze(args: argparse.Namespace, settings: Settings) -> int:
    bars = _load_bars(args, settings)
    snapshot = evaluate_snapshot(bars, min_bars=settings.min_snapshot_bars)
    if snapshot is None:
        payload: dict[str, Any] = {
            "status": "indicators unavailable",
            "bars": len(bars),
            "required": settings.min_snapshot_bars,
        }
    else:
        payload = {
            "status": "ok",
            "bars": len(bars),
            "snapshot": _jsonable(snapshot),
            "messages": describe_snapshot(snapshot),
        }
    print(json.dumps(payload, default=_json_default))
    return 0


def _handle_indicator(args: argparse.Namespace, settings: Settings) -> int:
    params = parse_params({"kind": args.kind, **_parse_pairs(args.param, "param")})
    bars = _load_bars(args, settings)
    result = compute(bars, params)
    payload = {
        "kind": params.kind,
        "params": params.model_dump(),
        "bars": len(bars),
        "result": _jsonable(result),
    }
    print(json.dumps(payload, default=_json_default))
    return 0


def _handle_risk(args: argparse.Namespace, settings: Settings) -> int:
    snapshots = _read_snapshots(Path(args.snapshots))
    holdings = _read_holdings(Path(args.holdings)) if args.holdings else None

    benchmark_values = None
    symbol = settings.benchmark_symbol
    if symbol and snapshots:
        closes = _provider(settings).fetch_ohlcv(symbol, period=args.period)["close"]
        benchmark_values = [float(value) for value in closes.dropna().tail(len(snapshots))]

    metrics = analyze_snapshots(
        snapshots,
        periods_per_year=settings.periods_per_year,
        holdings=holdings,
        var_confidence=settings.var_confidence,
        benchmark_values=benchmark_values,
    )
    payload: dict[str, Any] = {"snapshots": len(snapshots), "metrics": _jsonable(metrics)}
    if symbol and benchmark_values is not None:
        values = [snapshot.total_value for snapshot in snapshots]
        comparison = compare_to_benchmark(values, benchmark_values, symbol, symbol)
        payload["benchmark"] = _jsonable(comparison)
    print(json.dumps(payload, default=_json_default))
    return 0


def _handle_review(args: argparse.Namespace) -> int:
    review = review_portfolio(_read_holdings(Path(args.holdings)))
    print(json.dumps(_jsonable(review), default=_json_default))
    return 0


def _handle_rebalance(args: argparse.Namespace, settings: Settings) -> int:
    holdings = _read_holdings(Path(args.holdings))
    custom_targets = None
    if args.targets:
        pairs = _parse_pairs(args.targets.split(","), "targets")
        custom_targets = {symbol.upper(): float(value) for symbol, value in pairs.items()}

    volatilities = None
    if args.fetch_volatility:
        provider = _provider(settings)
        closes = {
            holding.symbol: provider.fetch_ohlcv(holding.symbol, period=args.period)["close"]
            for holding in holdings
        }
        volatilities = holding_volatilities(closes, settings.periods_per_year)

    plan = build_plan(
        holdings,
        args.strategy,
        config=settings.rebalance_config(args.max_sector_pct),
        volatilities=volatilities,
        custom_targets=custom_targets,
    )
    payload = _jsonable(plan)
    payload["summary"]["total_trades"] = plan.summary.total_trades
    payload["needs_rebalancing"] = needs_rebalancing(
        holdings,
        plan.target_allocations,
        settings.drift_threshold_pct,
    )
    print(json.dumps(payload, default=_json_default))
    return 0


def _load_bars(args: argparse.Namespace, settings: Settings) -> list[PriceBar]:
    if args.csv:
        frame = pd.read_csv(args.csv, index_col=0, parse_dates=True)
        return frame_to_bars(frame.rename(columns=lambda column: str(column).lower()))
    symbol = args.symbol or settings.default_symbol
    return _provider(settings).fetch_bars(symbol, period=args.period, interval=args.interval)


def _read_snapshots(path: Path) -> list[PortfolioSnapshot]:
    frame = pd.read_csv(path, parse_dates=["timestamp"])
    if "total_value" not in frame.columns:
        raise ValueError("snapshots CSV must have a total_value column")
    frame = frame.sort_values("timestamp")
    has_cost = "total_cost" in frame.columns
    return [
        PortfolioSnapshot(
            timestamp=row.timestamp.to_pydatetime(),
            total_value=float(row.total_value),
            total_cost=float(row.total_cost) if has_cost else 0.0,
        )
        for row in frame.itertuples(index=False)
    ]


def _read_holdings(path: Path) -> list[PortfolioHolding]:
    frame = pd.read_csv(path)
    required = {"symbol", "shares", "avg_cost", "current_price"}
    missing = required.difference(frame.columns)
    if missing:
        raise ValueError(f"holdings CSV missing columns: {sorted(missing)}")

    holdings: list[PortfolioHolding] = []
    for record in frame.to_dict(orient="records"):
        sector = record.get("sector")
        name = record.get("company_name")
        holdings.append(
            PortfolioHolding(
                symbol=str(record["symbol"]).strip().upper(),
                shares=float(record["shares"]),
                avg_cost=float(record["avg_cost"]),
                current_price=float(record["current_price"]),
                sector=str(sector) if isinstance(sector, str) and sector else "Unknown",
                company_name=str(name) if isinstance(name, str) and name else None,
            )
        )
    return holdings


def _parse_pairs(items: list[str], label: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for item in items:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"{label} entries must look like NAME=VALUE, got {item!r}")
        pairs[name.strip()] = value.strip()
    return pairs


def _jsonable(value: object) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, list):
        return [_jsonable(item) for item in value]
    return value


def _json_default(value: object) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def main() -> None:
    settings = Settings()
    configure_logging(settings.log_level)

    parser = _build_parser()
    args = parser.parse_args()

    try:
        if args.command == "fetch":
            raise SystemExit(_handle_fetch(args))
        if args.command == "analyze":
            raise SystemExit(_handle_analyze(args, settings))
        if args.command == "indicator":
            raise SystemExit(_handle_indicator(args, settings))
        if args.command == "risk":
            raise SystemExit(_handle_risk(args, settings))
        if args.command == "review":
            raise SystemExit(_handle_review(args))
        if args.command == "rebalance":
            raise SystemExit(_handle_rebalance(args, settings))
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc

    raise SystemExit("Unknown command")


if __name__ == "__main__":
    main()
