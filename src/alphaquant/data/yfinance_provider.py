from __future__ import annotations

import logging
from typing import cast

import pandas as pd
import yfinance as yf  # type: ignore[import-untyped]

from alphaquant.data.base import OHLCV_COLUMNS, MarketDataProvider

logger = logging.getLogger(__name__)


class YFinanceProvider(MarketDataProvider):
    def __init__(self, auto_adjust: bool = True) -> None:
        self.auto_adjust = auto_adjust

    def _download(self, symbol: str, period: str, interval: str) -> pd.DataFrame:
        frame = cast(
            pd.DataFrame,
            yf.download(
                symbol,
                period=period,
                interval=interval,
                progress=False,
                auto_adjust=self.auto_adjust,
                threads=False,
            ),
        )
        if frame is not None and not frame.empty:
            return frame

        logger.debug("Empty download for %s, retrying via Ticker.history", symbol)
        history = yf.Ticker(symbol).history(
            period=period,
            interval=interval,
            auto_adjust=self.auto_adjust,
        )
        return cast(pd.DataFrame, history)

    def fetch_ohlcv(
        self,
        symbol: str,
        period: str = "1y",
        interval: str = "1d",
    ) -> pd.DataFrame:
        ticker = symbol.strip().upper()
        if not ticker:
            raise ValueError("symbol must be non-empty")

        frame = self._download(ticker, period=period, interval=interval)
        if frame.empty:
            raise ValueError(
                f"No data returned for symbol={ticker} period={period} interval={interval}"
            )

        if isinstance(frame.columns, pd.MultiIndex):
            frame.columns = frame.columns.get_level_values(0)

        normalized = frame.rename(columns=lambda column: str(column).lower())
        missing = set(OHLCV_COLUMNS).difference(normalized.columns)
        if missing:
            raise ValueError(f"Missing expected columns: {sorted(missing)}")

        logger.debug("Fetched %s rows for %s", len(normalized), ticker)
        return cast(pd.DataFrame, normalized[OHLCV_COLUMNS].sort_index())
