from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

import pandas as pd

from alphaquant.domain.models import PriceBar
from alphaquant.indicators.base import OHLCV_COLUMNS


class MarketDataProvider(ABC):
    @abstractmethod
    def fetch_ohlcv(self, symbol: str, period: str = "1y", interval: str = "1d") -> pd.DataFrame:
        """Return OHLCV data indexed by timestamp, lowercase columns, ascending."""

    def fetch_bars(self, symbol: str, period: str = "1y", interval: str = "1d") -> list[PriceBar]:
        return frame_to_bars(self.fetch_ohlcv(symbol, period=period, interval=interval))


def frame_to_bars(frame: pd.DataFrame) -> list[PriceBar]:
    missing = set(OHLCV_COLUMNS).difference(frame.columns)
    if missing:
        raise ValueError(f"Missing expected columns: {sorted(missing)}")

    ordered = frame[OHLCV_COLUMNS].dropna(subset=["open", "high", "low", "close"]).sort_index()
    bars: list[PriceBar] = []
    for timestamp, row in ordered.iterrows():
        bars.append(
            PriceBar(
                timestamp=_as_datetime(timestamp),
                open=float(row["open"]),
                high=float(row["high"]),
                low=float(row["low"]),
                close=float(row["close"]),
                volume=0.0 if pd.isna(row["volume"]) else float(row["volume"]),
            )
        )
    return bars


def _as_datetime(value: object) -> datetime:
    return pd.Timestamp(value).to_pydatetime()
