from __future__ import annotations

import logging

import pandas as pd

from alphaquant.cache import TTLCache
from alphaquant.data.base import MarketDataProvider

logger = logging.getLogger(__name__)


class CachedProvider(MarketDataProvider):
    """Serve repeated OHLCV requests from a TTL cache in front of another provider."""

    def __init__(self, provider: MarketDataProvider, cache: TTLCache[pd.DataFrame]) -> None:
        self.provider = provider
        self.cache = cache

    def fetch_ohlcv(
        self,
        symbol: str,
        period: str = "1y",
        interval: str = "1d",
    ) -> pd.DataFrame:
        key = (symbol.strip().upper(), period, interval)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return cached.copy()

        frame = self.provider.fetch_ohlcv(symbol, period=period, interval=interval)
        self.cache.set(key, frame)
        return frame.copy()
