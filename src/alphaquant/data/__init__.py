from alphaquant.data.base import MarketDataProvider, frame_to_bars
from alphaquant.data.cached_provider import CachedProvider
from alphaquant.data.yfinance_provider import YFinanceProvider

__all__ = ["CachedProvider", "MarketDataProvider", "YFinanceProvider", "frame_to_bars"]
