"""Market data provider interface and shared value types."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from portfolio_engine.constants import AssetCategory, Market

# Gold is tracked through COMEX gold futures (USD per troy ounce)
GOLD_SYMBOL = "GC=F"

_MARKET_BY_CATEGORY = {
    AssetCategory.STOCKS: Market.BR,
    AssetCategory.FII: Market.BR,
    AssetCategory.BDR: Market.BR,
    AssetCategory.ETF: Market.BR,
    AssetCategory.USA_STOCKS: Market.USA,
    AssetCategory.REITS: Market.USA,
    AssetCategory.GOLD: Market.USA,
    AssetCategory.CRYPTO: Market.CRYPTO,
}


@dataclass
class PricePoint:
    """Single price data point."""

    date: date | datetime
    price: Decimal
    source: str = "yfinance"


@dataclass
class Quote:
    """Latest observed price for a symbol."""

    symbol: str
    price: Decimal
    change_percent: Decimal
    high: Decimal | None = None
    low: Decimal | None = None
    timestamp: datetime | None = None


def market_for_category(category: str) -> str | None:
    """Market a category is quoted on, or None when it has no market price."""
    return _MARKET_BY_CATEGORY.get(category)


class MarketDataProvider(ABC):
    """Abstract base class for market data providers.

    Implementations never raise for unknown symbols or upstream failures:
    quote() returns None and history() returns an empty list.
    """

    @abstractmethod
    def quote(self, symbol: str, market: str) -> Quote | None:
        """Fetch the latest quote for a symbol on a market."""

    @abstractmethod
    def history(self, symbol: str, market: str, period: str) -> list[PricePoint]:
        """Fetch price observations covering a chart period, oldest first."""
