"""Yahoo Finance market data provider.

Brazilian tickers are listed on Yahoo with a ".SA" suffix and crypto assets
as "<SYMBOL>-USD" pairs; US tickers are used as-is.
"""

import logging
from datetime import datetime
from decimal import Decimal

import yfinance as yf

from portfolio_engine.constants import Market
from portfolio_engine.services.market_data.base import MarketDataProvider, PricePoint, Quote
from portfolio_engine.services.portfolio.valuation_types import ZERO, percent_of

logger = logging.getLogger(__name__)

# Chart period -> (yfinance period, bar interval)
HISTORY_RANGES = {
    "1d": ("1d", "5m"),
    "1w": ("5d", "1h"),
    "1m": ("1mo", "1d"),
    "6m": ("6mo", "1d"),
    "1y": ("1y", "1d"),
    "total": ("2y", "1wk"),
}
DEFAULT_RANGE = ("max", "1mo")


def to_yahoo_symbol(symbol: str, market: str) -> str:
    """Map a holding ticker to the symbol Yahoo Finance lists it under.

    Examples:
        >>> to_yahoo_symbol("petr4", "br")
        'PETR4.SA'
        >>> to_yahoo_symbol("BTC", "crypto")
        'BTC-USD'
    """
    symbol = symbol.strip().upper()
    if market == Market.BR and "." not in symbol:
        return f"{symbol}.SA"
    if market == Market.CRYPTO and "-" not in symbol:
        return f"{symbol}-USD"
    return symbol


def _to_decimal(value) -> Decimal | None:
    if value is None or value != value:  # NaN
        return None
    return Decimal(str(float(value)))


class YFinanceMarketDataProvider(MarketDataProvider):
    """Market data from Yahoo Finance via yfinance.

    Usage:
        provider = YFinanceMarketDataProvider()
        quote = provider.quote("PETR4", "br")
        history = provider.history("AAPL", "usa", "6m")
    """

    def quote(self, symbol: str, market: str) -> Quote | None:
        """Latest close with day-over-day change.

        Args:
            symbol: Holding ticker (without Yahoo suffixes)
            market: Market.BR, Market.USA or Market.CRYPTO

        Returns:
            Quote or None if Yahoo has no data for the symbol
        """
        yahoo_symbol = to_yahoo_symbol(symbol, market)
        try:
            history = yf.Ticker(yahoo_symbol).history(period="5d")

            if history.empty or "Close" not in history.columns:
                logger.warning(f"No quote data for {yahoo_symbol}")
                return None

            closes = history["Close"].dropna()
            if closes.empty:
                logger.warning(f"No closing price for {yahoo_symbol}")
                return None

            price = _to_decimal(closes.iloc[-1])
            previous = _to_decimal(closes.iloc[-2]) if len(closes) > 1 else None
            change_percent = percent_of(price - previous, previous) if previous else ZERO

            last_row = history.iloc[-1]
            return Quote(
                symbol=symbol,
                price=price,
                change_percent=change_percent,
                high=_to_decimal(last_row.get("High")),
                low=_to_decimal(last_row.get("Low")),
                timestamp=datetime.now(),
            )

        except Exception as e:
            logger.error(f"Error fetching quote for {yahoo_symbol}: {e}")
            return None

    def history(self, symbol: str, market: str, period: str) -> list[PricePoint]:
        """Closing prices covering a chart period.

        Args:
            symbol: Holding ticker (without Yahoo suffixes)
            market: Market.BR, Market.USA or Market.CRYPTO
            period: Chart period key ("1d", "1w", "1m", "6m", "1y", "total")

        Returns:
            List of PricePoint objects, oldest first; empty on any failure
        """
        yahoo_symbol = to_yahoo_symbol(symbol, market)
        yf_period, interval = HISTORY_RANGES.get(period, DEFAULT_RANGE)
        try:
            history = yf.Ticker(yahoo_symbol).history(period=yf_period, interval=interval)

            if history.empty:
                logger.warning(f"No historical data for {yahoo_symbol}")
                return []

            results = []
            for idx, row in history.iterrows():
                close_price = _to_decimal(row.get("Close"))
                if close_price is not None:
                    results.append(PricePoint(date=idx.to_pydatetime(), price=close_price))

            logger.info(f"Fetched {len(results)} historical prices for {yahoo_symbol}")
            return results

        except Exception as e:
            logger.error(f"Error fetching historical data for {yahoo_symbol}: {e}")
            return []
