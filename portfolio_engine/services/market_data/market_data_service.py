"""Unified market data access for holdings.

Routes each holding to a (symbol, market) pair and fans lookups out
concurrently. The underlying provider is blocking, so each call runs in a
worker thread; a failure only affects its own holding.
"""

import asyncio
import logging

from portfolio_engine.constants import AssetCategory
from portfolio_engine.services.market_data.base import (
    GOLD_SYMBOL,
    MarketDataProvider,
    PricePoint,
    Quote,
    market_for_category,
)
from portfolio_engine.services.portfolio.valuation_types import HoldingState

logger = logging.getLogger(__name__)


class MarketDataService:
    """Single entry point for holding-level market data.

    Example:
        service = MarketDataService(YFinanceMarketDataProvider())
        histories = await service.fetch_histories(holdings, "6m")
    """

    def __init__(self, provider: MarketDataProvider):
        self._provider = provider

    @staticmethod
    def symbol_for(holding: HoldingState) -> tuple[str, str] | None:
        """(symbol, market) for a holding, or None if it has no market price."""
        market = market_for_category(holding.category)
        if market is None:
            return None
        if holding.category == AssetCategory.GOLD:
            return GOLD_SYMBOL, market
        if not holding.ticker or not holding.ticker.strip():
            return None
        return holding.ticker.strip(), market

    def history_for(self, holding: HoldingState, period: str) -> list[PricePoint]:
        route = self.symbol_for(holding)
        if route is None:
            return []
        symbol, market = route
        return self._provider.history(symbol, market, period)

    def quote_for(self, holding: HoldingState) -> Quote | None:
        route = self.symbol_for(holding)
        if route is None:
            return None
        symbol, market = route
        return self._provider.quote(symbol, market)

    async def fetch_histories(
        self, holdings: list[HoldingState], period: str
    ) -> dict[str, list[PricePoint]]:
        """Price history per holding id, fetched concurrently.

        Holdings without a market symbol, and holdings whose fetch failed,
        map to an empty list.
        """
        results = await asyncio.gather(
            *(asyncio.to_thread(self.history_for, holding, period) for holding in holdings),
            return_exceptions=True,
        )

        histories: dict[str, list[PricePoint]] = {}
        for holding, result in zip(holdings, results):
            if isinstance(result, BaseException):
                label = holding.ticker or holding.name
                logger.warning(f"History fetch failed for {label}: {result}")
                histories[holding.id] = []
            else:
                histories[holding.id] = result
        return histories

    async def fetch_quotes(self, holdings: list[HoldingState]) -> dict[str, Quote]:
        """Latest quote per holding id; holdings without a quote are omitted."""
        results = await asyncio.gather(
            *(asyncio.to_thread(self.quote_for, holding) for holding in holdings),
            return_exceptions=True,
        )

        quotes: dict[str, Quote] = {}
        for holding, result in zip(holdings, results):
            if isinstance(result, BaseException):
                logger.warning(f"Quote fetch failed for {holding.ticker or holding.name}: {result}")
            elif result is not None:
                quotes[holding.id] = result
        return quotes
