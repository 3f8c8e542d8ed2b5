"""External market data providers.

This module centralizes all external market data fetching:
- MarketDataProvider: Interface for quotes and price history
- YFinanceMarketDataProvider: Stocks, FIIs, ETFs, crypto and gold from Yahoo Finance
- MarketDataService: Routes holdings to symbols and fetches concurrently
- ExchangeRateProvider: USD -> display currency rate
- EconomicRatesProvider: CDI and IPCA reference rates

Usage:
    from portfolio_engine.services.market_data import (
        MarketDataService,
        YFinanceMarketDataProvider,
    )

    service = MarketDataService(YFinanceMarketDataProvider())
    histories = await service.fetch_histories(holdings, "1y")
"""

from .base import MarketDataProvider, PricePoint, Quote, market_for_category
from .economic_rates_service import (
    BcbEconomicRatesProvider,
    EconomicRates,
    EconomicRatesProvider,
    StaticEconomicRatesProvider,
)
from .exchange_rate_service import (
    ExchangeRateProvider,
    StaticExchangeRateProvider,
    YFinanceExchangeRateProvider,
)
from .market_data_service import MarketDataService
from .yfinance_provider import YFinanceMarketDataProvider

__all__ = [
    "BcbEconomicRatesProvider",
    "EconomicRates",
    "EconomicRatesProvider",
    "ExchangeRateProvider",
    "MarketDataProvider",
    "MarketDataService",
    "PricePoint",
    "Quote",
    "StaticEconomicRatesProvider",
    "StaticExchangeRateProvider",
    "YFinanceExchangeRateProvider",
    "YFinanceMarketDataProvider",
    "market_for_category",
]
