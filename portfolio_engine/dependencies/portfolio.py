"""Request-scoped dependencies for portfolio routes."""

from functools import lru_cache

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from portfolio_engine.config import settings
from portfolio_engine.database import get_db
from portfolio_engine.services.market_data import (
    BcbEconomicRatesProvider,
    EconomicRatesProvider,
    ExchangeRateProvider,
    MarketDataService,
    YFinanceExchangeRateProvider,
    YFinanceMarketDataProvider,
)
from portfolio_engine.services.portfolio.portfolio_service import PortfolioService
from portfolio_engine.services.repositories import (
    LocalFileRecordStore,
    RecordStore,
    SqlRecordStore,
)

# Owner of the local file store when no user id is sent
LOCAL_USER_ID = "local"


def get_user_id(x_user_id: str | None = Header(None)) -> str:
    """Caller identity from the X-User-Id header (local user when absent)."""
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    return LOCAL_USER_ID


@lru_cache
def get_local_store() -> LocalFileRecordStore:
    """Process-wide local store; its lock serializes file access."""
    return LocalFileRecordStore(settings.local_store_dir)


def get_record_store(
    x_user_id: str | None = Header(None),
    db: Session = Depends(get_db),
    local_store: LocalFileRecordStore = Depends(get_local_store),
) -> RecordStore:
    """Database store for identified users, local file store otherwise."""
    if x_user_id and x_user_id.strip():
        return SqlRecordStore(db)
    return local_store


@lru_cache
def get_exchange_rate_provider() -> ExchangeRateProvider:
    """Shared provider so the rate cache survives across requests."""
    return YFinanceExchangeRateProvider()


@lru_cache
def get_economic_rates_provider() -> EconomicRatesProvider:
    """Shared provider so CDI/IPCA are fetched at most once per cache window."""
    return BcbEconomicRatesProvider()


@lru_cache
def get_market_data_service() -> MarketDataService:
    return MarketDataService(YFinanceMarketDataProvider())


def get_portfolio_service(
    store: RecordStore = Depends(get_record_store),
    exchange_rates: ExchangeRateProvider = Depends(get_exchange_rate_provider),
    market_data: MarketDataService = Depends(get_market_data_service),
    economic_rates: EconomicRatesProvider = Depends(get_economic_rates_provider),
) -> PortfolioService:
    """
    Portfolio service bound to the caller's store.

    Usage:
        @router.get("/summary")
        def summary(service: PortfolioService = Depends(get_portfolio_service)):
            ...
    """
    return PortfolioService(store, exchange_rates, market_data, economic_rates=economic_rates)
