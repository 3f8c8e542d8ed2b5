"""Shared test fixtures."""

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from portfolio_engine.database import Base, get_db
from portfolio_engine.dependencies.portfolio import (
    get_economic_rates_provider,
    get_exchange_rate_provider,
    get_local_store,
    get_market_data_service,
)
from portfolio_engine.main import app
from portfolio_engine.services.market_data import (
    MarketDataProvider,
    MarketDataService,
    StaticEconomicRatesProvider,
    StaticExchangeRateProvider,
)
from portfolio_engine.services.portfolio.valuation_types import HoldingState
from portfolio_engine.services.repositories import LocalFileRecordStore

FX_RATE = Decimal("5")


class FakeMarketDataProvider(MarketDataProvider):
    """In-memory provider keyed by (symbol, market)."""

    def __init__(self, quotes=None, histories=None):
        self.quotes = quotes or {}
        self.histories = histories or {}
        self.calls = []

    def quote(self, symbol, market):
        self.calls.append(("quote", symbol, market))
        return self.quotes.get((symbol, market))

    def history(self, symbol, market, period):
        self.calls.append(("history", symbol, market, period))
        value = self.histories.get((symbol, market), [])
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture
def make_holding():
    """Factory for HoldingState with sensible defaults."""

    def _make(**overrides) -> HoldingState:
        quantity = overrides.pop("quantity", Decimal("10"))
        average_price = overrides.pop("average_price", Decimal("20"))
        current_price = overrides.pop("current_price", average_price)
        fields = {
            "id": "h1",
            "user_id": "user-1",
            "category": "stocks",
            "name": "Petrobras",
            "ticker": "PETR4",
            "quantity": quantity,
            "average_price": average_price,
            "current_price": current_price,
            "invested_amount": quantity * average_price,
            "current_value": quantity * current_price,
            "created_at": datetime(2024, 1, 1),
            "updated_at": datetime(2024, 1, 1),
        }
        fields.update(overrides)
        return HoldingState(**fields)

    return _make


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    """Database session."""
    session_maker = sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )
    session = session_maker()
    yield session
    session.close()


@pytest.fixture
def fake_provider():
    return FakeMarketDataProvider()


@pytest.fixture
def client(engine, tmp_path, fake_provider):
    """Test client with in-memory database, temp local store and fake market data.

    Yields a tuple of (TestClient, FakeMarketDataProvider).
    """
    session_maker = sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )

    def override_get_db():
        db = session_maker()
        try:
            yield db
        finally:
            db.close()

    local_store = LocalFileRecordStore(tmp_path / "local")

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_local_store] = lambda: local_store
    app.dependency_overrides[get_exchange_rate_provider] = lambda: StaticExchangeRateProvider(
        FX_RATE
    )
    app.dependency_overrides[get_market_data_service] = lambda: MarketDataService(fake_provider)
    app.dependency_overrides[get_economic_rates_provider] = lambda: StaticEconomicRatesProvider()

    with TestClient(app) as test_client:
        yield test_client, fake_provider

    app.dependency_overrides.clear()
