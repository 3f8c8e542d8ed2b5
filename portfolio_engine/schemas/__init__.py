"""Pydantic schemas for API validation."""

from portfolio_engine.schemas.holding import (
    Holding,
    HoldingBuy,
    HoldingSell,
    HoldingUpdate,
    SellResponse,
)
from portfolio_engine.schemas.portfolio import (
    CategoryValue,
    ChartPoint,
    HoldingValue,
    PortfolioChart,
    PortfolioSummary,
)
from portfolio_engine.schemas.transaction import Transaction

__all__ = [
    "CategoryValue",
    "ChartPoint",
    "Holding",
    "HoldingBuy",
    "HoldingSell",
    "HoldingUpdate",
    "HoldingValue",
    "PortfolioChart",
    "PortfolioSummary",
    "SellResponse",
    "Transaction",
]
