"""Pydantic schemas for portfolio aggregates."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class HoldingValue(BaseModel):
    """One holding's values in the display currency."""

    model_config = ConfigDict(from_attributes=True)

    holding_id: str
    category: str
    name: str
    ticker: str | None = None
    quantity: Decimal
    invested_amount: Decimal
    current_value: Decimal
    profit_loss: Decimal
    profit_loss_percent: Decimal


class CategoryValue(BaseModel):
    """One asset category's totals in the display currency."""

    model_config = ConfigDict(from_attributes=True)

    category: str
    invested_amount: Decimal
    current_value: Decimal
    profit_loss: Decimal
    profit_loss_percent: Decimal
    portfolio_percent: Decimal


class PortfolioSummary(BaseModel):
    """Portfolio totals in the display currency."""

    model_config = ConfigDict(from_attributes=True)

    total_value: Decimal
    total_invested: Decimal
    total_profit_loss: Decimal
    total_profit_loss_percent: Decimal
    category_totals: dict[str, Decimal]
    categories: list[CategoryValue] = []
    holdings: list[HoldingValue]
    fx_rate: Decimal
    display_currency: str


class ChartPoint(BaseModel):
    """One point of the portfolio evolution chart."""

    model_config = ConfigDict(from_attributes=True)

    label: str
    value: Decimal
    timestamp: datetime


class PortfolioChart(BaseModel):
    """Portfolio evolution series for a period."""

    period: str
    points: list[ChartPoint]
