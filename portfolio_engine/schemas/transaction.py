"""Pydantic schemas for transactions."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class Transaction(BaseModel):
    """Schema for transaction responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    holding_id: str | None = None
    type: str
    category: str
    name: str
    ticker: str | None = None
    quantity: Decimal
    price: Decimal
    total: Decimal
    date: date
    profit_loss: Decimal | None = None
    profit_loss_percent: Decimal | None = None
    created_at: datetime | None = None
