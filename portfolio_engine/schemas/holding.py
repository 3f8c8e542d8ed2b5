"""Pydantic schemas for holdings."""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

from portfolio_engine.constants import AssetCategory, RateType

_RATE_TYPES = {RateType.PRE, RateType.POS, RateType.CDI, RateType.IPCA}
_CLEARABLE_FIELDS = {"ticker", "interest_rate", "purchase_date", "maturity_date", "notes"}


def _check_category(value: str) -> str:
    if value not in AssetCategory.ALL:
        raise ValueError(f"Unknown asset category: {value}")
    return value


Category = Annotated[str, AfterValidator(_check_category)]


class HoldingBuy(BaseModel):
    """Schema for recording a buy."""

    category: Category
    name: str = Field(..., min_length=1, max_length=200)
    ticker: str | None = Field(None, max_length=30)
    quantity: Decimal = Field(..., gt=0, description="Units bought")
    price: Decimal = Field(..., ge=0, description="Price paid per unit")
    current_price: Decimal | None = Field(None, ge=0, description="Latest market price, if known")
    interest_rate: Decimal | None = Field(None, description="Quoted fixed-income rate")
    rate_type: str | None = Field(None, description="pre, pos, cdi or ipca")
    purchase_date: date | None = None
    maturity_date: date | None = None
    notes: str | None = None
    tags: list[str] = Field(default_factory=list)
    trade_date: date | None = Field(None, description="Trade date (default: today)")

    @field_validator("rate_type")
    @classmethod
    def check_rate_type(cls, value: str | None) -> str | None:
        if value is not None and value not in _RATE_TYPES:
            raise ValueError(f"Unknown rate type: {value}")
        return value


class HoldingSell(BaseModel):
    """Schema for recording a sell."""

    quantity: Decimal = Field(..., gt=0)
    price: Decimal = Field(..., ge=0)
    trade_date: date | None = Field(None, description="Trade date (default: today)")


class HoldingUpdate(BaseModel):
    """Schema for a direct edit of a holding.

    invested_amount is recomputed from quantity x average_price unless it is
    set explicitly.
    """

    category: Category | None = None
    name: str | None = Field(None, min_length=1, max_length=200)
    ticker: str | None = Field(None, max_length=30)
    quantity: Decimal | None = Field(None, ge=0)
    average_price: Decimal | None = Field(None, ge=0)
    current_price: Decimal | None = Field(None, ge=0)
    invested_amount: Decimal | None = Field(None, ge=0)
    interest_rate: Decimal | None = None
    purchase_date: date | None = None
    maturity_date: date | None = None
    notes: str | None = None
    tags: list[str] | None = None

    def changes(self) -> dict:
        """Fields the client sent; null clears only optional fields."""
        sent = self.model_dump(exclude_unset=True)
        return {
            field: value
            for field, value in sent.items()
            if value is not None or field in _CLEARABLE_FIELDS
        }


class Holding(BaseModel):
    """Schema for holding responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    category: str
    name: str
    ticker: str | None = None
    quantity: Decimal
    average_price: Decimal
    current_price: Decimal
    invested_amount: Decimal
    current_value: Decimal
    profit_loss: Decimal
    profit_loss_percent: Decimal
    interest_rate: Decimal | None = None
    purchase_date: date | None = None
    maturity_date: date | None = None
    notes: str | None = None
    tags: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SellResponse(BaseModel):
    """Outcome of a sell."""

    model_config = ConfigDict(from_attributes=True)

    remaining: Holding | None = Field(None, description="Remaining position; null when closed")
    realized_profit_loss: Decimal
    realized_profit_loss_percent: Decimal
    sold_quantity: Decimal
    cost_basis: Decimal
