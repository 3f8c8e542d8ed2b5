"""Holding model - represents a user's current position in one asset."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import JSON, Date, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from portfolio_engine.database import Base


class Holding(Base):
    """Holding model (quantity, cost basis and current valuation of one asset)."""

    __tablename__ = "holdings"
    __table_args__ = (
        Index("idx_holdings_user", "user_id"),
        Index("idx_holdings_user_category", "user_id", "category"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64))
    category: Mapped[str] = mapped_column(String(30))
    name: Mapped[str] = mapped_column(String(200))
    ticker: Mapped[str | None] = mapped_column(String(30))
    quantity: Mapped[Decimal] = mapped_column(Numeric(28, 10), default=Decimal("0"))
    average_price: Mapped[Decimal] = mapped_column(Numeric(28, 10), default=Decimal("0"))
    current_price: Mapped[Decimal] = mapped_column(Numeric(28, 10), default=Decimal("0"))
    invested_amount: Mapped[Decimal] = mapped_column(Numeric(28, 10), default=Decimal("0"))
    current_value: Mapped[Decimal] = mapped_column(Numeric(28, 10), default=Decimal("0"))
    interest_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 6))  # effective % a.a.
    purchase_date: Mapped[date | None] = mapped_column(Date)
    maturity_date: Mapped[date | None] = mapped_column(Date)
    notes: Mapped[str | None] = mapped_column(Text)
    tags: Mapped[list | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return (
            f"<Holding(id={self.id}, category='{self.category}', "
            f"ticker={self.ticker!r}, quantity={self.quantity})>"
        )
