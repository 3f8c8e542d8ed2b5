"""Transaction model - immutable log of buys and sells."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from portfolio_engine.database import Base


class Transaction(Base):
    """Transaction model representing one buy or sell of a holding."""

    __tablename__ = "transactions"
    __table_args__ = (
        Index("idx_transactions_user", "user_id"),
        Index("idx_transactions_holding", "holding_id"),
        Index("idx_transactions_date", "date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64))
    # No FK: legacy rows may outlive their holding
    holding_id: Mapped[str | None] = mapped_column(String(36))
    type: Mapped[str] = mapped_column(String(10))  # 'buy' or 'sell'
    category: Mapped[str] = mapped_column(String(30))
    name: Mapped[str] = mapped_column(String(200))
    ticker: Mapped[str | None] = mapped_column(String(30))
    quantity: Mapped[Decimal] = mapped_column(Numeric(28, 10))
    price: Mapped[Decimal] = mapped_column(Numeric(28, 10))
    total: Mapped[Decimal] = mapped_column(Numeric(28, 10))
    date: Mapped[date] = mapped_column(Date)
    profit_loss: Mapped[Decimal | None] = mapped_column(Numeric(28, 10))  # sells only
    profit_loss_percent: Mapped[Decimal | None] = mapped_column(Numeric(18, 8))
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    def __repr__(self) -> str:
        return (
            f"<Transaction(id={self.id}, type='{self.type}', "
            f"date={self.date}, quantity={self.quantity})>"
        )
