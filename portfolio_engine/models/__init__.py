"""SQLAlchemy ORM models."""

from portfolio_engine.models.holding import Holding
from portfolio_engine.models.transaction import Transaction

__all__ = [
    "Holding",
    "Transaction",
]
