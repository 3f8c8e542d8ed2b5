"""Record store interface.

The engine reads and writes holdings and transactions only through this
interface. Implementations own identifier generation and timestamps.

Naming conventions:
- find_* : Query that may return None
- get_* : Query that raises NotFoundError if missing
- insert_* : Insert new record
- update_* : Modify existing record
- delete_* : Remove record; absent records are not an error
"""

import uuid
from abc import ABC, abstractmethod
from typing import Any

from portfolio_engine.services.portfolio.valuation_types import (
    HoldingState,
    MergeWrite,
    TransactionRecord,
)
from portfolio_engine.services.repositories.exceptions import NotFoundError

# Fields callers may change through update_holding()
UPDATABLE_HOLDING_FIELDS = frozenset(
    {
        "category",
        "name",
        "ticker",
        "quantity",
        "average_price",
        "current_price",
        "invested_amount",
        "current_value",
        "interest_rate",
        "purchase_date",
        "maturity_date",
        "notes",
        "tags",
    }
)


def new_id() -> str:
    return str(uuid.uuid4())


class RecordStore(ABC):
    """Persistence for one deployment's holdings and transactions."""

    @abstractmethod
    def list_holdings(self, user_id: str) -> list[HoldingState]:
        """All holdings of a user, in no particular order."""

    @abstractmethod
    def find_holding(self, holding_id: str) -> HoldingState | None:
        """Find holding by id."""

    def get_holding(self, holding_id: str) -> HoldingState:
        """Get holding by id, raising NotFoundError if missing."""
        holding = self.find_holding(holding_id)
        if holding is None:
            raise NotFoundError("Holding", holding_id)
        return holding

    @abstractmethod
    def insert_holding(self, holding: HoldingState) -> HoldingState:
        """Insert a holding; assigns id and timestamps when missing."""

    @abstractmethod
    def update_holding(self, holding_id: str, changes: dict[str, Any]) -> HoldingState | None:
        """Apply field changes and bump updated_at.

        Returns:
            Updated holding, or None if the holding no longer exists
        """

    @abstractmethod
    def delete_holding(self, holding_id: str) -> bool:
        """Delete a holding. Returns False if it was already gone."""

    @abstractmethod
    def list_transactions(self, user_id: str) -> list[TransactionRecord]:
        """All transactions of a user, newest first."""

    @abstractmethod
    def insert_transaction(self, transaction: TransactionRecord) -> TransactionRecord:
        """Insert a transaction; assigns id and created_at when missing."""

    @abstractmethod
    def delete_transaction(self, transaction_id: str) -> bool:
        """Delete a transaction. Returns False if it was already gone."""

    @abstractmethod
    def repoint_transactions(self, old_holding_id: str, new_holding_id: str) -> int:
        """Move transactions from one holding to another.

        Returns:
            Number of transactions moved
        """

    @abstractmethod
    def merge_holdings(
        self, survivor_id: str, changes: dict[str, Any], retired_ids: list[str]
    ) -> MergeWrite | None:
        """Collapse duplicate holdings into a survivor in a single write.

        Applies changes to the survivor, moves the transactions of every
        retired holding to it and deletes the retired holdings. Either all of
        it is persisted or none of it is.

        Returns:
            What was written, or None if the survivor no longer exists
        """
