"""Local JSON-file record store.

Fallback persistence for users without a database account: one JSON file per
user under a directory, holding both their holdings and transactions.
"""

import logging
import os
import threading
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from portfolio_engine.services.portfolio.valuation_types import (
    HoldingState,
    MergeWrite,
    TransactionRecord,
)
from portfolio_engine.services.repositories.base import (
    UPDATABLE_HOLDING_FIELDS,
    RecordStore,
    new_id,
)
from portfolio_engine.services.repositories.exceptions import StoreWriteError

logger = logging.getLogger(__name__)


class UserRecords(BaseModel):
    """On-disk layout of one user's file."""

    holdings: list[HoldingState] = Field(default_factory=list)
    transactions: list[TransactionRecord] = Field(default_factory=list)


class LocalFileRecordStore(RecordStore):
    """Record store that keeps each user's records in <directory>/<user_id>.json."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self._lock = threading.RLock()

    def _path(self, user_id: str) -> Path:
        safe_id = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in user_id)
        return self.directory / f"{safe_id}.json"

    def _load(self, user_id: str) -> UserRecords:
        path = self._path(user_id)
        if not path.exists():
            return UserRecords()
        return UserRecords.model_validate_json(path.read_text(encoding="utf-8"))

    def _save(self, user_id: str, records: UserRecords) -> None:
        path = self._path(user_id)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(records.model_dump_json(indent=2), encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            logger.exception(f"Could not write {path}")
            raise StoreWriteError("save", user_id, str(e)) from e

    def _user_files(self) -> list[Path]:
        if not self.directory.exists():
            return []
        return sorted(self.directory.glob("*.json"))

    def _owner_of_holding(self, holding_id: str) -> tuple[str, UserRecords] | None:
        for path in self._user_files():
            records = UserRecords.model_validate_json(path.read_text(encoding="utf-8"))
            for holding in records.holdings:
                if holding.id == holding_id:
                    return holding.user_id, records
        return None

    def _owner_of_transaction(self, transaction_id: str) -> tuple[str, UserRecords] | None:
        for path in self._user_files():
            records = UserRecords.model_validate_json(path.read_text(encoding="utf-8"))
            for transaction in records.transactions:
                if transaction.id == transaction_id:
                    return transaction.user_id, records
        return None

    def list_holdings(self, user_id: str) -> list[HoldingState]:
        with self._lock:
            return self._load(user_id).holdings

    def find_holding(self, holding_id: str) -> HoldingState | None:
        with self._lock:
            owner = self._owner_of_holding(holding_id)
            if owner is None:
                return None
            _, records = owner
            return next(h for h in records.holdings if h.id == holding_id)

    def insert_holding(self, holding: HoldingState) -> HoldingState:
        now = datetime.now()
        holding = replace(
            holding,
            id=holding.id or new_id(),
            created_at=holding.created_at or now,
            updated_at=holding.updated_at or now,
        )
        with self._lock:
            records = self._load(holding.user_id)
            records.holdings.append(holding)
            self._save(holding.user_id, records)
        return holding

    def update_holding(self, holding_id: str, changes: dict[str, Any]) -> HoldingState | None:
        unknown = set(changes) - UPDATABLE_HOLDING_FIELDS
        if unknown:
            raise ValueError(f"Holding fields cannot be updated: {sorted(unknown)}")

        with self._lock:
            owner = self._owner_of_holding(holding_id)
            if owner is None:
                logger.info(f"Holding {holding_id} disappeared before update")
                return None
            user_id, records = owner
            holding = next(h for h in records.holdings if h.id == holding_id)
            for field, value in changes.items():
                setattr(holding, field, list(value) if field == "tags" else value)
            holding.updated_at = datetime.now()
            self._save(user_id, records)
            return holding

    def delete_holding(self, holding_id: str) -> bool:
        with self._lock:
            owner = self._owner_of_holding(holding_id)
            if owner is None:
                return False
            user_id, records = owner
            records.holdings = [h for h in records.holdings if h.id != holding_id]
            self._save(user_id, records)
            return True

    def list_transactions(self, user_id: str) -> list[TransactionRecord]:
        with self._lock:
            transactions = self._load(user_id).transactions
        return sorted(
            transactions,
            key=lambda t: (t.date, t.created_at or datetime.min),
            reverse=True,
        )

    def insert_transaction(self, transaction: TransactionRecord) -> TransactionRecord:
        transaction = replace(
            transaction,
            id=transaction.id or new_id(),
            created_at=transaction.created_at or datetime.now(),
        )
        with self._lock:
            records = self._load(transaction.user_id)
            records.transactions.append(transaction)
            self._save(transaction.user_id, records)
        return transaction

    def delete_transaction(self, transaction_id: str) -> bool:
        with self._lock:
            owner = self._owner_of_transaction(transaction_id)
            if owner is None:
                return False
            user_id, records = owner
            records.transactions = [t for t in records.transactions if t.id != transaction_id]
            self._save(user_id, records)
            return True

    def repoint_transactions(self, old_holding_id: str, new_holding_id: str) -> int:
        moved = 0
        with self._lock:
            for path in self._user_files():
                records = UserRecords.model_validate_json(path.read_text(encoding="utf-8"))
                touched = [t for t in records.transactions if t.holding_id == old_holding_id]
                if not touched:
                    continue
                for transaction in touched:
                    transaction.holding_id = new_holding_id
                self._save(touched[0].user_id, records)
                moved += len(touched)
        return moved

    def merge_holdings(
        self, survivor_id: str, changes: dict[str, Any], retired_ids: list[str]
    ) -> MergeWrite | None:
        unknown = set(changes) - UPDATABLE_HOLDING_FIELDS
        if unknown:
            raise ValueError(f"Holding fields cannot be updated: {sorted(unknown)}")

        with self._lock:
            owner = self._owner_of_holding(survivor_id)
            if owner is None:
                logger.info(f"Holding {survivor_id} disappeared before merge")
                return None
            user_id, records = owner

            survivor = next(h for h in records.holdings if h.id == survivor_id)
            for field, value in changes.items():
                setattr(survivor, field, list(value) if field == "tags" else value)
            survivor.updated_at = datetime.now()

            retired = set(retired_ids) - {survivor_id}
            moved = 0
            for transaction in records.transactions:
                if transaction.holding_id in retired:
                    transaction.holding_id = survivor_id
                    moved += 1
            kept = [h for h in records.holdings if h.id not in retired]
            deleted = len(records.holdings) - len(kept)
            records.holdings = kept

            # Single file replace: the whole merge lands or none of it does
            self._save(user_id, records)

        return MergeWrite(
            survivor=survivor,
            transactions_repointed=moved,
            records_deleted=deleted,
        )
