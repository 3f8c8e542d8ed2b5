"""SQLAlchemy-backed record store."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portfolio_engine.models import Holding, Transaction
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


def holding_to_state(row: Holding) -> HoldingState:
    return HoldingState(
        id=row.id,
        user_id=row.user_id,
        category=row.category,
        name=row.name,
        ticker=row.ticker,
        quantity=row.quantity,
        average_price=row.average_price,
        current_price=row.current_price,
        invested_amount=row.invested_amount,
        current_value=row.current_value,
        interest_rate=row.interest_rate,
        purchase_date=row.purchase_date,
        maturity_date=row.maturity_date,
        notes=row.notes,
        tags=list(row.tags or []),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def transaction_to_record(row: Transaction) -> TransactionRecord:
    return TransactionRecord(
        id=row.id,
        user_id=row.user_id,
        holding_id=row.holding_id,
        type=row.type,
        category=row.category,
        name=row.name,
        ticker=row.ticker,
        quantity=row.quantity,
        price=row.price,
        total=row.total,
        date=row.date,
        profit_loss=row.profit_loss,
        profit_loss_percent=row.profit_loss_percent,
        created_at=row.created_at,
    )


class SqlRecordStore(RecordStore):
    """Record store over a SQLAlchemy session.

    Every write commits on success and rolls back on failure, raising
    StoreWriteError.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    @contextmanager
    def _write(self, operation: str, identifier: str) -> Iterator[None]:
        try:
            yield
            self._db.commit()
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.exception(f"{operation} failed for {identifier}")
            raise StoreWriteError(operation, identifier, str(e)) from e

    def _find_holding_row(self, holding_id: str) -> Holding | None:
        return self._db.query(Holding).filter(Holding.id == holding_id).first()

    def list_holdings(self, user_id: str) -> list[HoldingState]:
        rows = self._db.query(Holding).filter(Holding.user_id == user_id).all()
        return [holding_to_state(row) for row in rows]

    def find_holding(self, holding_id: str) -> HoldingState | None:
        row = self._find_holding_row(holding_id)
        return holding_to_state(row) if row else None

    def insert_holding(self, holding: HoldingState) -> HoldingState:
        now = datetime.now()
        row = Holding(
            id=holding.id or new_id(),
            user_id=holding.user_id,
            category=holding.category,
            name=holding.name,
            ticker=holding.ticker,
            quantity=holding.quantity,
            average_price=holding.average_price,
            current_price=holding.current_price,
            invested_amount=holding.invested_amount,
            current_value=holding.current_value,
            interest_rate=holding.interest_rate,
            purchase_date=holding.purchase_date,
            maturity_date=holding.maturity_date,
            notes=holding.notes,
            tags=list(holding.tags),
            created_at=holding.created_at or now,
            updated_at=holding.updated_at or now,
        )
        with self._write("insert_holding", row.id):
            self._db.add(row)
        logger.debug(f"Created holding {row.id} for user {row.user_id}")
        return holding_to_state(row)

    def update_holding(self, holding_id: str, changes: dict[str, Any]) -> HoldingState | None:
        unknown = set(changes) - UPDATABLE_HOLDING_FIELDS
        if unknown:
            raise ValueError(f"Holding fields cannot be updated: {sorted(unknown)}")

        row = self._find_holding_row(holding_id)
        if row is None:
            logger.info(f"Holding {holding_id} disappeared before update")
            return None

        with self._write("update_holding", holding_id):
            for field, value in changes.items():
                setattr(row, field, list(value) if field == "tags" else value)
            row.updated_at = datetime.now()
        return holding_to_state(row)

    def delete_holding(self, holding_id: str) -> bool:
        row = self._find_holding_row(holding_id)
        if row is None:
            return False
        with self._write("delete_holding", holding_id):
            self._db.delete(row)
        return True

    def list_transactions(self, user_id: str) -> list[TransactionRecord]:
        rows = (
            self._db.query(Transaction)
            .filter(Transaction.user_id == user_id)
            .order_by(Transaction.date.desc(), Transaction.created_at.desc())
            .all()
        )
        return [transaction_to_record(row) for row in rows]

    def insert_transaction(self, transaction: TransactionRecord) -> TransactionRecord:
        row = Transaction(
            id=transaction.id or new_id(),
            user_id=transaction.user_id,
            holding_id=transaction.holding_id,
            type=transaction.type,
            category=transaction.category,
            name=transaction.name,
            ticker=transaction.ticker,
            quantity=transaction.quantity,
            price=transaction.price,
            total=transaction.total,
            date=transaction.date,
            profit_loss=transaction.profit_loss,
            profit_loss_percent=transaction.profit_loss_percent,
            created_at=transaction.created_at or datetime.now(),
        )
        with self._write("insert_transaction", row.id):
            self._db.add(row)
        return transaction_to_record(row)

    def delete_transaction(self, transaction_id: str) -> bool:
        row = self._db.query(Transaction).filter(Transaction.id == transaction_id).first()
        if row is None:
            return False
        with self._write("delete_transaction", transaction_id):
            self._db.delete(row)
        return True

    def repoint_transactions(self, old_holding_id: str, new_holding_id: str) -> int:
        with self._write("repoint_transactions", old_holding_id):
            moved = (
                self._db.query(Transaction)
                .filter(Transaction.holding_id == old_holding_id)
                .update({Transaction.holding_id: new_holding_id}, synchronize_session=False)
            )
        return moved

    def merge_holdings(
        self, survivor_id: str, changes: dict[str, Any], retired_ids: list[str]
    ) -> MergeWrite | None:
        unknown = set(changes) - UPDATABLE_HOLDING_FIELDS
        if unknown:
            raise ValueError(f"Holding fields cannot be updated: {sorted(unknown)}")

        row = self._find_holding_row(survivor_id)
        if row is None:
            logger.info(f"Holding {survivor_id} disappeared before merge")
            return None

        retired_rows = []
        if retired_ids:
            retired_rows = self._db.query(Holding).filter(Holding.id.in_(retired_ids)).all()

        # One commit: a failure rolls back the survivor update too
        with self._write("merge_holdings", survivor_id):
            for field, value in changes.items():
                setattr(row, field, list(value) if field == "tags" else value)
            row.updated_at = datetime.now()
            moved = 0
            if retired_ids:
                moved = (
                    self._db.query(Transaction)
                    .filter(Transaction.holding_id.in_(retired_ids))
                    .update({Transaction.holding_id: survivor_id}, synchronize_session=False)
                )
            for retired in retired_rows:
                self._db.delete(retired)

        return MergeWrite(
            survivor=holding_to_state(row),
            transactions_repointed=moved,
            records_deleted=len(retired_rows),
        )
