"""Tests for the SQL and local-file record stores.

Every test in TestRecordStore runs against both implementations.
"""

from datetime import date, datetime
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from portfolio_engine.services.portfolio.valuation_types import TransactionRecord
from portfolio_engine.services.repositories import (
    LocalFileRecordStore,
    NotFoundError,
    SqlRecordStore,
    StoreWriteError,
)


@pytest.fixture(params=["sql", "local"])
def store(request, tmp_path):
    if request.param == "sql":
        return SqlRecordStore(request.getfixturevalue("db"))
    return LocalFileRecordStore(tmp_path / "store")


@pytest.fixture
def make_transaction():
    """Factory for TransactionRecord with sensible defaults."""

    def _make(**overrides) -> TransactionRecord:
        fields = {
            "id": "",
            "user_id": "user-1",
            "holding_id": "h1",
            "type": "buy",
            "category": "stocks",
            "name": "Petrobras",
            "ticker": "PETR4",
            "quantity": Decimal("10"),
            "price": Decimal("20"),
            "total": Decimal("200"),
            "date": date(2024, 1, 1),
        }
        fields.update(overrides)
        return TransactionRecord(**fields)

    return _make


class TestRecordStore:
    """Behavior shared by every RecordStore implementation."""

    def test_insert_assigns_id_and_timestamps(self, store, make_holding):
        created = store.insert_holding(make_holding(id="", created_at=None, updated_at=None))

        assert created.id
        assert created.created_at is not None
        assert created.updated_at is not None
        assert store.find_holding(created.id).name == "Petrobras"

    def test_insert_keeps_given_id(self, store, make_holding):
        store.insert_holding(make_holding(id="h1"))

        assert store.find_holding("h1") is not None

    def test_round_trips_fields(self, store, make_holding):
        store.insert_holding(
            make_holding(
                id="cdb",
                category="cdb",
                ticker=None,
                quantity=Decimal("1"),
                average_price=Decimal("1000.50"),
                interest_rate=Decimal("12.5"),
                purchase_date=date(2023, 1, 1),
                maturity_date=date(2026, 1, 1),
                notes="Banco X",
                tags=["reserva", "longo prazo"],
            )
        )

        holding = store.find_holding("cdb")

        assert holding.average_price == Decimal("1000.50")
        assert holding.invested_amount == Decimal("1000.50")
        assert holding.interest_rate == Decimal("12.5")
        assert holding.purchase_date == date(2023, 1, 1)
        assert holding.maturity_date == date(2026, 1, 1)
        assert holding.ticker is None
        assert holding.tags == ["reserva", "longo prazo"]

    def test_list_holdings_is_scoped_to_user(self, store, make_holding):
        store.insert_holding(make_holding(id="a", user_id="user-1"))
        store.insert_holding(make_holding(id="b", user_id="user-2"))

        assert [h.id for h in store.list_holdings("user-1")] == ["a"]
        assert [h.id for h in store.list_holdings("user-2")] == ["b"]
        assert store.list_holdings("nobody") == []

    def test_get_holding_raises_when_missing(self, store):
        with pytest.raises(NotFoundError):
            store.get_holding("missing")

    def test_update_applies_changes(self, store, make_holding):
        store.insert_holding(make_holding(id="h1", updated_at=datetime(2020, 1, 1)))

        updated = store.update_holding(
            "h1", {"quantity": Decimal("15"), "average_price": Decimal("22"), "notes": "merged"}
        )

        assert updated.quantity == Decimal("15")
        assert updated.average_price == Decimal("22")
        assert updated.notes == "merged"
        assert updated.updated_at > datetime(2020, 1, 1)
        assert store.find_holding("h1").quantity == Decimal("15")

    def test_update_missing_returns_none(self, store):
        assert store.update_holding("missing", {"quantity": Decimal("1")}) is None

    def test_update_rejects_unknown_fields(self, store, make_holding):
        store.insert_holding(make_holding(id="h1"))

        with pytest.raises(ValueError):
            store.update_holding("h1", {"user_id": "someone-else"})

        assert store.find_holding("h1").user_id == "user-1"

    def test_delete_is_idempotent(self, store, make_holding):
        store.insert_holding(make_holding(id="h1"))

        assert store.delete_holding("h1") is True
        assert store.delete_holding("h1") is False
        assert store.find_holding("h1") is None

    def test_transactions_newest_first(self, store, make_transaction):
        store.insert_transaction(make_transaction(id="old", date=date(2024, 1, 1)))
        store.insert_transaction(make_transaction(id="new", date=date(2024, 3, 1)))
        for txn_id, hour in (("mid-late", 12), ("mid-early", 9)):
            store.insert_transaction(
                make_transaction(
                    id=txn_id, date=date(2024, 2, 1), created_at=datetime(2024, 2, 1, hour)
                )
            )

        ids = [t.id for t in store.list_transactions("user-1")]

        assert ids == ["new", "mid-late", "mid-early", "old"]

    def test_sell_transaction_keeps_profit_loss(self, store, make_transaction):
        store.insert_transaction(
            make_transaction(
                id="s1",
                type="sell",
                profit_loss=Decimal("40"),
                profit_loss_percent=Decimal("36.5"),
            )
        )

        (sell,) = store.list_transactions("user-1")

        assert sell.type == "sell"
        assert sell.profit_loss == Decimal("40")
        assert sell.profit_loss_percent == Decimal("36.5")

    def test_delete_transaction(self, store, make_transaction):
        created = store.insert_transaction(make_transaction())

        assert created.id
        assert store.delete_transaction(created.id) is True
        assert store.delete_transaction(created.id) is False
        assert store.list_transactions("user-1") == []

    def test_repoint_transactions(self, store, make_transaction):
        store.insert_transaction(make_transaction(id="t1", holding_id="old"))
        store.insert_transaction(make_transaction(id="t2", holding_id="old"))
        store.insert_transaction(make_transaction(id="t3", holding_id="other"))

        moved = store.repoint_transactions("old", "survivor")

        assert moved == 2
        holding_ids = {t.id: t.holding_id for t in store.list_transactions("user-1")}
        assert holding_ids == {"t1": "survivor", "t2": "survivor", "t3": "other"}
        assert store.repoint_transactions("old", "survivor") == 0

    def test_merge_holdings(self, store, make_holding, make_transaction):
        store.insert_holding(make_holding(id="keep", quantity=Decimal("5")))
        store.insert_holding(make_holding(id="dup1", quantity=Decimal("3")))
        store.insert_holding(make_holding(id="dup2", quantity=Decimal("2")))
        store.insert_transaction(make_transaction(id="t1", holding_id="dup1"))
        store.insert_transaction(make_transaction(id="t2", holding_id="dup2"))
        store.insert_transaction(make_transaction(id="t3", holding_id="keep"))

        written = store.merge_holdings(
            "keep",
            {"quantity": Decimal("10"), "invested_amount": Decimal("200")},
            ["dup1", "dup2"],
        )

        assert written.survivor.quantity == Decimal("10")
        assert written.transactions_repointed == 2
        assert written.records_deleted == 2
        [holding] = store.list_holdings("user-1")
        assert holding.id == "keep"
        assert holding.quantity == Decimal("10")
        assert holding.invested_amount == Decimal("200")
        assert {t.holding_id for t in store.list_transactions("user-1")} == {"keep"}

    def test_merge_holdings_ignores_already_deleted_duplicates(self, store, make_holding):
        store.insert_holding(make_holding(id="keep"))

        written = store.merge_holdings("keep", {"quantity": Decimal("7")}, ["gone"])

        assert written.records_deleted == 0
        assert store.find_holding("keep").quantity == Decimal("7")

    def test_merge_holdings_missing_survivor_returns_none(self, store, make_holding):
        store.insert_holding(make_holding(id="dup"))

        assert store.merge_holdings("missing", {"quantity": Decimal("1")}, ["dup"]) is None
        assert store.find_holding("dup") is not None

    def test_merge_holdings_rejects_unknown_fields(self, store, make_holding):
        store.insert_holding(make_holding(id="keep"))

        with pytest.raises(ValueError):
            store.merge_holdings("keep", {"user_id": "someone-else"}, [])


class TestSqlRecordStore:
    """SQL-specific failure handling."""

    def test_commit_failure_raises_store_write_error(self, db, make_holding):
        store = SqlRecordStore(db)

        failure = OperationalError("INSERT", {}, Exception("database is locked"))

        with patch.object(db, "commit", side_effect=failure):
            with pytest.raises(StoreWriteError) as exc_info:
                store.insert_holding(make_holding(id="h1"))

        assert exc_info.value.operation == "insert_holding"
        assert store.find_holding("h1") is None

    def test_failed_merge_rolls_back_survivor_update(self, db, make_holding):
        store = SqlRecordStore(db)
        store.insert_holding(make_holding(id="keep", quantity=Decimal("5")))
        store.insert_holding(make_holding(id="dup", quantity=Decimal("3")))

        failure = OperationalError("COMMIT", {}, Exception("database is locked"))

        with patch.object(db, "commit", side_effect=failure):
            with pytest.raises(StoreWriteError):
                store.merge_holdings("keep", {"quantity": Decimal("8")}, ["dup"])

        assert store.find_holding("keep").quantity == Decimal("5")
        assert store.find_holding("dup") is not None


class TestLocalFileRecordStore:
    """File layout of the local store."""

    def test_one_file_per_user(self, tmp_path, make_holding):
        store = LocalFileRecordStore(tmp_path)
        store.insert_holding(make_holding(id="a", user_id="user-1"))
        store.insert_holding(make_holding(id="b", user_id="user-2"))

        assert sorted(p.name for p in tmp_path.glob("*.json")) == ["user-1.json", "user-2.json"]
        assert not list(tmp_path.glob("*.tmp"))

    def test_records_survive_a_new_instance(self, tmp_path, make_holding):
        LocalFileRecordStore(tmp_path).insert_holding(make_holding(id="a", tags=["x"]))

        holding = LocalFileRecordStore(tmp_path).find_holding("a")

        assert holding.quantity == Decimal("10")
        assert holding.tags == ["x"]
        assert holding.created_at == datetime(2024, 1, 1)

    def test_unsafe_user_ids_stay_inside_directory(self, tmp_path, make_holding):
        store = LocalFileRecordStore(tmp_path)
        store.insert_holding(make_holding(id="a", user_id="../evil"))

        assert [p.name for p in tmp_path.glob("*.json")] == ["___evil.json"]
        assert [h.id for h in store.list_holdings("../evil")] == ["a"]

    def test_write_failure_raises_store_write_error(self, tmp_path, make_holding):
        blocker = tmp_path / "blocked"
        blocker.write_text("not a directory")
        store = LocalFileRecordStore(blocker)

        with pytest.raises(StoreWriteError):
            store.insert_holding(make_holding())
