"""Tests for the SQLAlchemy local store."""

from dataclasses import replace
from datetime import datetime, timedelta, UTC
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, text

from debtbook.database.base import Collection
from debtbook.database.factories import create_memory_store, create_sqlite_store
from debtbook.database.sqlalchemy_db import SCHEMA_VERSION
from debtbook.domain.entities import (
    Debtor,
    Setting,
    SyncOperation,
    SyncQueueItem,
    Transaction,
    TransactionType,
)
from debtbook.domain.errors import StorageFatalError


def _debtor(debtor_id="d1", name="Ahmed", created_at=None):
    created_at = created_at or datetime(2024, 1, 15, 9, 30, tzinfo=UTC)
    return Debtor(
        id=debtor_id,
        name=name,
        phone="0770",
        address=None,
        notes=None,
        created_at=created_at,
        updated_at=created_at,
    )


def _transaction(txn_id="t1", debtor_id="d1", amount="100000", created_at=None):
    created_at = created_at or datetime(2024, 1, 16, 10, 0, tzinfo=UTC)
    return Transaction(
        id=txn_id,
        debtor_id=debtor_id,
        type=TransactionType.DEBT,
        amount=Decimal(amount),
        currency="IQD",
        product="Rice",
        notes=None,
        payment_method=None,
        created_at=created_at,
        updated_at=created_at,
    )


class TestSchema:
    def test_initialize_schema_is_idempotent(self, temp_store):
        temp_store.put(Collection.DEBTORS, _debtor())

        temp_store.initialize_schema()
        temp_store.initialize_schema()

        assert temp_store.schema_version() == SCHEMA_VERSION
        assert temp_store.get(Collection.DEBTORS, "d1") is not None

    def test_schema_version_is_none_before_initialization(self):
        store = create_memory_store()
        store.connect()

        assert store.schema_version() is None

        store.initialize_schema()
        assert store.schema_version() == SCHEMA_VERSION

    def test_memory_store_shares_one_database_across_sessions(self):
        store = create_memory_store()
        store.connect()
        store.initialize_schema()

        store.put(Collection.DEBTORS, _debtor())
        with store.unit_of_work():
            store.put(Collection.DEBTORS, _debtor("d2", name="Sara"))

        assert store.count(Collection.DEBTORS) == 2
        store.disconnect()

    def test_reopening_keeps_data(self, temp_store):
        temp_store.put(Collection.DEBTORS, _debtor())

        reopened = create_sqlite_store(database_path=temp_store.database_path)
        reopened.connect()
        reopened.initialize_schema()

        assert reopened.get(Collection.DEBTORS, "d1").name == "Ahmed"
        reopened.disconnect()

    def test_upgrade_from_version_1_keeps_transactions(self, tmp_path):
        db_path = tmp_path / "v1.db"
        engine = create_engine(f"sqlite:///{db_path}")
        with engine.begin() as connection:
            connection.execute(
                text("CREATE TABLE schema_meta (id INTEGER PRIMARY KEY, version INTEGER NOT NULL, migrated_at DATETIME NOT NULL)")
            )
            connection.execute(text("INSERT INTO schema_meta VALUES (1, 1, '2024-01-01 00:00:00.000000')"))
            connection.execute(
                text(
                    "CREATE TABLE transactions (id VARCHAR PRIMARY KEY, debtor_id VARCHAR NOT NULL, "
                    "type VARCHAR NOT NULL, amount NUMERIC(16, 2) NOT NULL, currency VARCHAR NOT NULL, "
                    "product VARCHAR, notes VARCHAR, payment_method VARCHAR, "
                    "created_at DATETIME NOT NULL, updated_at DATETIME NOT NULL)"
                )
            )
            connection.execute(
                text(
                    "INSERT INTO transactions VALUES ('t1', 'd1', 'debt', 2500.5, 'IQD', "
                    "NULL, NULL, NULL, '2024-01-16 10:00:00.000000', '2024-01-16 10:00:00.000000')"
                )
            )
        engine.dispose()

        store = create_sqlite_store(database_path=str(db_path))
        store.connect()
        store.initialize_schema()

        assert store.schema_version() == SCHEMA_VERSION
        transaction = store.get(Collection.TRANSACTIONS, "t1")
        assert transaction.amount == Decimal("2500.5")
        assert transaction.created_at == datetime(2024, 1, 16, 10, 0, tzinfo=UTC)

        store.put(Collection.TRANSACTIONS, replace(transaction, amount=Decimal("0.125")))
        assert store.get(Collection.TRANSACTIONS, "t1").amount == Decimal("0.125")
        store.disconnect()

    def test_unreachable_store_is_fatal(self, tmp_path):
        store = create_sqlite_store(database_path=str(tmp_path / "missing" / "dir" / "ledger.db"))

        with pytest.raises(StorageFatalError):
            store.connect()


class TestRecords:
    def test_get_returns_domain_entities(self, temp_store):
        temp_store.put(Collection.DEBTORS, _debtor())
        temp_store.put(Collection.TRANSACTIONS, _transaction())

        debtor = temp_store.get(Collection.DEBTORS, "d1")
        transaction = temp_store.get(Collection.TRANSACTIONS, "t1")

        assert isinstance(debtor, Debtor)
        assert isinstance(transaction, Transaction)
        assert transaction.amount == Decimal("100000")
        assert transaction.type is TransactionType.DEBT
        assert transaction.created_at == datetime(2024, 1, 16, 10, 0, tzinfo=UTC)
        assert transaction.created_at.tzinfo is not None

    def test_get_missing_returns_none(self, temp_store):
        assert temp_store.get(Collection.DEBTORS, "nope") is None
        assert temp_store.get(Collection.SETTINGS, "nope") is None

    def test_put_replaces_existing_record(self, temp_store):
        temp_store.put(Collection.DEBTORS, _debtor(name="Ahmed"))
        temp_store.put(Collection.DEBTORS, _debtor(name="Ahmed Ali"))

        assert temp_store.count(Collection.DEBTORS) == 1
        assert temp_store.get(Collection.DEBTORS, "d1").name == "Ahmed Ali"

    def test_delete_missing_key_is_noop(self, temp_store):
        temp_store.delete(Collection.DEBTORS, "nope")
        assert temp_store.count(Collection.DEBTORS) == 0

    def test_settings_hold_json_values(self, temp_store):
        temp_store.put(Collection.SETTINGS, Setting(key="syncEnabled", value=True))
        temp_store.put(Collection.SETTINGS, Setting(key="shop", value={"name": "Corner", "open": [8, 20]}))

        assert temp_store.get(Collection.SETTINGS, "syncEnabled").value is True
        assert temp_store.get(Collection.SETTINGS, "shop").value == {"name": "Corner", "open": [8, 20]}

    def test_get_all_by_index(self, temp_store):
        temp_store.put(Collection.DEBTORS, _debtor("d1"))
        temp_store.put(Collection.DEBTORS, _debtor("d2", name="Sara"))
        temp_store.put(Collection.TRANSACTIONS, _transaction("t1", "d1"))
        temp_store.put(Collection.TRANSACTIONS, _transaction("t2", "d2"))
        temp_store.put(Collection.TRANSACTIONS, _transaction("t3", "d1"))

        result = temp_store.get_all_by_index(Collection.TRANSACTIONS, "debtor_id", "d1")
        assert sorted(t.id for t in result) == ["t1", "t3"]

        debts = temp_store.get_all_by_index(Collection.TRANSACTIONS, "type", TransactionType.DEBT)
        assert len(debts) == 3

    def test_amounts_are_stored_exactly(self, temp_store):
        temp_store.put(Collection.TRANSACTIONS, _transaction("t1", amount="0.004"))
        temp_store.put(Collection.TRANSACTIONS, _transaction("t2", amount="1234567890.123456789"))
        temp_store.put(Collection.TRANSACTIONS, _transaction("t3", amount="2500.50"))

        assert temp_store.get(Collection.TRANSACTIONS, "t1").amount == Decimal("0.004")
        assert temp_store.get(Collection.TRANSACTIONS, "t2").amount == Decimal("1234567890.123456789")

        matches = temp_store.get_all_by_index(Collection.TRANSACTIONS, "amount", Decimal("2500.5"))
        assert [t.id for t in matches] == ["t3"]

    def test_get_all_by_unknown_index_raises(self, temp_store):
        with pytest.raises(ValueError, match="no index 'product'"):
            temp_store.get_all_by_index(Collection.TRANSACTIONS, "product", "Rice")

    def test_clear_and_count(self, temp_store):
        temp_store.put(Collection.DEBTORS, _debtor("d1"))
        temp_store.put(Collection.DEBTORS, _debtor("d2"))
        assert temp_store.count(Collection.DEBTORS) == 2

        temp_store.clear(Collection.DEBTORS)
        assert temp_store.count(Collection.DEBTORS) == 0
        assert temp_store.get_all(Collection.DEBTORS) == []


class TestSyncQueue:
    def _item(self, item_id, queued_at):
        return SyncQueueItem(
            id=item_id,
            op_type=SyncOperation.CREATE_DEBTOR,
            payload={"id": item_id},
            queued_at=queued_at,
        )

    def test_items_come_back_in_enqueue_order(self, temp_store):
        # Same timestamp: insertion order decides
        moment = datetime(2024, 1, 1, tzinfo=UTC)
        for item_id in ("c", "a", "b"):
            temp_store.put(Collection.SYNC_QUEUE, self._item(item_id, moment))

        assert [item.id for item in temp_store.get_all(Collection.SYNC_QUEUE)] == ["c", "a", "b"]

    def test_replacing_item_keeps_its_position(self, temp_store):
        moment = datetime(2024, 1, 1, tzinfo=UTC)
        first = self._item("first", moment)
        temp_store.put(Collection.SYNC_QUEUE, first)
        temp_store.put(Collection.SYNC_QUEUE, self._item("second", moment + timedelta(seconds=1)))

        temp_store.put(
            Collection.SYNC_QUEUE,
            SyncQueueItem(first.id, first.op_type, first.payload, first.queued_at, retries=2),
        )

        items = temp_store.get_all(Collection.SYNC_QUEUE)
        assert [item.id for item in items] == ["first", "second"]
        assert items[0].retries == 2
        assert items[0].op_type is SyncOperation.CREATE_DEBTOR


class TestUnitOfWork:
    def test_commits_all_operations_together(self, temp_store):
        with temp_store.unit_of_work():
            temp_store.put(Collection.DEBTORS, _debtor("d1"))
            temp_store.put(Collection.TRANSACTIONS, _transaction("t1", "d1"))
            # Reads inside the unit see uncommitted writes
            assert temp_store.get(Collection.DEBTORS, "d1") is not None

        assert temp_store.count(Collection.DEBTORS) == 1
        assert temp_store.count(Collection.TRANSACTIONS) == 1

    def test_exception_rolls_back_everything(self, temp_store):
        with pytest.raises(RuntimeError):
            with temp_store.unit_of_work():
                temp_store.put(Collection.DEBTORS, _debtor("d1"))
                temp_store.put(Collection.TRANSACTIONS, _transaction("t1", "d1"))
                raise RuntimeError("boom")

        assert temp_store.count(Collection.DEBTORS) == 0
        assert temp_store.count(Collection.TRANSACTIONS) == 0

    def test_nested_unit_joins_outer(self, temp_store):
        with pytest.raises(RuntimeError):
            with temp_store.unit_of_work():
                with temp_store.unit_of_work():
                    temp_store.put(Collection.DEBTORS, _debtor("d1"))
                raise RuntimeError("boom")

        assert temp_store.get(Collection.DEBTORS, "d1") is None
