"""Tests for the SQLAlchemy remote store."""

import pytest

from debtbook.domain.errors import RemoteStoreError
from debtbook.sync.sqlalchemy_remote import SQLAlchemyRemoteStore

USER = "anon_test"


def _debtor(debtor_id, name="Ahmed"):
    return {"id": debtor_id, "name": name, "phone": "1", "createdAt": "2024-01-01T00:00:00+00:00"}


def _transaction(txn_id, debtor_id):
    return {"id": txn_id, "debtorId": debtor_id, "type": "debt", "amount": 100}


def test_fetch_adds_synced_at(remote_store):
    remote_store.put_debtor(USER, _debtor("d1"))

    fetched = remote_store.fetch_debtors(USER)

    assert set(fetched) == {"d1"}
    assert fetched["d1"]["name"] == "Ahmed"
    assert isinstance(fetched["d1"]["syncedAt"], int)


def test_put_overwrites_record(remote_store):
    remote_store.put_debtor(USER, _debtor("d1", "Ahmed"))
    remote_store.put_debtor(USER, _debtor("d1", "Ahmed Ali"))

    assert remote_store.fetch_debtors(USER)["d1"]["name"] == "Ahmed Ali"


def test_users_are_isolated(remote_store):
    remote_store.put_debtor(USER, _debtor("d1"))

    assert remote_store.fetch_debtors("someone_else") == {}


def test_delete_debtor_removes_its_transactions(remote_store):
    remote_store.put_debtor(USER, _debtor("d1"))
    remote_store.put_debtor(USER, _debtor("d2"))
    remote_store.put_transaction(USER, _transaction("t1", "d1"))
    remote_store.put_transaction(USER, _transaction("t2", "d2"))

    remote_store.delete_debtor(USER, "d1")

    assert set(remote_store.fetch_debtors(USER)) == {"d2"}
    assert set(remote_store.fetch_transactions(USER)) == {"t2"}


def test_delete_transaction(remote_store):
    remote_store.put_transaction(USER, _transaction("t1", "d1"))
    remote_store.delete_transaction(USER, "t1")
    remote_store.delete_transaction(USER, "never-existed")

    assert remote_store.fetch_transactions(USER) == {}


def test_settings_and_last_sync(remote_store):
    assert remote_store.fetch_settings(USER) is None
    assert remote_store.get_last_sync(USER) is None

    remote_store.put_settings(USER, {"theme": "dark"})
    remote_store.set_last_sync(USER, 1705311000000)

    assert remote_store.fetch_settings(USER)["theme"] == "dark"
    assert remote_store.get_last_sync(USER) == 1705311000000


def test_backups(remote_store):
    assert remote_store.get_backup(USER, "1") is None

    remote_store.put_backup(USER, "1", {"debtors": [], "transactions": [], "settings": {}})
    remote_store.put_backup(USER, "2", {"debtors": [_debtor("d1")], "transactions": [], "settings": {}})

    assert remote_store.get_backup(USER, "2")["debtors"][0]["id"] == "d1"
    assert [backup["id"] for backup in remote_store.list_backups(USER)] == ["1", "2"]


def test_unreachable_backend_raises_remote_store_error(tmp_path):
    remote = SQLAlchemyRemoteStore(f"sqlite:///{tmp_path / 'missing' / 'remote.db'}")

    with pytest.raises(RemoteStoreError):
        remote.initialize_schema()
    with pytest.raises(RemoteStoreError):
        remote.fetch_debtors(USER)
